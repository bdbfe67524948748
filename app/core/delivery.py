"""
Robust ASYNCHRONOUS delivery service using the Telegram Bot API.
Sends messages with httpx using retries, timeouts and detailed logging.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from httpx import Timeout

from app import config

log = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096


def _mask_token(token: str) -> str:
    """Mask bot token for logging - shows first 8 and last 4 chars"""
    if not token or len(token) < 12:
        return "***masked***"
    return f"{token[:8]}...{token[-4:]}"


def _build_client(
    timeout_seconds: float, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """Build httpx client with timeout configuration"""
    timeout = Timeout(timeout_seconds, connect=timeout_seconds, read=timeout_seconds)
    return httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)


class TelegramSender:
    """Outbound Bot API calls. Failures are reported, never raised."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token if token is not None else (config.BOT_TOKEN or "")
        self.api_url = (api_url or config.TELEGRAM_API_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds or config.TELEGRAM_TIMEOUT_SECONDS
        self.max_retries = config.TELEGRAM_MAX_RETRIES if max_retries is None else max_retries
        self.backoff = config.TELEGRAM_RETRY_BACKOFF if backoff is None else backoff
        self.transport = transport

    async def call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Call a Bot API method with retries on timeouts, network errors and 5xx.

        Returns:
            Dict with keys:
            - sent: "true" or "false" (string)
            - status_code: HTTP status code (int)
            - error_reason: Optional error description (string or None)
        """
        result = {"sent": "false", "status_code": 0, "error_reason": None}

        if not self.token:
            log.error("DELIVERY|error|missing_bot_token")
            result["error_reason"] = "missing_bot_token"
            return result

        url = f"{self.api_url}/bot{self.token}/{method}"
        masked_url = f"{self.api_url}/bot{_mask_token(self.token)}/{method}"

        log.info(
            "DELIVERY|attempt|url=%s|chat=%s|timeout=%gs|retries=%d",
            masked_url,
            payload.get("chat_id"),
            self.timeout_seconds,
            self.max_retries,
        )

        for attempt in range(self.max_retries + 1):
            last_attempt = attempt == self.max_retries
            try:
                async with _build_client(self.timeout_seconds, self.transport) as client:
                    response = await client.post(url, json=payload)

                result["status_code"] = response.status_code

                if 200 <= response.status_code < 300:
                    log.info(
                        "DELIVERY|success|method=%s|status=%d|attempt=%d/%d",
                        method,
                        response.status_code,
                        attempt + 1,
                        self.max_retries + 1,
                    )
                    result["sent"] = "true"
                    return result

                description = self._description(response)
                log.error(
                    "DELIVERY|http_error|method=%s|status=%d|attempt=%d/%d|body=%s",
                    method,
                    response.status_code,
                    attempt + 1,
                    self.max_retries + 1,
                    description,
                )

                # 4xx - don't retry
                if response.status_code < 500 or last_attempt:
                    result["error_reason"] = description or f"http_{response.status_code}"
                    return result

            except httpx.TimeoutException as e:
                log.warning(
                    "DELIVERY|timeout|attempt=%d/%d|timeout=%gs|error=%s",
                    attempt + 1,
                    self.max_retries + 1,
                    self.timeout_seconds,
                    e,
                )
                if last_attempt:
                    result["error_reason"] = "timeout"
                    return result

            except httpx.TransportError as e:
                log.warning(
                    "DELIVERY|connection_error|attempt=%d/%d|error=%s",
                    attempt + 1,
                    self.max_retries + 1,
                    e,
                )
                if last_attempt:
                    result["error_reason"] = "connection_failed"
                    return result

            # Wait before retry
            await asyncio.sleep(self.backoff * (2**attempt))

        result["error_reason"] = "all_connection_attempts_failed"
        return result

    @staticmethod
    def _description(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:1000]
        if isinstance(body, dict):
            return str(body.get("description", ""))[:1000]
        return response.text[:1000]

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: Optional[str] = None,
        reply_markup: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a text message to a chat."""
        if not text or not text.strip():
            log.warning("DELIVERY|error|empty_text")
            return {"sent": "false", "status_code": 0, "error_reason": "empty_text"}

        text = text.strip()
        if len(text) > MAX_MESSAGE_LENGTH:
            log.warning("DELIVERY|truncated|length=%d", len(text))
            text = text[:MAX_MESSAGE_LENGTH]

        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self.call("sendMessage", payload)

    async def reply_with_fallback(
        self, chat_id: int, text: str, reply_markup: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Send with Markdown; if Telegram rejects the markup, resend as plain text."""
        result = await self.send_message(
            chat_id, text, parse_mode="Markdown", reply_markup=reply_markup
        )
        if result["sent"] == "true" or result["status_code"] != 400:
            return result

        log.warning("DELIVERY|markdown_rejected|chat=%s|resending_plain", chat_id)
        return await self.send_message(chat_id, text, reply_markup=reply_markup)

    async def send_chat_action(self, chat_id: int, action: str = "typing") -> Dict[str, Any]:
        return await self.call("sendChatAction", {"chat_id": chat_id, "action": action})
