"""
Async adapter for OpenAI-compatible chat completion endpoints (Groq by default).
"""
import asyncio
import logging
import time
from typing import Dict, List, Optional

import openai
from openai import AsyncOpenAI

from app import config

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """The completion service could not produce a reply."""


class OpenAIClient:
    """
    Adapter for the OpenAI v1.x SDK with bounded retries.

    Unlike a chat front end, callers need to know that a completion failed, so
    every failure is raised as CompletionError.
    """

    max_attempts = 3
    backoff_ms = [100, 300, 900]

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Service key (defaults to env var API_KEY)
            base_url: OpenAI-compatible endpoint (defaults to env var LLM_BASE_URL)
            model: Model name (defaults to env var LLM_MODEL)
            timeout_s: Per-request timeout (defaults to env var LLM_TIMEOUT_SECONDS)
        """
        self.api_key = api_key or config.API_KEY
        self.base_url = base_url or config.LLM_BASE_URL
        self.model = model or config.LLM_MODEL
        self.timeout = timeout_s or config.LLM_TIMEOUT_SECONDS
        self.enabled = bool(self.api_key)

        if self.enabled:
            self.client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,  # Retries handled manually
            )
        else:
            logger.warning("LLM|disabled|reason=missing_api_key")
            self.client = None

    async def chat(
        self,
        messages: List[Dict[str, str]],
        *,
        json_mode: bool = False,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Send a chat completion request.

        Args:
            messages: Role-tagged messages
            json_mode: Ask the service for a JSON object reply
            temperature: Optional sampling temperature
            max_tokens: Optional reply size limit

        Returns:
            Reply text, stripped and non-empty

        Raises:
            CompletionError: on any service, network or empty-reply failure
        """
        if not self.enabled:
            raise CompletionError("completion service not configured")

        request = {"model": self.model, "messages": messages}
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        if temperature is not None:
            request["temperature"] = temperature
        if max_tokens is not None:
            request["max_tokens"] = max_tokens

        logger.info(
            "LLM|req|model=%s|json=%s|messages=%d", self.model, json_mode, len(messages)
        )

        for attempt in range(self.max_attempts):
            try:
                start_time = time.time()
                response = await self.client.chat.completions.create(**request)
                content = response.choices[0].message.content

                latency_ms = int((time.time() - start_time) * 1000)
                logger.info("LLM|res|latency_ms=%d", latency_ms)

                if not content or not content.strip():
                    raise CompletionError("empty completion")
                return content.strip()

            except openai.BadRequestError as e:
                # 400 errors - don't retry
                logger.error("LLM|error|type=BadRequestError|code=400|msg=%s", e)
                raise CompletionError(str(e)) from e

            except openai.APITimeoutError as e:
                # Timeout - don't retry
                logger.error("LLM|error|type=APITimeoutError|msg=Request timed out")
                raise CompletionError("timeout") from e

            except (openai.RateLimitError, openai.APIConnectionError) as e:
                logger.warning(
                    "LLM|error|type=%s|attempt=%d|msg=%s",
                    type(e).__name__,
                    attempt + 1,
                    e,
                )
                if attempt < self.max_attempts - 1:
                    await asyncio.sleep(self.backoff_ms[attempt] / 1000.0)
                    continue
                raise CompletionError(str(e)) from e

            except openai.APIError as e:
                logger.error("LLM|error|type=APIError|msg=%s", e)
                raise CompletionError(str(e)) from e

        raise CompletionError("retries exhausted")
