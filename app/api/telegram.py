"""
Telegram webhook handler.
Receives bot updates, runs the action pipeline and replies on the same chat.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import ValidationError

from app import config
from app.core.dedup import update_dedup
from app.core.delivery import TelegramSender
from app.core.dependencies import get_pipeline, get_sender
from app.core.pipeline import ActionPipeline
from app.models.actions import SendLink
from app.models.telegram import TelegramMessage, TelegramUpdate, WebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_MESSAGE = "⚠️ Ошибка."
OPEN_APP_LABEL = "🚀 Открыть приложение"
START_APP_LABEL = "🚀 Открыть LanaTodoo"


def webapp_keyboard(label: str) -> Optional[Dict[str, Any]]:
    """Inline keyboard with a single web-app button, when the app URL is configured."""
    if not config.WEBAPP_URL:
        return None
    return {"inline_keyboard": [[{"text": label, "web_app": {"url": config.WEBAPP_URL}}]]}


def _ignored(reason: str) -> Dict[str, Any]:
    return WebhookResponse(status="ignored", reason=reason).model_dump(exclude_none=True)


@router.post("/webhook")
async def webhook(
    body: Dict[str, Any],
    x_telegram_bot_api_secret_token: Optional[str] = Header(None),
    pipeline: ActionPipeline = Depends(get_pipeline),
    sender: TelegramSender = Depends(get_sender),
) -> Dict[str, Any]:
    """
    Receive one update from Telegram.
    Always answers 2xx for accepted updates so Telegram does not redeliver.
    """
    if (
        config.TELEGRAM_WEBHOOK_SECRET
        and x_telegram_bot_api_secret_token != config.TELEGRAM_WEBHOOK_SECRET
    ):
        logger.warning("WEBHOOK|rejected|reason=bad_secret")
        raise HTTPException(status_code=403, detail="invalid secret token")

    try:
        update = TelegramUpdate.model_validate(body)
    except ValidationError as e:
        logger.warning("WEBHOOK|skip|invalid_update|error=%s", e)
        return _ignored("invalid_update")

    message = update.message
    if message is None or not message.text or not message.text.strip():
        return _ignored("no_text")

    if not update_dedup.claim(update.update_id):
        logger.info(
            "WEBHOOK|skip|duplicate|update_id=%s",
            update.update_id,
            extra={"update_id": update.update_id},
        )
        return _ignored("duplicate")

    response = await _handle_message(message, pipeline, sender)
    return response.model_dump(exclude_none=True)


async def _handle_message(
    message: TelegramMessage, pipeline: ActionPipeline, sender: TelegramSender
) -> WebhookResponse:
    chat_id = message.chat.id
    user_id = str(chat_id)
    text = message.text.strip()

    if text.startswith("/"):
        command = text.split()[0].split("@")[0].lower()
        if command == "/start":
            return await _handle_start(message, pipeline, sender)
        return WebhookResponse(status="ignored", reason="command")

    logger.info("WEBHOOK|received|chat=%s|chars=%d", chat_id, len(text), extra={"user_id": user_id})
    await sender.send_chat_action(chat_id, "typing")

    try:
        result = await pipeline.process_message(text, user_id)
    except Exception:
        logger.exception("WEBHOOK|pipeline_failed|chat=%s", chat_id, extra={"user_id": user_id})
        delivery = await sender.send_message(chat_id, ERROR_MESSAGE)
        return WebhookResponse(status="error", sent=delivery["sent"])

    markup = webapp_keyboard(OPEN_APP_LABEL) if isinstance(result.action, SendLink) else None
    delivery = await sender.reply_with_fallback(chat_id, result.message, reply_markup=markup)
    return WebhookResponse(status="processed", action=result.action.action, sent=delivery["sent"])


async def _handle_start(
    message: TelegramMessage, pipeline: ActionPipeline, sender: TelegramSender
) -> WebhookResponse:
    """Provision the user's record and greet them with the app button."""
    chat_id = message.chat.id
    await pipeline.ensure_user(chat_id)

    first_name = message.from_.first_name if message.from_ else ""
    greeting = f"Привет, {first_name}! 👋" if first_name else "Привет! 👋"
    delivery = await sender.reply_with_fallback(
        chat_id, greeting, reply_markup=webapp_keyboard(START_APP_LABEL)
    )
    logger.info("WEBHOOK|start|chat=%s", chat_id, extra={"user_id": str(chat_id)})
    return WebhookResponse(status="processed", action="start", sent=delivery["sent"])
