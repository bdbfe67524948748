"""
Action dispatcher: applies a classified Action to the user's record.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.core.records import RecordService
from app.models.actions import (
    Action,
    Chat,
    CreateEvent,
    CreateNote,
    CreateTask,
    CreateTransaction,
    SendLink,
)
from app.models.entities import EventCreate, NoteCreate, TodoCreate, TransactionCreate

logger = logging.getLogger(__name__)

DEFAULT_CONFIRMATIONS = {
    "create_task": "Задача добавлена ✅",
    "create_transaction": "Операция записана 💰",
    "create_event": "Событие запланировано 📅",
    "create_note": "Заметка сохранена 📝",
}
DEFAULT_LINK_MESSAGE = "Держи ссылку:"
DEFAULT_CHAT_MESSAGE = "Что-то я не поняла."


@dataclass
class DispatchResult:
    """Outcome of a dispatched action."""

    action: Action
    message: str
    record: Optional[Dict[str, Any]] = None


class ActionDispatcher:
    """Executes actions against the store and produces the reply text."""

    def __init__(self, records: RecordService):
        self.records = records

    async def dispatch(self, action: Action, user_id: str) -> DispatchResult:
        if isinstance(action, (SendLink, Chat)):
            default = DEFAULT_LINK_MESSAGE if isinstance(action, SendLink) else DEFAULT_CHAT_MESSAGE
            message = action.response_message or action.message or default
            return DispatchResult(action=action, message=message)

        collection, payload = self._to_payload(action)
        record = await self.records.create(user_id, collection, payload)

        logger.info(
            "DISPATCH|applied|action=%s|id=%s",
            action.action,
            record["id"],
            extra={"user_id": user_id, "action": action.action},
        )
        message = action.response_message or DEFAULT_CONFIRMATIONS[action.action]
        return DispatchResult(action=action, message=message, record=record)

    @staticmethod
    def _to_payload(action: Action):
        """Map a creation action onto the collection and its creation payload."""
        if isinstance(action, CreateTask):
            return "todos", TodoCreate(
                title=action.title,
                priority=action.priority,
                description=action.description,
            )
        if isinstance(action, CreateTransaction):
            return "transactions", TransactionCreate(
                amount=action.amount,
                category=action.category,
                type=action.type,
                description=action.description,
                date=action.date,
            )
        if isinstance(action, CreateEvent):
            return "events", EventCreate(title=action.title, date=action.date)
        if isinstance(action, CreateNote):
            return "notes", NoteCreate(content=action.content)
        raise TypeError(f"not a creation action: {type(action).__name__}")
