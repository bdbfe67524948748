"""
Data models for the Lana assistant
"""
from .actions import (
    Action,
    ActionParseError,
    Chat,
    CreateEvent,
    CreateNote,
    CreateTask,
    CreateTransaction,
    SendLink,
    parse_action,
)
from .entities import (
    EventCreate,
    GoalCreate,
    NoteCreate,
    NoteUpdate,
    Priority,
    TodoCreate,
    TransactionCreate,
)
from .telegram import TelegramUpdate, WebhookResponse
