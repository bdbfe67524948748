"""
Per-user entity models: tasks, transactions, events, notes and goals.

Stored objects use the web client's camelCase field names, so every model is
dumped with ``by_alias=True`` before it reaches the store.
"""
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

INCOME_MARKERS = ("income", "доход", "приход", "поступление", "зарплата")
DEFAULT_CATEGORY = "Разное"


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


_PRIORITY_ALIASES = {
    "high": Priority.HIGH,
    "высокий": Priority.HIGH,
    "высокая": Priority.HIGH,
    "medium": Priority.MEDIUM,
    "средний": Priority.MEDIUM,
    "средняя": Priority.MEDIUM,
    "low": Priority.LOW,
    "низкий": Priority.LOW,
    "низкая": Priority.LOW,
}


def coerce_priority(value: Any) -> Priority:
    """Match a priority case-insensitively, defaulting to Medium."""
    if isinstance(value, Priority):
        return value
    if isinstance(value, str):
        return _PRIORITY_ALIASES.get(value.strip().lower(), Priority.MEDIUM)
    return Priority.MEDIUM


def coerce_amount(value: Any) -> float:
    """
    Coerce an amount to a non-negative float.

    Direction is carried by the transaction type, so the sign is dropped.
    Strings such as "500", "1 500,50" or "500 руб" are accepted; anything
    that cannot be read as a number becomes 0.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return abs(float(value))
    if isinstance(value, str):
        cleaned = re.sub(r"[\s ]", "", value)
        # "1,500" groups thousands; "1500,50" is a decimal comma
        cleaned = re.sub(r"(?<=\d),(?=\d{3}(?!\d))", "", cleaned).replace(",", ".")
        match = re.search(r"-?\d+(?:\.\d+)?", cleaned)
        if match:
            return abs(float(match.group()))
    return 0.0


def normalize_transaction_type(value: Any) -> str:
    """Return exactly "income" or "expense"; anything ambiguous is an expense."""
    if isinstance(value, str) and value.strip().lower() in INCOME_MARKERS:
        return "income"
    return "expense"


def coerce_category(value: Any) -> str:
    """Free-text category; missing or blank values fall into the catch-all."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_CATEGORY


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class _Record(BaseModel):
    # Extra client fields survive the round trip
    model_config = ConfigDict(
        extra="allow", populate_by_name=True, str_strip_whitespace=True
    )

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Creation payloads (HTTP bodies and dispatcher input) ---


class TodoCreate(_Record):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        return coerce_priority(v)


class TransactionCreate(_Record):
    amount: float = 0.0
    category: str = DEFAULT_CATEGORY
    description: str = ""
    date: Optional[str] = None
    type: str = "expense"

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v):
        return coerce_amount(v)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        return coerce_category(v)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return normalize_transaction_type(v)

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, v):
        return "" if v is None else str(v)


class EventCreate(_Record):
    title: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)


class NoteCreate(_Record):
    content: str = Field(..., min_length=1)


class NoteUpdate(BaseModel):
    content: Optional[str] = None


class GoalCreate(_Record):
    title: str = Field(..., min_length=1)


# --- Stored entities ---


class Todo(TodoCreate):
    id: str
    completed: bool = False
    created_at: int = Field(default_factory=now_ms, alias="createdAt")


class Transaction(TransactionCreate):
    id: str
    date: Optional[str] = Field(default_factory=now_iso)

    @field_validator("date", mode="before")
    @classmethod
    def default_date(cls, v):
        return v or now_iso()


class Event(EventCreate):
    id: str
    completed: bool = False


class Note(NoteCreate):
    id: str
    created_at: int = Field(default_factory=now_ms, alias="createdAt")


class Goal(GoalCreate):
    id: str
    completed: bool = False
