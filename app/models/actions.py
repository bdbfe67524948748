"""
Classified actions: the closed set of things a free-text message can turn into.

The completion service is untrusted input, so its reply is validated into one
of these variants or rejected as a whole.
"""
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .entities import (
    DEFAULT_CATEGORY,
    Priority,
    coerce_amount,
    coerce_category,
    coerce_priority,
    normalize_transaction_type,
)

CREATE_ACTIONS = ("create_task", "create_transaction", "create_event", "create_note")


class ActionParseError(ValueError):
    """Raised when a completion reply cannot be turned into an Action."""


class BaseAction(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", str_strip_whitespace=True
    )

    response_message: Optional[str] = Field(None, alias="responseMessage")

    def to_payload(self) -> dict:
        """Wire format expected by the web client."""
        data = self.model_dump(
            mode="json", exclude={"action", "response_message"}, exclude_none=True
        )
        return {
            "action": self.action,
            "data": data,
            "responseMessage": self.response_message,
        }


class CreateTask(BaseAction):
    action: Literal["create_task"] = "create_task"
    title: str = Field(..., min_length=1)
    priority: Priority = Priority.MEDIUM
    description: Optional[str] = None

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        return coerce_priority(v)


class CreateTransaction(BaseAction):
    action: Literal["create_transaction"] = "create_transaction"
    amount: float = 0.0
    category: str = DEFAULT_CATEGORY
    type: str = "expense"
    description: Optional[str] = None
    date: Optional[str] = None

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


class CreateEvent(BaseAction):
    action: Literal["create_event"] = "create_event"
    title: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)


class CreateNote(BaseAction):
    action: Literal["create_note"] = "create_note"
    content: str = Field(..., min_length=1)


class SendLink(BaseAction):
    action: Literal["send_link"] = "send_link"
    message: Optional[str] = None


class Chat(BaseAction):
    action: Literal["chat"] = "chat"
    message: Optional[str] = None


Action = Annotated[
    Union[CreateTask, CreateTransaction, CreateEvent, CreateNote, SendLink, Chat],
    Field(discriminator="action"),
]

_action_adapter = TypeAdapter(Action)


def parse_action(raw: Any) -> Action:
    """
    Validate a decoded completion reply into an Action.

    Fields may sit at the top level or inside ``data``; ``data`` wins.
    Unknown tags and missing mandatory fields raise ActionParseError.
    """
    if not isinstance(raw, dict):
        raise ActionParseError(f"expected object, got {type(raw).__name__}")

    fields = {k: v for k, v in raw.items() if k != "data"}
    data = raw.get("data")
    if isinstance(data, dict):
        fields.update({k: v for k, v in data.items() if k != "action"})

    tag = fields.get("action")
    if isinstance(tag, str):
        fields["action"] = tag.strip().lower()

    try:
        return _action_adapter.validate_python(fields)
    except ValidationError as e:
        raise ActionParseError(str(e)) from e
