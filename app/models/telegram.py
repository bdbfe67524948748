"""
Telegram webhook models
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    """Message sender"""
    id: int
    first_name: str = ""
    username: Optional[str] = None


class TelegramChat(BaseModel):
    """Chat the message belongs to"""
    id: int
    type: str = "private"


class TelegramMessage(BaseModel):
    """Incoming message"""
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    chat: TelegramChat
    from_: Optional[TelegramUser] = Field(None, alias="from")
    date: int = 0
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    """Complete webhook update payload"""
    update_id: int
    message: Optional[TelegramMessage] = None
    edited_message: Optional[TelegramMessage] = None


class WebhookResponse(BaseModel):
    """Standard webhook response"""
    status: str
    reason: Optional[str] = None
    action: Optional[str] = None
    sent: str = "false"
