"""
Telegram sender stub that records outbound Bot API calls.
"""
from typing import Any, Dict, List

from app.core.delivery import TelegramSender

OK = {"sent": "true", "status_code": 200, "error_reason": None}
MARKDOWN_REJECTED = {
    "sent": "false",
    "status_code": 400,
    "error_reason": "Bad Request: can't parse entities",
}


class FakeSender(TelegramSender):
    """Real reply/fallback logic on top of an in-memory ``call``."""

    def __init__(self, reject_markdown: bool = False):
        super().__init__(token="123456:TEST-TOKEN")
        self.reject_markdown = reject_markdown
        self.calls: List[Dict[str, Any]] = []

    async def call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append({"method": method, "payload": payload})
        if self.reject_markdown and payload.get("parse_mode"):
            return dict(MARKDOWN_REJECTED)
        return dict(OK)

    @property
    def messages(self) -> List[Dict[str, Any]]:
        return [c["payload"] for c in self.calls if c["method"] == "sendMessage"]

    @property
    def chat_actions(self) -> List[Dict[str, Any]]:
        return [c["payload"] for c in self.calls if c["method"] == "sendChatAction"]
