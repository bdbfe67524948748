"""
Conversational action pipeline shared by the HTTP API and the Telegram bot.

Transports only extract the user id and render the result; the
classify -> dispatch sequence lives here.
"""
import logging
from typing import Any

from app.core.classifier import IntentClassifier
from app.core.dispatcher import ActionDispatcher, DispatchResult
from app.core.store import DocumentStore
from app.models.actions import Action

logger = logging.getLogger(__name__)


class ActionPipeline:
    def __init__(
        self,
        store: DocumentStore,
        classifier: IntentClassifier,
        dispatcher: ActionDispatcher,
    ):
        self.store = store
        self.classifier = classifier
        self.dispatcher = dispatcher

    async def analyze(self, text: str, user_id: Any) -> Action:
        """Classify only; the store is read for context and not written."""
        user = self.store.read_user(user_id)
        return await self.classifier.classify(text, user)

    async def process_message(self, text: str, user_id: Any) -> DispatchResult:
        """Classify and execute a message for ``user_id``."""
        user_id = str(user_id)
        action = await self.analyze(text, user_id)
        result = await self.dispatcher.dispatch(action, user_id)
        logger.info(
            "PIPELINE|processed|action=%s|created=%s",
            action.action,
            result.record is not None,
            extra={"user_id": user_id, "action": action.action},
        )
        return result

    async def ensure_user(self, user_id: Any) -> None:
        """Provision the user's record without classifying anything."""
        async with self.store.transaction(user_id):
            pass
