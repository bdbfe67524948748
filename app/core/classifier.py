"""
Intent classifier: turns free text plus the user's data into an Action.

The completion service is asked for a JSON object which is then validated
into one of the closed Action variants. Nothing in this module raises to its
caller; every failure degrades to a Chat action with an apology.
"""
import json
import logging
from typing import Any, Dict, Optional

from app.core.llm.openai_adapter import CompletionError, OpenAIClient
from app.core.prompts import TIP_SYSTEM_PROMPT, build_budget_prompt, build_system_prompt
from app.models.actions import Action, ActionParseError, Chat, parse_action
from app.models.entities import coerce_amount, coerce_category, normalize_transaction_type

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Прости, я немного запуталась 😔. Попробуй еще раз."
FALLBACK_TIP = "Хорошего дня!"


def fallback_action() -> Chat:
    return Chat(message=FALLBACK_MESSAGE, response_message=FALLBACK_MESSAGE)


class IntentClassifier:
    """Classifies user messages into structured actions."""

    def __init__(self, client: Optional[OpenAIClient] = None):
        self.client = client or OpenAIClient()

    async def classify(self, text: str, user: Dict[str, Any]) -> Action:
        """
        Classify a user message.

        Args:
            text: Raw user message
            user: The user's record, used as prompt context

        Returns:
            One of the Action variants; the fallback Chat on any failure
        """
        try:
            messages = [
                {"role": "system", "content": build_system_prompt(user)},
                {"role": "user", "content": text},
            ]
            reply = await self.client.chat(messages, json_mode=True)
            action = parse_action(json.loads(reply))
        except CompletionError as e:
            logger.error("CLASSIFIER|completion_failed|error=%s", e)
            return fallback_action()
        except (ValueError, ActionParseError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error("CLASSIFIER|invalid_reply|error=%s", e)
            return fallback_action()
        except Exception:
            logger.exception("CLASSIFIER|unexpected_error")
            return fallback_action()

        logger.info("CLASSIFIER|classified|action=%s", action.action, extra={"action": action.action})
        return action

    async def analyze_budget(self, text: str) -> Optional[Dict[str, Any]]:
        """Extract a transaction-shaped dict from text, or None on failure."""
        try:
            messages = [
                {"role": "system", "content": build_budget_prompt()},
                {"role": "user", "content": text},
            ]
            parsed = json.loads(await self.client.chat(messages, json_mode=True))
        except CompletionError as e:
            logger.error("BUDGET|completion_failed|error=%s", e)
            return None
        except ValueError as e:
            logger.error("BUDGET|invalid_reply|error=%s", e)
            return None
        except Exception:
            logger.exception("BUDGET|unexpected_error")
            return None

        if not isinstance(parsed, dict):
            logger.error("BUDGET|invalid_reply|error=not_an_object")
            return None

        amount = coerce_amount(parsed.get("amount"))
        if not amount:
            return None

        result = dict(parsed)
        result["amount"] = amount
        result["type"] = normalize_transaction_type(parsed.get("type"))
        result["category"] = coerce_category(parsed.get("category"))
        result["description"] = str(parsed.get("description") or "")
        return result

    async def generate_tip(self, summary: str) -> str:
        """Short motivational tip for the dashboard."""
        try:
            messages = [
                {"role": "system", "content": TIP_SYSTEM_PROMPT},
                {"role": "user", "content": f"User Status: {summary}"},
            ]
            tip = await self.client.chat(messages)
        except CompletionError as e:
            logger.error("TIPS|completion_failed|error=%s", e)
            return FALLBACK_TIP
        except Exception:
            logger.exception("TIPS|unexpected_error")
            return FALLBACK_TIP

        return tip.replace('"', "").strip() or FALLBACK_TIP
