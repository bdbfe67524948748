"""
Tests for action dispatch and the shared classify -> dispatch pipeline.
"""
import asyncio

import pytest

from app.core.classifier import FALLBACK_MESSAGE, IntentClassifier
from app.core.dispatcher import (
    DEFAULT_CHAT_MESSAGE,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_LINK_MESSAGE,
    ActionDispatcher,
)
from app.core.llm.openai_adapter import CompletionError
from app.core.pipeline import ActionPipeline
from app.models.actions import (
    Chat,
    CreateEvent,
    CreateNote,
    CreateTask,
    CreateTransaction,
    SendLink,
)
from app.models.entities import DEFAULT_CATEGORY
from tests.helpers.completion_stubs import TAXI_REPLY


@pytest.fixture
def dispatcher(records):
    return ActionDispatcher(records)


@pytest.fixture
def pipeline(store, records, completion, dispatcher):
    return ActionPipeline(store, IntentClassifier(completion), dispatcher)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_create_task_uses_response_message(self, dispatcher, records):
        action = CreateTask(title="Сдать отчёт", response_message="Записала ✍️")

        result = await dispatcher.dispatch(action, "u1")

        assert result.message == "Записала ✍️"
        todos = records.sync("u1")["todos"]
        assert todos == [result.record]
        assert todos[0]["completed"] is False
        assert todos[0]["priority"] == "Medium"

    @pytest.mark.asyncio
    async def test_generic_confirmation_when_message_missing(self, dispatcher):
        result = await dispatcher.dispatch(CreateNote(content="Идея"), "u1")

        assert result.message == DEFAULT_CONFIRMATIONS["create_note"]

    @pytest.mark.asyncio
    async def test_transaction_defaults(self, dispatcher, records):
        await dispatcher.dispatch(CreateTransaction(category="Кафе"), "u1")

        tx = records.sync("u1")["transactions"][0]
        assert tx["amount"] == 0.0
        assert tx["type"] == "expense"
        assert tx["category"] == "Кафе"
        assert tx["description"] == ""
        assert tx["date"]

    @pytest.mark.asyncio
    async def test_event_is_created_open(self, dispatcher, records):
        await dispatcher.dispatch(CreateEvent(title="Врач", date="2026-10-20T10:00:00+03:00"), "u1")

        event = records.sync("u1")["events"][0]
        assert event["title"] == "Врач"
        assert event["date"] == "2026-10-20T10:00:00+03:00"
        assert event["completed"] is False

    @pytest.mark.asyncio
    async def test_chat_and_link_do_not_touch_store(self, dispatcher, store):
        chat = await dispatcher.dispatch(Chat(message="Привет!"), "u1")
        link = await dispatcher.dispatch(SendLink(), "u1")
        empty_chat = await dispatcher.dispatch(Chat(), "u1")

        assert chat.message == "Привет!"
        assert chat.record is None
        assert link.message == DEFAULT_LINK_MESSAGE
        assert empty_chat.message == DEFAULT_CHAT_MESSAGE
        assert store.load() == {"users": {}}

    @pytest.mark.asyncio
    async def test_response_message_preferred_over_message(self, dispatcher):
        result = await dispatcher.dispatch(
            SendLink(message="ссылка", response_message="Вот ссылка 🔗"), "u1"
        )

        assert result.message == "Вот ссылка 🔗"


class TestPipeline:
    @pytest.mark.asyncio
    async def test_taxi_expense_end_to_end(self, pipeline, completion, records):
        completion.queue(TAXI_REPLY)

        result = await pipeline.process_message("Потратил 500 на такси", 555)

        assert result.message == TAXI_REPLY["responseMessage"]
        transactions = records.sync("555")["transactions"]
        assert len(transactions) == 1
        assert transactions[0]["amount"] == 500
        assert transactions[0]["type"] == "expense"
        assert transactions[0]["category"] == "Такси"

    @pytest.mark.asyncio
    async def test_income_without_category_is_recorded(self, pipeline, completion, records):
        completion.queue(
            {"action": "create_transaction", "data": {"amount": 100000, "type": "income"}}
        )

        result = await pipeline.process_message("Получил зарплату 100000", "u1")

        assert isinstance(result.action, CreateTransaction)
        assert result.message == DEFAULT_CONFIRMATIONS["create_transaction"]
        [tx] = records.sync("u1")["transactions"]
        assert tx["amount"] == 100000
        assert tx["type"] == "income"
        assert tx["category"] == DEFAULT_CATEGORY

    @pytest.mark.asyncio
    async def test_analyze_does_not_write(self, pipeline, completion, store):
        completion.queue(TAXI_REPLY)

        action = await pipeline.analyze("Потратил 500 на такси", "u1")

        assert isinstance(action, CreateTransaction)
        assert store.load() == {"users": {}}

    @pytest.mark.asyncio
    async def test_classification_failure_replies_with_apology(self, pipeline, completion, store):
        completion.error = CompletionError("unreachable")

        result = await pipeline.process_message("Потратил 500 на такси", "u1")

        assert isinstance(result.action, Chat)
        assert result.message == FALLBACK_MESSAGE
        assert store.load() == {"users": {}}

    @pytest.mark.asyncio
    async def test_concurrent_messages_all_persist(self, pipeline, completion, records):
        completion.queue(
            *[{"action": "create_note", "data": {"content": f"note {n}"}} for n in range(8)]
        )

        await asyncio.gather(*(pipeline.process_message(f"запиши {n}", "u1") for n in range(8)))

        assert len(records.sync("u1")["notes"]) == 8

    @pytest.mark.asyncio
    async def test_ensure_user_provisions_record(self, pipeline, store):
        await pipeline.ensure_user(777)

        assert store.load()["users"]["777"]["todos"] == []
