"""
Tests for the Telegram webhook: commands, free text, dedup and delivery fallbacks.
"""
import pytest

from app.core.llm.openai_adapter import CompletionError
from app.core.classifier import FALLBACK_MESSAGE
from tests.helpers.completion_stubs import TAXI_REPLY
from tests.helpers.telegram_stubs import FakeSender
from tests.utils.payloads import make_update

WEBHOOK = "/api/v1/telegram/webhook"
CHAT_ID = 555199999


@pytest.fixture
def webapp_url(monkeypatch):
    monkeypatch.setattr("app.config.WEBAPP_URL", "https://lana.example/app")
    return "https://lana.example/app"


class TestStartCommand:
    @pytest.mark.asyncio
    async def test_start_provisions_user_and_greets(self, async_client, sender, store, webapp_url):
        response = await async_client.post(WEBHOOK, json=make_update("/start"))

        assert response.status_code == 200
        assert response.json()["status"] == "processed"
        assert response.json()["action"] == "start"

        assert str(CHAT_ID) in store.load()["users"]

        [message] = sender.messages
        assert message["chat_id"] == CHAT_ID
        assert message["text"] == "Привет, Лана! 👋"
        button = message["reply_markup"]["inline_keyboard"][0][0]
        assert button["text"] == "🚀 Открыть LanaTodoo"
        assert button["web_app"] == {"url": webapp_url}

    @pytest.mark.asyncio
    async def test_start_with_bot_suffix(self, async_client, sender):
        await async_client.post(WEBHOOK, json=make_update("/start@LanaTodooBot"))

        assert sender.messages[0]["text"].startswith("Привет")

    @pytest.mark.asyncio
    async def test_no_button_without_webapp_url(self, async_client, sender, monkeypatch):
        monkeypatch.setattr("app.config.WEBAPP_URL", None)

        await async_client.post(WEBHOOK, json=make_update("/start"))

        assert "reply_markup" not in sender.messages[0]

    @pytest.mark.asyncio
    async def test_other_commands_are_ignored(self, async_client, sender, completion):
        response = await async_client.post(WEBHOOK, json=make_update("/help"))

        assert response.json() == {"status": "ignored", "reason": "command", "sent": "false"}
        assert sender.calls == []
        assert completion.calls == []


class TestFreeText:
    @pytest.mark.asyncio
    async def test_taxi_expense_is_recorded_and_confirmed(self, async_client, sender, completion, records):
        completion.queue(TAXI_REPLY)

        response = await async_client.post(WEBHOOK, json=make_update("Потратил 500 на такси"))

        body = response.json()
        assert body["status"] == "processed"
        assert body["action"] == "create_transaction"
        assert body["sent"] == "true"

        assert sender.chat_actions == [{"chat_id": CHAT_ID, "action": "typing"}]
        [message] = sender.messages
        assert message["text"] == TAXI_REPLY["responseMessage"]
        assert message["parse_mode"] == "Markdown"

        [tx] = records.sync(str(CHAT_ID))["transactions"]
        assert tx["amount"] == 500
        assert tx["type"] == "expense"
        assert tx["category"] == "Такси"

    @pytest.mark.asyncio
    async def test_markdown_rejection_resends_plain(self, app, services, async_client, completion):
        plain_sender = FakeSender(reject_markdown=True)
        services.sender = plain_sender
        completion.queue(TAXI_REPLY)

        response = await async_client.post(WEBHOOK, json=make_update("Потратил 500 на такси"))

        assert response.json()["sent"] == "true"
        first, second = plain_sender.messages
        assert first["parse_mode"] == "Markdown"
        assert "parse_mode" not in second
        assert second["text"] == first["text"]

    @pytest.mark.asyncio
    async def test_send_link_gets_app_button(self, async_client, sender, completion, webapp_url):
        completion.queue({"action": "send_link", "data": {}, "responseMessage": "Открывай 👇"})

        await async_client.post(WEBHOOK, json=make_update("дай ссылку"))

        [message] = sender.messages
        assert message["text"] == "Открывай 👇"
        button = message["reply_markup"]["inline_keyboard"][0][0]
        assert button["text"] == "🚀 Открыть приложение"
        assert button["web_app"]["url"] == webapp_url

    @pytest.mark.asyncio
    async def test_classifier_outage_sends_apology(self, async_client, sender, completion, store):
        completion.error = CompletionError("unreachable")

        response = await async_client.post(WEBHOOK, json=make_update("привет"))

        assert response.json()["action"] == "chat"
        assert sender.messages[0]["text"] == FALLBACK_MESSAGE
        assert store.load() == {"users": {}}

    @pytest.mark.asyncio
    async def test_pipeline_failure_sends_error_notice(self, async_client, sender, services, monkeypatch):
        async def boom(text, user_id):
            raise RuntimeError("disk full")

        monkeypatch.setattr(services.pipeline, "process_message", boom)

        response = await async_client.post(WEBHOOK, json=make_update("привет"))

        assert response.status_code == 200
        assert response.json()["status"] == "error"
        assert sender.messages[-1]["text"] == "⚠️ Ошибка."


class TestUpdateFiltering:
    @pytest.mark.asyncio
    async def test_duplicate_update_is_processed_once(self, async_client, sender, completion):
        completion.queue({"action": "chat", "data": {"message": "Привет!"}})
        update = make_update("привет", update_id=42)

        first = await async_client.post(WEBHOOK, json=update)
        second = await async_client.post(WEBHOOK, json=update)

        assert first.json()["status"] == "processed"
        assert second.json()["reason"] == "duplicate"
        assert len(sender.messages) == 1
        assert len(completion.calls) == 1

    @pytest.mark.asyncio
    async def test_message_without_text_is_ignored(self, async_client, sender):
        response = await async_client.post(WEBHOOK, json=make_update(None))

        assert response.json()["reason"] == "no_text"
        assert sender.calls == []

    @pytest.mark.asyncio
    async def test_update_without_message_is_ignored(self, async_client, sender):
        response = await async_client.post(WEBHOOK, json={"update_id": 7})

        assert response.json()["reason"] == "no_text"

    @pytest.mark.asyncio
    async def test_malformed_update_is_ignored(self, async_client, sender):
        response = await async_client.post(WEBHOOK, json={"message": "nope"})

        assert response.status_code == 200
        assert response.json()["reason"] == "invalid_update"

    @pytest.mark.asyncio
    async def test_wrong_secret_is_rejected(self, async_client, sender, monkeypatch):
        monkeypatch.setattr("app.config.TELEGRAM_WEBHOOK_SECRET", "s3cret")

        rejected = await async_client.post(
            WEBHOOK, json=make_update("/start"), headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"}
        )
        accepted = await async_client.post(
            WEBHOOK, json=make_update("/start", update_id=2), headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"}
        )

        assert rejected.status_code == 403
        assert accepted.status_code == 200
        assert len(sender.messages) == 1
