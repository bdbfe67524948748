"""
Pytest configuration and fixtures.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core import dependencies
from app.core.classifier import IntentClassifier
from app.core.dedup import UpdateDeduplicator
from app.core.records import RecordService
from app.core.store import JsonFileStore
from tests.helpers.completion_stubs import FakeCompletionClient
from tests.helpers.telegram_stubs import FakeSender


@pytest.fixture
def store(tmp_path):
    """Isolated file-backed store per test."""
    return JsonFileStore(str(tmp_path / "bot_db.json"))


@pytest.fixture
def records(store):
    return RecordService(store)


@pytest.fixture
def completion():
    """Fake completion service; queue replies with ``completion.queue(...)``."""
    return FakeCompletionClient()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def services(store, completion, sender):
    """Wire the global service graph around the test doubles."""
    dependencies.init_services(
        document_store=store,
        intent_classifier=IntentClassifier(completion),
        telegram_sender=sender,
    )
    yield dependencies
    dependencies.pipeline = None


@pytest.fixture(autouse=True)
def fresh_update_dedup(monkeypatch):
    """Each test starts with an empty update dedup window."""
    import app.api.telegram as telegram_module

    monkeypatch.setattr(telegram_module, "update_dedup", UpdateDeduplicator(ttl_seconds=60))


@pytest.fixture
def app(services):
    """Get FastAPI application instance."""
    from main import app

    return app


@pytest_asyncio.fixture
async def async_client(app):
    """Create async HTTP client for testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
