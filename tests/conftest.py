import pytest
from fastapi.testclient import TestClient

from core import db
from notifications.dependencies import get_dispatcher
from notifications.dispatcher import NotificationDispatcher

from .fakes import InMemoryStore, RecordingTransport

OPERATOR = "owner@example.com"


@pytest.fixture(autouse=True)
def mail_env(monkeypatch):
    monkeypatch.setenv("MAIL_USER", "site@example.com")
    monkeypatch.setenv("OPERATOR_EMAIL", OPERATOR)
    monkeypatch.setenv("SITE_NAME", "Test site")


@pytest.fixture
def store(monkeypatch) -> InMemoryStore:
    """Fresh in-memory document store patched over `core.db.session`."""
    memory = InMemoryStore()
    monkeypatch.setattr(db, "session", memory.session)
    return memory


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def dispatcher(transport) -> NotificationDispatcher:
    return NotificationDispatcher(transport, sender_address="site@example.com", sender_name="Test site")


@pytest.fixture
def client(store, dispatcher) -> TestClient:
    from main import app

    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
