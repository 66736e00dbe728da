"""
Shared pytest configuration.

This file ensures the project root is on sys.path so that `import rapal`
works consistently in all tests, and wires the fakes from tests.utils into
isolated stores and apps.
"""

import sys
from pathlib import Path

import pytest


# Ensure project root is importable for test modules.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from rapal.chat_service import ChatService  # noqa: E402
from rapal.routes import create_app  # noqa: E402
from rapal.sessions import SessionStore  # noqa: E402
from rapal.settings import Settings  # noqa: E402
from tests.utils import FakeClock, FakeConversationFactory, make_settings  # noqa: E402


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def factory() -> FakeConversationFactory:
    return FakeConversationFactory()


@pytest.fixture()
def store(factory: FakeConversationFactory, clock: FakeClock) -> SessionStore:
    return SessionStore(factory, idle_threshold=1800, clock=clock)


@pytest.fixture()
def service(store: SessionStore) -> ChatService:
    return ChatService(store)


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def app(test_settings: Settings, store: SessionStore):
    return create_app(test_settings, store=store)


@pytest.fixture()
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client
