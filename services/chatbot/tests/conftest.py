"""
CFC Push Chatbot - Test Configuration

Shared fixtures for CI-safe testing without MongoDB or Twilio.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.analytics.repository import InMemoryAnalyticsRepository
from app.analytics.service import AnalyticsService
from app.container import ServiceContainer, set_container
from app.conversation.engine import DialogueEngine
from app.conversation.state import ConversationStore
from app.menus.cache import MenuCache
from app.menus.models import MenuNode, NodeKind, WelcomeMessage
from app.menus.repository import InMemoryMenuRepository
from app.sessions.repository import InMemorySessionRepository
from app.whatsapp.adapter import TwilioAdapter
from app.whatsapp.schemas import SendResult


def build_menu_nodes() -> list[MenuNode]:
    """
    Menu tree used across tests:

    1. Prayer (a)            -> 1. Submit request (a1), 2. Back to main (a2, action)
    2. Events (b)            -> leaf content
    3. Goodbye (c)           -> END_CHAT action
    """
    return [
        MenuNode(id="b", title="Events", order=2, description="Weekly agenda", content="Sunday 10am"),
        MenuNode(id="a", title="Prayer", order=1, kind=NodeKind.SUBMENU, description="Prayer ministry"),
        MenuNode(id="a1", title="Submit request", order=1, parent_id="a", content="Send us your request"),
        MenuNode(
            id="a2",
            title="Back to main",
            order=2,
            parent_id="a",
            kind=NodeKind.ACTION,
            payload="BACK_TO_MAIN",
        ),
        MenuNode(id="c", title="Goodbye", order=3, kind=NodeKind.ACTION, payload="END_CHAT"),
        MenuNode(id="x", title="Hidden", order=4, is_active=False),
    ]


class FrozenClock:
    """A clock that returns a fixed time for deterministic testing."""

    def __init__(self, frozen_time: datetime):
        self._frozen_time = frozen_time

    def __call__(self) -> datetime:
        return self._frozen_time

    def set(self, new_time: datetime) -> None:
        self._frozen_time = new_time


@pytest.fixture
def welcome() -> WelcomeMessage:
    return WelcomeMessage(
        title="CFC PUSH",
        message="Bem-vindo!",
        instructions="Escolha uma opção:",
        quick_tip="Dica rápida",
    )


@pytest.fixture
def menu_repository(welcome) -> InMemoryMenuRepository:
    return InMemoryMenuRepository(build_menu_nodes(), welcome=welcome)


@pytest.fixture
async def menu_cache(menu_repository) -> MenuCache:
    cache = MenuCache(menu_repository, refresh_hour=6)
    await cache.refresh()
    return cache


@pytest.fixture
def conversation_store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture
def analytics() -> AnalyticsService:
    return AnalyticsService(InMemoryAnalyticsRepository())


@pytest.fixture
def engine(menu_cache, conversation_store, analytics) -> DialogueEngine:
    return DialogueEngine(menu_cache, conversation_store, analytics)


@pytest.fixture
def mock_adapter() -> TwilioAdapter:
    adapter = MagicMock(spec=TwilioAdapter)
    adapter.configured = True
    adapter.send_message = AsyncMock(return_value=SendResult(success=True, message_sid="SM123"))
    return adapter


@pytest.fixture
def container(menu_repository, mock_adapter) -> ServiceContainer:
    """Service container wired to in-memory repositories, menu cache loaded."""
    services = ServiceContainer(
        menu_repo=menu_repository,
        session_repo=InMemorySessionRepository(),
        analytics_repo=InMemoryAnalyticsRepository(),
        adapter=mock_adapter,
    )
    asyncio.run(services.cache.refresh())
    return services


@pytest.fixture
def client(container, monkeypatch):
    """Create test client with in-memory services and no processing delay."""
    monkeypatch.setattr("app.whatsapp.router.settings.WEBHOOK_PROCESSING_DELAY_SECONDS", 0)
    set_container(container)
    yield TestClient(app)
    set_container(None)
