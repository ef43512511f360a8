"""
CFC Push Chatbot - Service container

The menu cache, conversation store and analytics counters are process-wide,
so they are built once at startup and handed to routers through
`get_container`.
"""

from datetime import timedelta
from typing import Optional

from app.config import settings
from app.analytics.repository import AnalyticsRepositoryInterface
from app.analytics.scheduler import DailyReportScheduler
from app.analytics.service import AnalyticsService
from app.conversation.engine import DialogueEngine
from app.conversation.state import ConversationStore
from app.menus.cache import MenuCache
from app.menus.repository import MenuRepositoryInterface
from app.menus.scheduler import CacheRefreshScheduler
from app.sessions.repository import SessionRepositoryInterface
from app.sessions.scheduler import SessionCleanupScheduler
from app.whatsapp.adapter import TwilioAdapter
from app.whatsapp.service import MessageDeduplicator, WhatsAppService


class ServiceContainer:
    """Wires repositories into the long-lived services."""

    def __init__(
        self,
        menu_repo: MenuRepositoryInterface,
        session_repo: SessionRepositoryInterface,
        analytics_repo: AnalyticsRepositoryInterface,
        adapter: Optional[TwilioAdapter] = None,
    ):
        self.menu_repo = menu_repo
        self.session_repo = session_repo
        self.analytics_repo = analytics_repo

        self.cache = MenuCache(menu_repo)
        self.store = ConversationStore(ttl=timedelta(minutes=settings.CONVERSATION_TTL_MINUTES))
        self.analytics = AnalyticsService(analytics_repo)
        self.engine = DialogueEngine(self.cache, self.store, self.analytics)
        self.adapter = adapter or TwilioAdapter()
        self.whatsapp = WhatsAppService(
            engine=self.engine,
            adapter=self.adapter,
            deduplicator=MessageDeduplicator(settings.DEDUP_WINDOW_SECONDS),
            session_repo=session_repo,
        )

        self.cache_scheduler = CacheRefreshScheduler(self.cache)
        self.report_scheduler = DailyReportScheduler(self.analytics)
        self.cleanup_scheduler = SessionCleanupScheduler(session_repo, self.store)

    async def start(self) -> None:
        await self.cache_scheduler.start()
        await self.report_scheduler.start()
        await self.cleanup_scheduler.start()

    async def stop(self) -> None:
        await self.cleanup_scheduler.stop()
        await self.report_scheduler.stop()
        await self.cache_scheduler.stop()


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Dependency returning the running service container."""
    if _container is None:
        raise RuntimeError("Services not initialized. Start the application first.")
    return _container


def set_container(container: Optional[ServiceContainer]) -> None:
    """Install the service container (startup, or tests)."""
    global _container
    _container = container
