import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.config import settings
from app.conversation.state import ConversationStore
from app.scheduling import BackgroundScheduler
from app.sessions.repository import SessionRepositoryInterface

logger = logging.getLogger(__name__)


class SessionCleanupScheduler(BackgroundScheduler):
    """Periodically expires stale sessions and drops idle conversation states."""

    name = "Session cleanup scheduler"

    def __init__(
        self,
        session_repo: SessionRepositoryInterface,
        store: Optional[ConversationStore] = None,
        interval_seconds: Optional[int] = None,
        expiry: Optional[timedelta] = None,
    ):
        super().__init__(clock=lambda: datetime.now(timezone.utc))
        self.session_repo = session_repo
        self.store = store
        self.interval = interval_seconds or settings.SESSION_CLEANUP_INTERVAL_SECONDS
        self.expiry = expiry or timedelta(hours=settings.SESSION_EXPIRY_HOURS)

    async def _run_loop(self) -> None:
        """Main scheduler loop."""
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error in session cleanup job: {e}", exc_info=True)

            # Sleep until next run
            await asyncio.sleep(self.interval)

    async def run_once(self) -> tuple[int, int]:
        """Returns (expired sessions, evicted conversation states)."""
        now = self.now()
        expired = await self.session_repo.expire_stale(now - self.expiry)
        evicted = self.store.evict_expired(now) if self.store is not None else 0
        if expired or evicted:
            logger.info("Expired %d sessions, evicted %d idle conversations", expired, evicted)
        return expired, evicted
