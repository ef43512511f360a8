import logging

from app.menus.cache import MenuCache
from app.scheduling import BackgroundScheduler

logger = logging.getLogger(__name__)


class CacheRefreshScheduler(BackgroundScheduler):
    """Refreshes the menu cache at startup and then daily at the configured hour."""

    name = "Menu cache scheduler"

    def __init__(self, cache: MenuCache, clock=None):
        super().__init__(clock=clock)
        self.cache = cache

    async def force_refresh(self) -> bool:
        """Manual refresh outside the schedule."""
        logger.info("Forcing manual menu cache refresh")
        return await self.cache.refresh()

    async def _run_loop(self) -> None:
        """Main scheduler loop."""
        await self._run_job()
        while self._running:
            await self._sleep_until_daily(self.cache.refresh_hour)
            await self._run_job()

    async def _run_job(self) -> None:
        try:
            await self.cache.refresh()
        except Exception as e:
            logger.error(f"Error in menu refresh job: {e}", exc_info=True)
