import logging

from app.config import settings
from app.analytics.service import AnalyticsService
from app.scheduling import BackgroundScheduler

logger = logging.getLogger(__name__)


class DailyReportScheduler(BackgroundScheduler):
    """Exports the analytics report every day at the configured time."""

    name = "Daily report scheduler"

    def __init__(self, analytics: AnalyticsService, hour: int | None = None, minute: int | None = None, clock=None):
        super().__init__(clock=clock)
        self.analytics = analytics
        self.hour = settings.ANALYTICS_REPORT_HOUR if hour is None else hour
        self.minute = settings.ANALYTICS_REPORT_MINUTE if minute is None else minute

    async def _run_loop(self) -> None:
        """Main scheduler loop."""
        while self._running:
            await self._sleep_until_daily(self.hour, self.minute)
            try:
                await self.analytics.export_daily_report()
            except Exception as e:
                logger.error(f"Error in daily report job: {e}", exc_info=True)
