"""
CFC Push Chatbot - Analytics Service

In-memory daily counters fed by the dialogue engine, exported to MongoDB once
a day by the report scheduler.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.analytics.models import DailyStats
from app.analytics.repository import AnalyticsRepositoryInterface

logger = logging.getLogger(__name__)

LOG_EVERY_N_MESSAGES = 50


class AnalyticsService:
    """
    Tracks interactions for the current day.

    Tracking methods are synchronous and only touch memory, so the dialogue
    engine can call them on every message without waiting on storage.
    """

    def __init__(
        self,
        repository: Optional[AnalyticsRepositoryInterface] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self._clock = clock or datetime.now
        self.stats = DailyStats.for_day(self._clock().date())

    def track_interaction(self, phone: str, node_id: Optional[str] = None) -> None:
        """Count one message, its hour, and optionally one menu access."""
        stats = self.stats
        stats.total_messages += 1
        stats.unique_phones.add(phone)
        stats.peak_hours[self._clock().hour] += 1

        if node_id:
            stats.popular_menus[node_id] = stats.popular_menus.get(node_id, 0) + 1

        if stats.total_messages % LOG_EVERY_N_MESSAGES == 0:
            logger.info("%d messages today", stats.total_messages)

    def track_new_session(self, phone: str) -> None:
        self.stats.total_sessions += 1
        self.stats.unique_phones.add(phone)

    def get_current_stats(self) -> dict:
        return self.stats.to_dict()

    async def export_daily_report(self) -> bool:
        """
        Persist today's counters and start counting for the next day.

        Counters are reset even if persistence fails; the failure is logged.
        """
        stats = self.stats
        logger.info(
            "Daily analytics report %s: %d unique users, %d messages, %.1f messages/session, peak hour %d:00",
            stats.date,
            stats.unique_users,
            stats.total_messages,
            stats.messages_per_session(),
            stats.peak_hour(),
        )
        for position, entry in enumerate(stats.top_menus(5), start=1):
            logger.info("  top %d: %s (%d)", position, entry["menu_id"], entry["count"])

        saved = False
        if self.repository is None:
            logger.warning("No analytics repository configured, report not persisted")
        else:
            try:
                await self.repository.save_daily_report(stats)
                saved = True
                logger.info("Daily report %s saved", stats.date)
            except Exception as e:
                logger.error(f"Error saving daily report {stats.date}: {e}", exc_info=True)

        self._reset()
        return saved

    def _reset(self) -> None:
        next_day = self._clock().date() + timedelta(days=1)
        self.stats = DailyStats.for_day(next_day)
        logger.info("Analytics counters reset for %s", self.stats.date)
