"""
CFC Push Chatbot - Scheduling helpers

Shared background-loop base and wall-clock arithmetic for the daily jobs
(menu refresh, analytics report) and the periodic session cleanup.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def next_daily_run(now: datetime, hour: int, minute: int = 0) -> datetime:
    """
    Next occurrence of hour:minute strictly after `now`.

    If the time has already passed today (or is exactly now) the run is
    scheduled for the same time tomorrow.
    """
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if now >= candidate:
        candidate += timedelta(days=1)
    return candidate


def seconds_until(target: datetime, now: datetime) -> float:
    return max((target - now).total_seconds(), 0.0)


class BackgroundScheduler:
    """
    Owns one asyncio task running `_run_loop` until stopped.

    Subclasses implement `_run_loop`; start/stop follow the same lifecycle for
    every job so the lifespan handler can treat them uniformly.
    """

    name = "scheduler"

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._task: asyncio.Task | None = None
        self._running = False
        self._clock = clock or datetime.now
        self._last_daily_target: datetime | None = None

    @property
    def running(self) -> bool:
        return self._running

    def now(self) -> datetime:
        return self._clock()

    async def start(self) -> None:
        """Start the scheduler background task."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("%s started", self.name)

    async def stop(self) -> None:
        """Stop the scheduler background task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("%s stopped", self.name)

    async def _run_loop(self) -> None:
        raise NotImplementedError

    def next_daily_target(self, hour: int, minute: int = 0) -> datetime:
        """
        Next daily run time, never at or before the previous one.

        A wake-up slightly before the previous target (asyncio.sleep follows the
        monotonic clock) still yields the following day.
        """
        reference = self.now()
        if self._last_daily_target is not None and reference < self._last_daily_target:
            reference = self._last_daily_target
        target = next_daily_run(reference, hour, minute)
        self._last_daily_target = target
        return target

    async def _sleep_until_daily(self, hour: int, minute: int = 0) -> None:
        now = self.now()
        target = self.next_daily_target(hour, minute)
        logger.info("%s: next run at %s", self.name, target.isoformat(timespec="minutes"))
        await asyncio.sleep(seconds_until(target, now))
