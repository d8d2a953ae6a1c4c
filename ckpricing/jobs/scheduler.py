"""
Daily price sync scheduling.

A SyncScheduler owns at most one recurring asyncio task. The first
register_once() call starts it; later calls are no-ops, so bootstrap code
may call it freely.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from threading import Lock

from ckpricing.config import settings, utcnow
from ckpricing.models.sync import SyncResult

logger = logging.getLogger(__name__)

SyncJob = Callable[[], Awaitable[SyncResult]]


def seconds_until_next_run(now: datetime, hour: int, minute: int) -> float:
    """
    Seconds from now until the next hh:mm.

    A run time equal to now is scheduled for tomorrow.
    """
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class SyncScheduler:
    """Runs a sync job once a day at a fixed UTC time."""

    def __init__(
        self,
        job: SyncJob,
        hour: int | None = None,
        minute: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.hour = settings.sync_hour if hour is None else hour
        self.minute = settings.sync_minute if minute is None else minute
        self._job = job
        self._clock = clock or utcnow
        self._lock = Lock()
        self._registered = False
        self._task: asyncio.Task[None] | None = None

    @property
    def is_scheduled(self) -> bool:
        return self._registered

    def register_once(self) -> bool:
        """
        Start the daily loop on the running event loop.

        Returns:
            True if this call scheduled the job, False if it already was.

        Raises:
            RuntimeError: If called with no running event loop
        """
        with self._lock:
            if self._registered:
                logger.info("Price sync already scheduled, skipping.")
                return False

            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run_forever(), name="ck-price-sync")
            self._registered = True

        logger.info(
            "Card Kingdom price sync scheduled to run daily at %02d:%02d UTC.",
            self.hour,
            self.minute,
        )
        return True

    async def run_now(self) -> SyncResult | None:
        """Run the job once. Failures are logged, not raised."""
        logger.info("Running scheduled Card Kingdom price sync...")
        try:
            result = await self._job()
        except Exception:
            logger.exception("Scheduled sync failed")
            return None

        logger.info(
            "Scheduled sync complete: %d/%d products updated.",
            result.updated,
            result.total_products,
        )
        return result

    async def _run_forever(self) -> None:
        while True:
            delay = seconds_until_next_run(self._clock(), self.hour, self.minute)
            logger.debug("Next price sync in %.0f seconds", delay)
            await asyncio.sleep(delay)
            await self.run_now()

    async def wait(self) -> None:
        """Block until the scheduled task ends (normally never)."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise

    def cancel(self) -> None:
        """
        Stop the scheduled task.

        The scheduler stays registered; it is not started again.
        """
        if self._task is not None:
            self._task.cancel()
