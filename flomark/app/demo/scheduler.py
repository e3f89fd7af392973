"""
Periodic demo reset.
A single asyncio task sleeps for a random interval inside the configured
window, reseeds the store, and schedules the next reset.
"""
from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone

from app.core.config import settings
from app.demo.store import DemoStore, demo_store

logger = logging.getLogger(__name__)


class DemoResetScheduler:

    def __init__(
        self,
        store: DemoStore,
        min_minutes: float | None = None,
        max_minutes: float | None = None,
    ) -> None:
        self.store = store
        self.min_minutes = min_minutes if min_minutes is not None else settings.DEMO_RESET_MIN_MINUTES
        self.max_minutes = max_minutes if max_minutes is not None else settings.DEMO_RESET_MAX_MINUTES
        self.next_reset_at: datetime | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_interval(self) -> float:
        """Seconds until the next reset, drawn uniformly from the window."""
        return random.uniform(self.min_minutes, self.max_minutes) * 60

    def seconds_until_reset(self) -> int | None:
        if self.next_reset_at is None:
            return None
        remaining = (self.next_reset_at - datetime.now(timezone.utc)).total_seconds()
        return max(0, int(remaining))

    def start(self) -> None:
        if self.running:
            logger.warning("Demo reset scheduler already running")
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.next_reset_at = None
        logger.info("Demo reset scheduler stopped")

    async def _run(self) -> None:
        while True:
            interval = self.next_interval()
            self.next_reset_at = datetime.now(timezone.utc) + timedelta(seconds=interval)
            logger.info("Demo data will reset in %.1f minutes", interval / 60)
            await asyncio.sleep(interval)
            try:
                self.store.reset()
            except Exception:
                # A failed reseed must not end the loop; the next cycle retries.
                logger.exception("Demo data reset failed")


demo_scheduler = DemoResetScheduler(demo_store)
