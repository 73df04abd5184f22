"""Periodic sync scheduling.

This module provides:
- PeriodicSyncScheduler: Runs a sync pass at a fixed interval

Queued work is held in memory only, so periodic passes are what picks up
records left PENDING by an earlier failed attempt or a previous session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from fitsync.core.config import DEFAULT_SYNC_INTERVAL

if TYPE_CHECKING:
    from fitsync.client.sync.engine import CloudSyncEngine
    from fitsync.client.sync.types import SyncResult

logger = logging.getLogger(__name__)


class PeriodicSyncScheduler:
    """Runs ``engine.run_sync_pass`` every ``interval_seconds``."""

    def __init__(
        self,
        engine: CloudSyncEngine,
        interval_seconds: float = DEFAULT_SYNC_INTERVAL,
    ) -> None:
        """Initialize the scheduler.

        Args:
            engine: Sync engine to drive.
            interval_seconds: Seconds between passes.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._engine = engine
        self._interval = interval_seconds
        self._scheduler: BackgroundScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def _sync_job(self) -> None:
        """Job function for scheduled sync."""
        try:
            result = self._engine.run_sync_pass()
        except Exception:
            logger.exception("Error during scheduled sync pass")
            return
        if result is None:
            logger.debug("Scheduled sync skipped: a pass is already running")

    def start(self) -> None:
        """Start the scheduler."""
        if self._scheduler is not None:
            return  # Already running

        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self._sync_job,
            trigger=IntervalTrigger(seconds=self._interval),
            id="periodic_sync",
            name="Periodic sync pass",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Sync scheduler started (every %.0fs)", self._interval)

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Sync scheduler stopped")

    def run_now(self) -> SyncResult | None:
        """Run a sync pass immediately (manual trigger)."""
        return self._engine.run_sync_pass()
