import logging
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from .state_store import StateStore

logger = logging.getLogger(__name__)


class EvictionSweeper:
    """Periodically removes hosts that have stopped being reported."""

    JOB_ID = "evict_inactive_hosts"

    def __init__(self, store: StateStore, inactivity_timeout: float, interval: float = 1.0,
                 scheduler: Optional[BackgroundScheduler] = None):
        self.store = store
        self.inactivity_timeout = timedelta(seconds=inactivity_timeout)
        self.interval = interval
        # Scheduler is created here but started explicitly so tests can drive sweep() by hand
        self.scheduler = scheduler or BackgroundScheduler()

    def sweep(self, now: Optional[datetime] = None) -> int:
        """Run one eviction pass. Returns how many hosts were removed."""
        try:
            evicted = self.store.evict_inactive(self.inactivity_timeout, now=now)
        except Exception:
            logger.exception("❌ Error in eviction sweep")
            return 0

        for event in evicted:
            logger.info(
                f"🗑️ Removed host '{event.host}' from the list of monitored hosts "
                f"after {self.inactivity_timeout.total_seconds():g}s of inactivity"
            )
        return len(evicted)

    def start(self) -> None:
        if self.scheduler.get_job(self.JOB_ID) is None:
            self.scheduler.add_job(
                self.sweep,
                "interval",
                seconds=self.interval,
                id=self.JOB_ID,
                max_instances=1,
                coalesce=True,
            )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(
            f"🧹 Eviction sweep every {self.interval:g}s "
            f"(inactivity timeout {self.inactivity_timeout.total_seconds():g}s)"
        )

    def shutdown(self) -> None:
        try:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
        except Exception:
            logger.exception("❌ Error stopping eviction scheduler")
