"""
Housekeeping scheduler.

Runs the periodic roast store sweep on an APScheduler interval job.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from roaster.services.roast_store import RoastStore

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "roast_store_sweep"


class HousekeepingScheduler:
    """
    Owns the APScheduler instance for background housekeeping.

    Only one job exists today: evicting expired entries from the RoastStore.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler()

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self):
        """Start the scheduler."""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Housekeeping scheduler started")

    def shutdown(self):
        """Shutdown the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Housekeeping scheduler stopped")

    def add_sweep_job(self, store: RoastStore, interval_seconds: float):
        """
        Schedule store.sweep() every `interval_seconds`.

        Replaces any existing sweep job.
        """
        job = self.scheduler.add_job(
            func=self._run_sweep,
            trigger=IntervalTrigger(seconds=interval_seconds),
            args=[store],
            id=SWEEP_JOB_ID,
            name="Sweep expired roasts",
            replace_existing=True,
        )
        logger.info(f"Scheduled roast store sweep every {interval_seconds:g}s (ttl={store.ttl_seconds:g}s)")
        return job

    @staticmethod
    def _run_sweep(store: RoastStore) -> int:
        try:
            return store.sweep()
        except Exception as e:
            logger.error(f"Roast store sweep failed: {e}", exc_info=True)
            return 0

    def get_scheduled_jobs(self) -> list:
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
                "trigger": str(job.trigger),
            })
        return jobs
