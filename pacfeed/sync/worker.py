"""Periodic refresh of all subscribed feeds.

The refresh job runs once at start-up and then every
``refresh_interval_minutes``; a failed cycle is logged and retried on the
next tick.
"""

from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import structlog

from .engine import FeedSynchronizer
from ..config.settings import settings

logger = structlog.get_logger()


class FeedWorker:
    """Schedules refresh cycles for a synchronizer."""

    def __init__(
        self,
        synchronizer: FeedSynchronizer,
        interval_minutes: int = None,
        scheduler: AsyncIOScheduler = None,
    ):
        self.synchronizer = synchronizer
        self.interval_minutes = interval_minutes or settings.refresh_interval_minutes
        self.scheduler = scheduler or AsyncIOScheduler()

    def setup_jobs(self, run_now: bool = True):
        """Configure the refresh job."""
        # An explicit next_run_time of None would add the job paused
        extra = {"next_run_time": datetime.now()} if run_now else {}
        self.scheduler.add_job(
            self.refresh_feeds,
            IntervalTrigger(minutes=self.interval_minutes),
            id='refresh_feeds',
            name='Refresh subscribed feeds',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **extra
        )
        logger.info("jobs_configured", interval_minutes=self.interval_minutes)

    async def refresh_feeds(self) -> dict:
        """Refresh all feeds; errors are logged, not raised."""
        logger.info("job_started", job="refresh_feeds")
        start_time = datetime.now()

        try:
            items = await self.synchronizer.refresh()
        except Exception as e:
            logger.error("job_failed", job="refresh_feeds", error=str(e))
            return {"error": str(e)}

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info("job_completed", job="refresh_feeds",
                    items=len(items), elapsed_seconds=elapsed)
        return {"items": len(items)}

    def start(self):
        """Start the scheduler. Must be called from a running event loop."""
        self.setup_jobs()
        self.scheduler.start()
        logger.info("worker_started", jobs=len(self.scheduler.get_jobs()))

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("worker_stopped")
