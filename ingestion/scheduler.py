import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from ingestion.runner import ExperimentRunner

logger = logging.getLogger(__name__)


class ExperimentScheduler:
    """
    Runs the experiment at startup and then on a fixed interval.

    A failed run is not retried: the error is kept and ``wait_for_failure``
    returns it so the owner can stop the scheduler and shut down.
    """

    def __init__(self, runner: ExperimentRunner, interval_hours: Optional[float] = None):
        self.runner = runner
        self.interval_hours = interval_hours or settings.EXPERIMENT_INTERVAL_HOURS
        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self.failure: Optional[BaseException] = None
        self._failed = asyncio.Event()

    async def run_experiment_job(self):
        """Job to run one experiment (one pass per lookback window)"""
        logger.info("Scheduler: Starting experiment")
        try:
            summaries = await self.runner.run_experiment()
        except Exception as e:
            logger.critical(f"Scheduler: Experiment failed - {e}")
            self.failure = e
            self._failed.set()
            return

        logger.info(f"Scheduler: Experiment finished ({len(summaries)} passes)")

    def start(self):
        """Start the scheduler; the first run starts immediately"""
        self.scheduler.add_job(
            self.run_experiment_job,
            trigger=IntervalTrigger(hours=self.interval_hours),
            id="experiment_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self.scheduler.start()
        logger.info(f"Experiment Scheduler started (every {self.interval_hours}h)")

    async def stop(self):
        """Shut the scheduler down; returns once it has stopped"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            # APScheduler 3.11 applies the shutdown on the next loop iteration
            await asyncio.sleep(0)
            logger.info("Experiment Scheduler stopped")

    async def wait_for_failure(self) -> BaseException:
        await self._failed.wait()
        return self.failure
