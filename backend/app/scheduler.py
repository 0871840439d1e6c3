"""APScheduler wiring for the opportunity aggregator.

:class:`AggregatorScheduler` owns one ``AsyncIOScheduler`` with a single cron
job that runs an aggregation cycle (every 6 hours by default).  It also
exposes :meth:`AggregatorScheduler.trigger_now` for operator-initiated runs,
which returns immediately while the cycle runs in the background.

Cycles never overlap: a scheduled run that fires while another cycle is in
progress is skipped, and a manual trigger is refused.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.aggregator_service import AggregatorService, CycleSummary
from app.config import AggregatorSettings, get_settings

logger = logging.getLogger(__name__)

JOB_ID = "aggregate_opportunities"
JOB_NAME = "Aggregate external opportunities"


class AggregatorScheduler:
    """Start/stop lifecycle around the periodic aggregation job."""

    def __init__(
        self,
        service: AggregatorService,
        settings: Optional[AggregatorSettings] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        settings = settings or get_settings()
        self.service = service
        self.cron = settings.cron
        self.run_on_startup = settings.run_on_startup
        self._scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return getattr(self._scheduler, "running", False)

    @property
    def is_cycle_running(self) -> bool:
        return self._lock.locked() or bool(self._tasks)

    @property
    def last_summary(self) -> Optional[CycleSummary]:
        return self.service.last_summary

    @property
    def next_run_time(self) -> Optional[datetime]:
        if not self.running:
            return None
        job = self._scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    # ------------------------------------------------------------------
    # Cycle execution
    # ------------------------------------------------------------------

    async def run_cycle_guarded(self, trigger: str = "scheduled") -> Optional[CycleSummary]:
        """Run one cycle unless another is already in progress.

        Returns the cycle summary, or None if the run was skipped.
        """
        if self._lock.locked():
            logger.info(f"[Aggregator] {trigger} cycle skipped: a cycle is already running")
            return None

        async with self._lock:
            try:
                return await self.service.run_cycle(trigger=trigger)
            except Exception:
                logger.exception(f"[Aggregator] {trigger} cycle crashed")
                return None

    async def _run_scheduled(self) -> None:
        # Tracked like manual runs so shutdown() can cancel it
        task = asyncio.current_task()
        self._tasks.add(task)
        try:
            await self.run_cycle_guarded(trigger="scheduled")
        finally:
            self._tasks.discard(task)

    def trigger_now(self, trigger: str = "manual") -> bool:
        """Start a cycle in the background and return without waiting.

        Returns False (and starts nothing) if a cycle is already running.
        Must be called from within the running event loop.
        """
        if self.is_cycle_running:
            logger.info(f"[Aggregator] {trigger} trigger refused: a cycle is already running")
            return False

        task = asyncio.create_task(self.run_cycle_guarded(trigger=trigger))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        logger.info(f"[Aggregator] {trigger} cycle dispatched")
        return True

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception():
            logger.error("Triggered aggregation cycle failed: %s", task.exception())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Register the cron job and start the scheduler (idempotent)."""
        if self.running:
            logger.info("Scheduler already running; skipping start")
            return

        self._scheduler.add_job(
            self._run_scheduled,
            CronTrigger.from_crontab(self.cron, timezone="UTC"),
            id=JOB_ID,
            name=JOB_NAME,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info(f"[Aggregator] Scheduler started (cron: '{self.cron}' UTC)")

        if self.run_on_startup:
            self.trigger_now(trigger="startup")

    async def shutdown(self) -> None:
        """Stop the scheduler and cancel any in-flight cycle, scheduled or manual."""
        if self.running:
            self._scheduler.shutdown(wait=False)

        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        logger.info("[Aggregator] Scheduler stopped")
