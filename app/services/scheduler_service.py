import asyncio
import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from app.services.dvr_manager import DVRManager
from app.services.fetch_types import CycleResult
from app.utils.timezone import utc_now


logger = logging.getLogger(__name__)

CYCLE_JOB_ID = "dvr_cycle"


class DVRScheduler:
    """Drives DVR cycles, sleeping until just before the next broadcast"""

    def __init__(self):
        self.scheduler: AsyncIOScheduler | None = None
        self.manager: DVRManager | None = None
        self.last_result: CycleResult | None = None
        self._cycle_lock = asyncio.Lock()
        self._cycle_started: datetime | None = None

    def start(self, manager: DVRManager) -> None:
        """Start the scheduler with an immediate first cycle"""
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        self.manager = manager
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.scheduler.start()
        self._arm(utc_now())
        logger.info("Scheduler started")

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self.scheduler = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled cycle time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(CYCLE_JOB_ID)
        return job.next_run_time if job else None

    def _arm(self, wake_at: datetime) -> None:
        if not self.running:
            return

        run_date = max(wake_at, utc_now())
        self.scheduler.add_job(
            self._cycle_job,
            trigger=DateTrigger(run_date=run_date, timezone="UTC"),
            id=CYCLE_JOB_ID,
            replace_existing=True,
            max_instances=2,  # the finishing run re-arms before its instance is released
            coalesce=True,
            misfire_grace_time=None,
        )
        logger.debug(
            "Next cycle at %s, sleeping for %s",
            run_date.isoformat(),
            run_date - utc_now(),
        )

    async def _cycle_job(self) -> None:
        """Background job that runs one cycle"""
        await self.run_cycle()

    async def run_cycle(self) -> dict:
        """
        Run a cycle now and re-arm the loop from its result.

        A request arriving while a cycle is in progress is skipped, not queued;
        the running cycle re-arms the loop when it finishes.
        """
        if self.manager is None:
            raise RuntimeError("Scheduler not started")

        if self._cycle_lock.locked():
            logger.warning(
                "DVR cycle started at %s still running, skipping", self._cycle_started
            )
            started = self._cycle_started
            return {
                "status": "skipped",
                "running_since": started.isoformat() if started else None,
            }

        async with self._cycle_lock:
            self._cycle_started = utc_now()
            try:
                return await self._run_and_rearm()
            finally:
                self._cycle_started = None

    async def _run_and_rearm(self) -> dict:
        try:
            result = await self.manager.run_cycle()
        except Exception as exc:
            logger.error("Unexpected error in DVR cycle: %s", exc, exc_info=True)
            now = utc_now()
            result = CycleResult(
                started_at=now,
                wake_at=now + self.manager.error_retry,
                status="failed",
                error=str(exc),
            )

        self.last_result = result
        self._arm(result.wake_at)
        return result.to_dict()


dvr_scheduler = DVRScheduler()
