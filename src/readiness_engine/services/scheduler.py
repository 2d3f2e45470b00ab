"""Nightly recompute scheduler using APScheduler.

Runs NightlyRecomputeService once a day at the configured UTC time.

Configuration:
    NIGHTLY_RECOMPUTE_ENABLED: Enable/disable the nightly job
    NIGHTLY_RECOMPUTE_HOUR: Hour of day (UTC)
    NIGHTLY_RECOMPUTE_MINUTE: Minute of hour

Usage:
    # In app startup
    scheduler = NightlyScheduler(async_session_maker)
    await scheduler.start()

    # In app shutdown
    await scheduler.stop()
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from readiness_engine.core.config import settings
from readiness_engine.services.batch import NightlyRecomputeService
from readiness_engine.services.notifications import NotificationSink

if TYPE_CHECKING:
    from apscheduler.job import Job

logger = structlog.get_logger()


class NightlyScheduler:
    """Background scheduler for the nightly recompute.

    Attributes:
        session_factory: Async session factory for database access
        scheduler: APScheduler instance
        is_running: Whether scheduler is currently running
        last_run_at: Timestamp of last run
        last_run_stats: Summary of last run
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sink: NotificationSink | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.sink = sink
        self.scheduler = AsyncIOScheduler(timezone=UTC)
        self.is_running = False
        self.last_run_at: datetime | None = None
        self.last_run_stats: dict[str, object] | None = None
        self._job: Job | None = None
        self.logger = logger.bind(component="nightly_scheduler")

    async def start(self) -> None:
        """Start the background scheduler."""
        if not settings.nightly_recompute_enabled:
            self.logger.info("Nightly scheduler disabled by configuration")
            return

        if self.is_running:
            self.logger.warning("Scheduler already running")
            return

        self._job = self.scheduler.add_job(
            self._run_cycle,
            trigger=CronTrigger(
                hour=settings.nightly_recompute_hour,
                minute=settings.nightly_recompute_minute,
                timezone=UTC,
            ),
            id="nightly_recompute",
            name="Recompute load and baselines",
            replace_existing=True,
            max_instances=1,  # Prevent overlapping runs
        )
        self.scheduler.start()
        self.is_running = True

        self.logger.info(
            "Nightly scheduler started",
            hour=settings.nightly_recompute_hour,
            minute=settings.nightly_recompute_minute,
        )

    async def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if not self.is_running:
            return

        self.scheduler.shutdown(wait=True)
        self.is_running = False
        self.logger.info("Nightly scheduler stopped")

    async def _run_cycle(self, trigger: str = "scheduler") -> None:
        """Run one recompute. Errors are recorded, never raised to APScheduler."""
        try:
            summary = await NightlyRecomputeService(self.session_factory, sink=self.sink).run()
            self.last_run_at = datetime.now(UTC)
            self.last_run_stats = {"trigger": trigger, **summary.to_dict()}
        except Exception as e:
            self.logger.exception("Nightly recompute cycle failed", error=str(e))
            self.last_run_stats = {
                "trigger": trigger,
                "error": str(e),
                "timestamp": datetime.now(UTC).isoformat(),
            }

    async def trigger_manual(self) -> dict[str, object]:
        """Run a recompute now, outside the schedule."""
        self.logger.info("Manual recompute triggered")
        await self._run_cycle(trigger="manual")
        return self.last_run_stats or {"status": "completed"}

    def get_status(self) -> dict[str, object]:
        """Get scheduler status for monitoring."""
        next_run = None
        if self._job and self.is_running:
            next_run_time = self._job.next_run_time
            if next_run_time:
                next_run = next_run_time.isoformat()

        return {
            "enabled": settings.nightly_recompute_enabled,
            "is_running": self.is_running,
            "schedule": f"{settings.nightly_recompute_hour:02d}:{settings.nightly_recompute_minute:02d} UTC",
            "next_run_at": next_run,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_run_stats": self.last_run_stats,
        }


# Global scheduler instance (initialized in app startup)
_scheduler: NightlyScheduler | None = None


def get_scheduler() -> NightlyScheduler | None:
    return _scheduler


def set_scheduler(scheduler: NightlyScheduler | None) -> None:
    global _scheduler
    _scheduler = scheduler
