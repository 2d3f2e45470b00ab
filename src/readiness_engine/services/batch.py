"""Nightly recomputation across athletes.

Each athlete is processed in its own session and under its own write lock,
so one athlete's failure is recorded and the run moves on. After all
athletes, FAILED coach notifications get another delivery attempt.
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from readiness_engine.core.locks import AthleteLockRegistry, athlete_locks
from readiness_engine.models.athlete import Athlete
from readiness_engine.services.baseline import BaselineService
from readiness_engine.services.notifications import NotificationService, NotificationSink
from readiness_engine.services.training_load import TrainingLoadService

logger = structlog.get_logger()


@dataclass
class RecomputeSummary:
    as_of: date
    processed: int = 0
    succeeded: int = 0
    failed: list[dict[str, str]] = field(default_factory=list)
    notifications: dict[str, int] = field(default_factory=dict)
    duration_ms: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "as_of": self.as_of.isoformat(),
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": list(self.failed),
            "notifications": dict(self.notifications),
            "duration_ms": self.duration_ms,
        }


class NightlyRecomputeService:
    """Refreshes load records and baselines for every active athlete."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sink: NotificationSink | None = None,
        locks: AthleteLockRegistry | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.sink = sink
        self.locks = locks or athlete_locks
        self.logger = logger.bind(service="nightly_recompute")

    async def _active_athlete_ids(self) -> list[str]:
        async with self.session_factory() as session:
            stmt = select(Athlete.id).where(Athlete.is_active.is_(True)).order_by(Athlete.id)
            return list((await session.execute(stmt)).scalars().all())

    async def recompute_athlete(self, athlete_id: str, as_of: date) -> None:
        async with self.locks.hold(athlete_id), self.session_factory() as session:
            try:
                await TrainingLoadService(session).refresh(athlete_id, as_of)
                await BaselineService(session).refresh(athlete_id, as_of)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def run(self, as_of: date | None = None) -> RecomputeSummary:
        """Recompute every active athlete for one day.

        Args:
            as_of: Day to compute (defaults to today, UTC)

        Returns:
            RecomputeSummary with per-athlete failures
        """
        start = datetime.now(UTC)
        summary = RecomputeSummary(as_of=as_of or start.date())
        self.logger.info("Starting nightly recompute", as_of=str(summary.as_of))

        for athlete_id in await self._active_athlete_ids():
            summary.processed += 1
            try:
                await self.recompute_athlete(athlete_id, summary.as_of)
                summary.succeeded += 1
            except Exception as e:
                self.logger.exception("Recompute failed", athlete_id=athlete_id, error=str(e))
                summary.failed.append({"athlete_id": athlete_id, "error": str(e)})

        async with self.session_factory() as session:
            try:
                summary.notifications = await NotificationService(session, self.sink).retry_failed()
                await session.commit()
            except Exception as e:
                await session.rollback()
                self.logger.exception("Notification retry failed", error=str(e))

        summary.duration_ms = int((datetime.now(UTC) - start).total_seconds() * 1000)
        self.logger.info(
            "Nightly recompute complete",
            processed=summary.processed,
            succeeded=summary.succeeded,
            failed=len(summary.failed),
            duration_ms=summary.duration_ms,
        )
        return summary
