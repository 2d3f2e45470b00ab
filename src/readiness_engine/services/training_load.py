"""Training load (ACWR) service."""

from collections import defaultdict
from datetime import UTC, date, datetime, timedelta

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.load import LoadSnapshot, ZoneBoundaries, compute_load
from readiness_engine.core.config import settings
from readiness_engine.models.training import TrainingLoadRecord, TrainingSession
from readiness_engine.services.policies import zone_boundaries_from_settings

logger = structlog.get_logger()


class TrainingLoadService:
    """Recomputes acute/chronic load from the full session history.

    Loads are never incremented in place: every refresh replays the EWMA
    from the first session day, so recomputing a day is idempotent and
    backfilled sessions are picked up.
    """

    def __init__(self, session: AsyncSession, boundaries: ZoneBoundaries | None = None) -> None:
        self.session = session
        self.boundaries = boundaries or zone_boundaries_from_settings()
        self.logger = logger.bind(service="training_load")

    async def daily_loads(self, athlete_id: str, as_of: date) -> dict[date, float]:
        """Summed session load per day, up to and including ``as_of``."""
        since = as_of - timedelta(days=settings.load_history_days)
        stmt = (
            select(TrainingSession)
            .where(TrainingSession.athlete_id == athlete_id)
            .where(TrainingSession.date >= since)
            .where(TrainingSession.date <= as_of)
        )
        result = await self.session.execute(stmt)
        totals: dict[date, float] = defaultdict(float)
        for session in result.scalars().all():
            totals[session.date] += session.effective_load
        return dict(totals)

    async def compute(self, athlete_id: str, as_of: date) -> LoadSnapshot:
        loads = await self.daily_loads(athlete_id, as_of)
        return compute_load(
            loads,
            as_of,
            acute_days=settings.acute_window_days,
            chronic_days=settings.chronic_window_days,
            boundaries=self.boundaries,
            min_history_days=settings.acwr_min_history_days,
        )

    async def refresh(self, athlete_id: str, as_of: date) -> LoadSnapshot:
        """Recompute and upsert the load record for one day.

        Args:
            athlete_id: Athlete identifier
            as_of: Day to compute (sessions on that day count)

        Returns:
            The computed snapshot
        """
        snapshot = await self.compute(athlete_id, as_of)
        values = {
            "daily_load": snapshot.daily_load,
            "acute_load": snapshot.acute_load,
            "chronic_load": snapshot.chronic_load,
            "acwr": snapshot.acwr,
            "zone": snapshot.zone.value if snapshot.zone else None,
            "history_days": snapshot.history_days,
            "calculated_at": datetime.now(UTC),
        }

        stmt = (
            select(TrainingLoadRecord)
            .where(TrainingLoadRecord.athlete_id == athlete_id)
            .where(TrainingLoadRecord.date == as_of)
        )
        existing = (await self.session.execute(stmt)).scalar_one_or_none()
        if existing is None:
            self.session.add(TrainingLoadRecord(athlete_id=athlete_id, date=as_of, **values))
        else:
            for key, value in values.items():
                setattr(existing, key, value)
        await self.session.flush()

        self.logger.debug(
            "Training load refreshed",
            athlete_id=athlete_id,
            as_of=str(as_of),
            acwr=round(snapshot.acwr, 3) if snapshot.acwr is not None else None,
            zone=values["zone"],
        )
        return snapshot

    async def latest_by_athlete(self, athlete_id: str | None = None) -> list[TrainingLoadRecord]:
        """Most recent load record per athlete."""
        latest = (
            select(
                TrainingLoadRecord.athlete_id,
                func.max(TrainingLoadRecord.date).label("max_date"),
            )
            .group_by(TrainingLoadRecord.athlete_id)
            .subquery()
        )
        stmt = select(TrainingLoadRecord).join(
            latest,
            (TrainingLoadRecord.athlete_id == latest.c.athlete_id)
            & (TrainingLoadRecord.date == latest.c.max_date),
        )
        if athlete_id is not None:
            stmt = stmt.where(TrainingLoadRecord.athlete_id == athlete_id)
        result = await self.session.execute(stmt.order_by(TrainingLoadRecord.athlete_id))
        return list(result.scalars().all())
