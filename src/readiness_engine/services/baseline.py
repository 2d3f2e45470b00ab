"""Rolling baseline service for athlete HRV and resting HR."""

from datetime import UTC, date, datetime, timedelta

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.baselines import RollingBaseline, rolling_baseline
from readiness_engine.core.config import settings
from readiness_engine.models.baseline import BaselineSnapshot, MetricName
from readiness_engine.models.metrics import DailyMetricsRecord

logger = structlog.get_logger()

METRIC_COLUMNS = {
    MetricName.HRV_RMSSD: DailyMetricsRecord.hrv_rmssd,
    MetricName.RESTING_HR: DailyMetricsRecord.resting_hr,
}


class BaselineService:
    """Service for calculating and storing athlete baselines.

    Baselines are personal reference values over the trailing window of
    check-ins. Snapshots are versioned: recomputing a day whose input window
    changed (a late or corrected check-in) bumps the version, recomputing an
    unchanged window is a no-op.
    """

    def __init__(self, session: AsyncSession, window_days: int | None = None) -> None:
        """Initialize baseline service.

        Args:
            session: Database session
            window_days: Rolling window length (defaults to settings)
        """
        self.session = session
        self.window_days = window_days or settings.baseline_window_days
        self.logger = logger.bind(service="baseline")

    async def _history(self, athlete_id: str, metric: MetricName, as_of: date) -> dict[date, float]:
        column = METRIC_COLUMNS[metric]
        since = as_of - timedelta(days=self.window_days)
        stmt = (
            select(DailyMetricsRecord.date, column)
            .where(DailyMetricsRecord.athlete_id == athlete_id)
            .where(DailyMetricsRecord.date >= since)
            .where(DailyMetricsRecord.date < as_of)
            .where(column.isnot(None))
        )
        result = await self.session.execute(stmt)
        return {row[0]: float(row[1]) for row in result.fetchall()}

    async def compute(self, athlete_id: str, metric: MetricName, as_of: date) -> RollingBaseline:
        """Compute a baseline without storing it."""
        history = await self._history(athlete_id, metric, as_of)
        return rolling_baseline(history, as_of, self.window_days)

    async def refresh(self, athlete_id: str, as_of: date) -> dict[MetricName, RollingBaseline]:
        """Recompute and store both baselines for a day.

        Args:
            athlete_id: Athlete identifier
            as_of: Day the baselines apply to

        Returns:
            Dict mapping metric to the computed baseline
        """
        baselines = {}
        for metric in METRIC_COLUMNS:
            baseline = await self.compute(athlete_id, metric, as_of)
            await self._upsert_snapshot(athlete_id, metric, baseline)
            baselines[metric] = baseline

        self.logger.debug(
            "Baselines refreshed",
            athlete_id=athlete_id,
            as_of=str(as_of),
            statuses={m.value: b.status.value for m, b in baselines.items()},
        )
        return baselines

    async def _upsert_snapshot(
        self,
        athlete_id: str,
        metric: MetricName,
        baseline: RollingBaseline,
    ) -> BaselineSnapshot:
        existing = await self.get_snapshot(athlete_id, metric, baseline.as_of)
        if existing is not None and existing.source_fingerprint == baseline.fingerprint:
            return existing

        values = {
            "mean": baseline.mean,
            "std_dev": baseline.std_dev,
            "sample_count": baseline.sample_count,
            "status": baseline.status.value,
            "window_start": baseline.window_start,
            "window_end": baseline.window_end,
            "source_fingerprint": baseline.fingerprint,
            "calculated_at": datetime.now(UTC),
        }
        if existing is None:
            snapshot = BaselineSnapshot(
                athlete_id=athlete_id,
                metric_name=metric.value,
                as_of_date=baseline.as_of,
                version=1,
                **values,
            )
            self.session.add(snapshot)
        else:
            snapshot = existing
            for key, value in values.items():
                setattr(snapshot, key, value)
            snapshot.version = existing.version + 1
            self.logger.info(
                "Baseline input window changed",
                athlete_id=athlete_id,
                metric=metric.value,
                as_of=str(baseline.as_of),
                version=snapshot.version,
            )
        await self.session.flush()
        return snapshot

    async def get_snapshot(
        self,
        athlete_id: str,
        metric: MetricName,
        as_of: date,
    ) -> BaselineSnapshot | None:
        """Get the stored baseline for one metric and day."""
        stmt = (
            select(BaselineSnapshot)
            .where(BaselineSnapshot.athlete_id == athlete_id)
            .where(BaselineSnapshot.metric_name == metric.value)
            .where(BaselineSnapshot.as_of_date == as_of)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
