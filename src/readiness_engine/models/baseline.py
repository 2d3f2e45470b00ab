"""Versioned rolling baseline snapshots."""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class MetricName(str, Enum):
    """Metrics with a rolling baseline."""

    HRV_RMSSD = "hrv_rmssd"
    RESTING_HR = "resting_hr"


class BaselineStatus(str, Enum):
    """Status of a baseline calculation."""

    READY = "ready"  # Full window
    PARTIAL = "partial"  # Enough samples to emit signals
    INSUFFICIENT = "insufficient"  # No signals


class BaselineSnapshot(Base, AthleteScopedMixin, TimestampMixin):
    """Rolling baseline as of a given day.

    A cache over the daily metrics history: it can always be regenerated.
    ``version`` increments when a recompute sees a different input window
    (for example after a backfilled or corrected check-in).
    """

    __tablename__ = "baseline_snapshots"
    __table_args__ = (
        UniqueConstraint("athlete_id", "metric_name", "as_of_date", name="uq_baseline_snapshot"),
        {"comment": "Rolling HRV/RHR baselines per athlete and day"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    metric_name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    as_of_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Baseline applies to this day (window ends the day before)",
    )

    mean: Mapped[float | None] = mapped_column(Float)
    std_dev: Mapped[float | None] = mapped_column(Float)
    sample_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=BaselineStatus.INSUFFICIENT.value,
        nullable=False,
    )
    window_start: Mapped[date] = mapped_column(Date, nullable=False)
    window_end: Mapped[date] = mapped_column(Date, nullable=False)

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    source_fingerprint: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Hash of the input window values",
    )
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<BaselineSnapshot(athlete_id={self.athlete_id}, metric={self.metric_name}, "
            f"as_of={self.as_of_date}, v{self.version}, status={self.status})>"
        )
