"""Training session and training-load models."""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class ACWRZone(str, Enum):
    """Acute:chronic workload ratio risk zones."""

    DETRAINING = "detraining"  # < 0.8
    OPTIMAL = "optimal"  # 0.8 - 1.3
    CAUTION = "caution"  # 1.3 - 1.5
    DANGER = "danger"  # 1.5 - 2.0
    CRITICAL = "critical"  # >= 2.0


class TrainingSession(Base, AthleteScopedMixin, TimestampMixin):
    """A completed training session contributing to load."""

    __tablename__ = "training_sessions"
    __table_args__ = ({"comment": "Completed sessions feeding the load model"},)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    sport: Mapped[str] = mapped_column(String(30), default="running", nullable=False)
    duration_minutes: Mapped[float | None] = mapped_column(Float)
    rpe: Mapped[int | None] = mapped_column(Integer, comment="Session RPE (1-10)")
    load: Mapped[float | None] = mapped_column(
        Float,
        comment="Explicit load (e.g. TSS); sRPE is used when absent",
    )
    workout_id: Mapped[str | None] = mapped_column(String(36), comment="Planned workout, if any")

    @property
    def effective_load(self) -> float:
        """Explicit load, else session RPE x minutes."""
        if self.load is not None:
            return float(self.load)
        if self.rpe is not None and self.duration_minutes is not None:
            return float(self.rpe) * float(self.duration_minutes)
        return 0.0

    def __repr__(self) -> str:
        """String representation."""
        return f"<TrainingSession(athlete_id={self.athlete_id}, date={self.date}, load={self.effective_load:.0f})>"


class TrainingLoadRecord(Base, AthleteScopedMixin, TimestampMixin):
    """Acute/chronic load and ACWR for one athlete-day.

    Always recomputed from the full session history; never incremented.
    """

    __tablename__ = "training_load_records"
    __table_args__ = (
        UniqueConstraint("athlete_id", "date", name="uq_training_load_athlete_date"),
        {"comment": "EWMA acute/chronic load per athlete and day"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    daily_load: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    acute_load: Mapped[float] = mapped_column(Float, nullable=False)
    chronic_load: Mapped[float] = mapped_column(Float, nullable=False)
    acwr: Mapped[float | None] = mapped_column(Float, comment="Null while chronic load is zero")
    zone: Mapped[str | None] = mapped_column(String(20))
    history_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TrainingLoadRecord(athlete_id={self.athlete_id}, date={self.date}, "
            f"acwr={self.acwr}, zone={self.zone})>"
        )
