"""Readiness assessment model."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Float, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class ReadinessLevel(str, Enum):
    """Readiness bands over the 0-10 composite."""

    EXCELLENT = "excellent"  # >= 8.5
    GOOD = "good"  # >= 7.0
    MODERATE = "moderate"  # >= 5.5
    LOW = "low"  # >= 4.0
    VERY_LOW = "very_low"


class ReadinessAssessment(Base, AthleteScopedMixin, TimestampMixin):
    """Composite readiness for one athlete-day, with sub-scores and red flags."""

    __tablename__ = "readiness_assessments"
    __table_args__ = (
        UniqueConstraint("athlete_id", "date", name="uq_readiness_athlete_date"),
        {"comment": "Daily readiness (at most one per athlete and day)"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    checkin_id: Mapped[str | None] = mapped_column(String(36), comment="Source daily_metrics row")

    score: Mapped[float] = mapped_column(Float, nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False)

    hrv_score: Mapped[float | None] = mapped_column(Float)
    rhr_score: Mapped[float | None] = mapped_column(Float)
    wellness_score: Mapped[float | None] = mapped_column(Float)
    acwr_score: Mapped[float | None] = mapped_column(Float)
    sleep_score: Mapped[float | None] = mapped_column(Float)

    signals: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: [],
        comment="Baseline signals (low_hrv, elevated_rhr)",
    )
    red_flags: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: [],
        comment="Red flags that fired, with reasons",
    )
    decision_action: Mapped[str | None] = mapped_column(String(40))
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReadinessAssessment(athlete_id={self.athlete_id}, date={self.date}, "
            f"score={self.score:.2f}, red_flags={len(self.red_flags or [])})>"
        )
