"""Daily check-in metrics model."""

from datetime import date

from sqlalchemy import Boolean, Date, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class DailyMetricsRecord(Base, AthleteScopedMixin, TimestampMixin):
    """One athlete check-in per calendar day.

    Later submissions for the same (athlete, date) update this row; the
    history of these rows is the source of truth for baselines and readiness.
    """

    __tablename__ = "daily_metrics"
    __table_args__ = (
        UniqueConstraint("athlete_id", "date", name="uq_daily_metrics_athlete_date"),
        {"comment": "Daily athlete check-ins (one per athlete per day)"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Physiological
    hrv_rmssd: Mapped[float | None] = mapped_column(Float, comment="Morning HRV (RMSSD, ms)")
    resting_hr: Mapped[float | None] = mapped_column(Float, comment="Morning resting HR (bpm)")
    sleep_hours: Mapped[float | None] = mapped_column(Float)

    # Subjective wellness (1-10)
    soreness: Mapped[int | None] = mapped_column(Integer, comment="1 = none, 10 = severe")
    stress: Mapped[int | None] = mapped_column(Integer, comment="1 = none, 10 = extreme")
    mood: Mapped[int | None] = mapped_column(Integer, comment="1 = very low, 10 = great")
    energy: Mapped[int | None] = mapped_column(Integer, comment="1 = exhausted, 10 = fresh")

    # Pain and illness
    pain_level: Mapped[int | None] = mapped_column(Integer, comment="0-10")
    pain_body_part: Mapped[str | None] = mapped_column(String(50))
    pain_timing: Mapped[str | None] = mapped_column(
        String(20),
        comment="before, during, after or constant",
    )
    injury_type: Mapped[str | None] = mapped_column(String(50), comment="Athlete-reported type")
    gait_affected: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Pain alters running gait (limping)",
    )
    is_ill: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    illness_type: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        """String representation."""
        return f"<DailyMetricsRecord(athlete_id={self.athlete_id}, date={self.date})>"
