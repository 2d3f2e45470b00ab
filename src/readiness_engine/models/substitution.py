"""Cross-training substitution model."""

from datetime import date

from sqlalchemy import Boolean, Date, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class CrossTrainingSubstitution(Base, AthleteScopedMixin, TimestampMixin):
    """A converted workout with retained-fitness metadata."""

    __tablename__ = "cross_training_substitutions"
    __table_args__ = (
        UniqueConstraint("athlete_id", "workout_id", "date", name="uq_substitution_workout_date"),
        {"comment": "Cross-training replacements for planned runs"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    workout_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    modification_id: Mapped[str | None] = mapped_column(String(36))
    injury_id: Mapped[str | None] = mapped_column(String(36))

    modality: Mapped[str] = mapped_column(String(30), nullable=False)
    is_fallback: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Generic continuous effort used because the modality was unknown",
    )
    original_duration_minutes: Mapped[float | None] = mapped_column(Float)
    duration_minutes: Mapped[float | None] = mapped_column(Float)
    distance_km: Mapped[float | None] = mapped_column(Float)
    target_hr: Mapped[int | None] = mapped_column(Integer)
    training_stress: Mapped[float | None] = mapped_column(Float)
    fitness_retention: Mapped[float] = mapped_column(Float, nullable=False)
    instructions: Mapped[str | None] = mapped_column(String(500))

    # Declared last: the column name shadows datetime.date in the class body
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CrossTrainingSubstitution(athlete_id={self.athlete_id}, date={self.date}, "
            f"modality={self.modality})>"
        )
