"""Strength progression history model."""

from datetime import date

from sqlalchemy import Date, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class StrengthSetLog(Base, AthleteScopedMixin, TimestampMixin):
    """Top working sets for one exercise in one session."""

    __tablename__ = "strength_set_logs"
    __table_args__ = ({"comment": "Strength exercise history for progression analysis"},)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    exercise: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    sets: Mapped[int] = mapped_column(Integer, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    load_kg: Mapped[float] = mapped_column(Float, nullable=False)
    rpe: Mapped[float | None] = mapped_column(Float)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<StrengthSetLog(athlete_id={self.athlete_id}, exercise={self.exercise}, "
            f"{self.sets}x{self.reps}@{self.load_kg}kg)>"
        )
