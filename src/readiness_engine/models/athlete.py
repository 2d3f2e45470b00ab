"""Athlete profile model."""

from enum import Enum

from sqlalchemy import Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import Base, TimestampMixin, generate_uuid


class Methodology(str, Enum):
    """Training methodology the athlete's plan follows."""

    POLARIZED = "polarized"
    NORWEGIAN = "norwegian"  # Double-threshold, lactate guided
    CANOVA = "canova"  # Percentage-of-marathon-pace blocks
    PYRAMIDAL = "pyramidal"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Athlete(Base, TimestampMixin):
    """Athlete profile read by the pace synthesizer and decision engine."""

    __tablename__ = "athletes"
    __table_args__ = ({"comment": "Athlete profiles"},)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    coach_id: Mapped[str | None] = mapped_column(
        String(36),
        comment="Coach receiving notifications",
    )

    age: Mapped[int | None] = mapped_column(Integer)
    gender: Mapped[str | None] = mapped_column(String(10))
    weekly_km: Mapped[float | None] = mapped_column(Float, comment="Typical weekly running volume")
    training_age_years: Mapped[float | None] = mapped_column(Float)
    resting_hr: Mapped[int | None] = mapped_column(Integer)
    max_hr: Mapped[int | None] = mapped_column(Integer)

    methodology: Mapped[str] = mapped_column(
        String(20),
        default=Methodology.POLARIZED.value,
        nullable=False,
    )
    has_lactate_meter: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    coach_supervised: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Quality sessions run under direct coach supervision",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Athlete(id={self.id}, methodology={self.methodology}, active={self.is_active})>"
