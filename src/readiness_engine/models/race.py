"""Race result model."""

from datetime import date

from sqlalchemy import Date, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class RaceResult(Base, AthleteScopedMixin, TimestampMixin):
    """A race performance used for VDOT pace derivation."""

    __tablename__ = "race_results"
    __table_args__ = ({"comment": "Race performances"},)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    race_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    distance_m: Mapped[float] = mapped_column(Float, nullable=False)
    time_seconds: Mapped[float] = mapped_column(Float, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RaceResult(athlete_id={self.athlete_id}, date={self.race_date}, "
            f"distance_m={self.distance_m}, time_s={self.time_seconds})>"
        )
