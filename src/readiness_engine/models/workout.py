"""Planned workout model and its state machine."""

from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.core.exceptions import InvalidTransitionError
from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class WorkoutStatus(str, Enum):
    """Lifecycle of a scheduled workout."""

    PLANNED = "planned"
    MODIFIED = "modified"
    CANCELLED = "cancelled"
    COMPLETED = "completed"  # Terminal


class WorkoutType(str, Enum):
    RUNNING = "running"
    CROSS_TRAINING = "cross_training"
    STRENGTH = "strength"
    REST = "rest"


class Intensity(str, Enum):
    """Workout intensity, ordered easiest first."""

    RECOVERY = "recovery"
    EASY = "easy"
    MODERATE = "moderate"
    THRESHOLD = "threshold"
    INTERVAL = "interval"
    MAX = "max"


INTENSITY_ORDER = list(Intensity)

ALLOWED_TRANSITIONS: dict[WorkoutStatus, frozenset[WorkoutStatus]] = {
    WorkoutStatus.PLANNED: frozenset(
        {WorkoutStatus.MODIFIED, WorkoutStatus.CANCELLED, WorkoutStatus.COMPLETED}
    ),
    WorkoutStatus.MODIFIED: frozenset(
        {
            WorkoutStatus.MODIFIED,  # Coach override on top of an automatic change
            WorkoutStatus.CANCELLED,
            WorkoutStatus.COMPLETED,
            WorkoutStatus.PLANNED,  # Reverted on rejection
        }
    ),
    WorkoutStatus.CANCELLED: frozenset({WorkoutStatus.PLANNED}),
    WorkoutStatus.COMPLETED: frozenset(),
}


def check_transition(current: WorkoutStatus, target: WorkoutStatus) -> WorkoutStatus:
    """Validate a workout status change.

    Raises:
        InvalidTransitionError: If the state machine does not allow it
    """
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError("workout", current.value, target.value)
    return target


class PlannedWorkout(Base, AthleteScopedMixin, TimestampMixin):
    """A scheduled workout in the athlete's plan."""

    __tablename__ = "planned_workouts"
    __table_args__ = ({"comment": "Scheduled workouts in athlete plans"},)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    workout_type: Mapped[str] = mapped_column(
        String(20),
        default=WorkoutType.RUNNING.value,
        nullable=False,
    )
    intensity: Mapped[str] = mapped_column(String(20), default=Intensity.EASY.value, nullable=False)
    duration_minutes: Mapped[float | None] = mapped_column(Float)
    distance_km: Mapped[float | None] = mapped_column(Float)
    target_hr: Mapped[int | None] = mapped_column(Integer)
    planned_load: Mapped[float | None] = mapped_column(Float, comment="Planned TSS")
    modality: Mapped[str | None] = mapped_column(
        String(30),
        comment="Cross-training modality once converted",
    )

    is_double_threshold: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_specific_block: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Race-specific block session",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=WorkoutStatus.PLANNED.value,
        nullable=False,
        index=True,
    )
    notes: Mapped[str | None] = mapped_column(Text)

    def transition_to(self, target: WorkoutStatus) -> None:
        """Move to a new status, enforcing the state machine."""
        self.status = check_transition(WorkoutStatus(self.status), target).value

    def snapshot(self) -> dict[str, object]:
        """Mutable fields as a plain dict (stored on modifications)."""
        return {
            "title": self.title,
            "workout_type": self.workout_type,
            "intensity": self.intensity,
            "duration_minutes": self.duration_minutes,
            "distance_km": self.distance_km,
            "target_hr": self.target_hr,
            "planned_load": self.planned_load,
            "modality": self.modality,
            "status": self.status,
            "notes": self.notes,
        }

    def restore(self, snapshot: dict[str, object]) -> None:
        """Apply a snapshot produced by :meth:`snapshot` (status excluded)."""
        for key, value in snapshot.items():
            if key != "status":
                setattr(self, key, value)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PlannedWorkout(athlete_id={self.athlete_id}, date={self.scheduled_date}, "
            f"type={self.workout_type}, status={self.status})>"
        )
