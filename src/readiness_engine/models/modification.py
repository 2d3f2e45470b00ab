"""Workout modification model."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class DecisionAction(str, Enum):
    """Decision outcomes, least severe first."""

    PROCEED = "proceed"
    REDUCE_INTENSITY = "reduce_intensity"
    REDUCE_VOLUME = "reduce_volume"
    CONVERT_TO_CROSS_TRAINING = "convert_to_cross_training"
    CANCEL = "cancel"
    MANUAL_REVIEW = "manual_review"  # Methodology blocked automatic change

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    DecisionAction.PROCEED: 0,
    DecisionAction.MANUAL_REVIEW: 0,
    DecisionAction.REDUCE_INTENSITY: 1,
    DecisionAction.REDUCE_VOLUME: 2,
    DecisionAction.CONVERT_TO_CROSS_TRAINING: 3,
    DecisionAction.CANCEL: 4,
}


class ReviewDecision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class WorkoutModification(Base, AthleteScopedMixin, TimestampMixin):
    """An automatic change to a planned workout, and its coach review.

    The automated ``action`` and ``reason`` are written once. Coach review
    fields sit beside them; a later automatic decision for the same
    (workout, trigger_date) creates a new row pointing back via
    ``superseded_by_id`` instead of rewriting this one.
    """

    __tablename__ = "workout_modifications"
    __table_args__ = ({"comment": "Automatic workout modifications and coach reviews"},)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    workout_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("planned_workouts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    trigger_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
        comment="Check-in date that triggered the change",
    )
    checkin_id: Mapped[str | None] = mapped_column(String(36))
    injury_id: Mapped[str | None] = mapped_column(String(36))

    action: Mapped[str] = mapped_column(String(40), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    original_snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    modified_snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    auto_generated: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    reviewed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    review_decision: Mapped[str | None] = mapped_column(String(20))
    reviewed_by: Mapped[str | None] = mapped_column(String(36))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reverted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    coach_override_action: Mapped[str | None] = mapped_column(String(40))
    coach_notes: Mapped[str | None] = mapped_column(Text)

    superseded_by_id: Mapped[str | None] = mapped_column(String(36))

    @property
    def is_pending(self) -> bool:
        return not self.reviewed and self.superseded_by_id is None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WorkoutModification(workout_id={self.workout_id}, action={self.action}, "
            f"reviewed={self.reviewed})>"
        )
