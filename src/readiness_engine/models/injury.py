"""Injury assessment model."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from readiness_engine.core.exceptions import InvalidTransitionError
from readiness_engine.models.base import AthleteScopedMixin, Base, TimestampMixin, generate_uuid


class InjuryStatus(str, Enum):
    ACTIVE = "active"
    MONITORING = "monitoring"
    RESOLVED = "resolved"  # Only via an explicit resolve action


class InjurySeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class InjuryPhase(str, Enum):
    """Rehabilitation phase."""

    ACUTE = "acute"
    SUBACUTE = "subacute"
    RETURN_TO_RUN = "return_to_run"  # Still running, at reduced load


class InjuryType(str, Enum):
    PLANTAR_FASCIITIS = "plantar_fasciitis"
    ACHILLES_TENDINOPATHY = "achilles_tendinopathy"
    IT_BAND_SYNDROME = "it_band_syndrome"
    PATELLOFEMORAL_SYNDROME = "patellofemoral_syndrome"
    SHIN_SPLINTS = "shin_splints"
    STRESS_FRACTURE = "stress_fracture"
    HAMSTRING_STRAIN = "hamstring_strain"
    CALF_STRAIN = "calf_strain"
    HIP_FLEXOR = "hip_flexor"


class ImmediateAction(str, Enum):
    REST = "rest"
    CROSS_TRAINING_ONLY = "cross_training_only"
    REDUCE = "reduce"
    MONITOR = "monitor"


class ProgramAction(str, Enum):
    """What happens to the training program as a whole."""

    PAUSE = "pause"
    MODIFY = "modify"
    MAINTAIN = "maintain"


OPEN_STATUSES = (InjuryStatus.ACTIVE.value, InjuryStatus.MONITORING.value)

_INJURY_TRANSITIONS: dict[InjuryStatus, frozenset[InjuryStatus]] = {
    InjuryStatus.ACTIVE: frozenset({InjuryStatus.MONITORING, InjuryStatus.RESOLVED}),
    InjuryStatus.MONITORING: frozenset({InjuryStatus.ACTIVE, InjuryStatus.RESOLVED}),
    InjuryStatus.RESOLVED: frozenset(),
}


class InjuryAssessment(Base, AthleteScopedMixin, TimestampMixin):
    """An injury or illness opened by the cascade.

    At most one open (active or monitoring) assessment exists per athlete and
    injury type; repeated triggers update it.
    """

    __tablename__ = "injury_assessments"
    __table_args__ = ({"comment": "Injury and illness episodes"},)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=InjuryStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    phase: Mapped[str] = mapped_column(String(20), nullable=False)

    is_illness: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    injury_type: Mapped[str | None] = mapped_column(String(50), index=True)
    body_part: Mapped[str | None] = mapped_column(String(50))
    illness_type: Mapped[str | None] = mapped_column(String(50))
    pain_level: Mapped[int | None] = mapped_column(Integer)
    gait_affected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    immediate_action: Mapped[str] = mapped_column(String(30), nullable=False)
    estimated_return_weeks: Mapped[int | None] = mapped_column(Integer)
    return_to_run: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        comment="Starting return-to-running phase",
    )
    program_adjustment: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        comment="Pause, modify or maintain the program",
    )

    detected_on: Mapped[date] = mapped_column(Date, nullable=False)
    last_checkin_date: Mapped[date] = mapped_column(Date, nullable=False)
    source_checkin_id: Mapped[str | None] = mapped_column(String(36))
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def transition_to(self, target: InjuryStatus) -> None:
        """Change status; RESOLVED is terminal.

        Raises:
            InvalidTransitionError: For any move out of RESOLVED
        """
        current = InjuryStatus(self.status)
        if target == current:
            return
        if target not in _INJURY_TRANSITIONS[current]:
            raise InvalidTransitionError("injury", current.value, target.value)
        self.status = target.value

    def __repr__(self) -> str:
        """String representation."""
        label = self.illness_type if self.is_illness else self.injury_type
        return (
            f"<InjuryAssessment(athlete_id={self.athlete_id}, type={label}, "
            f"status={self.status}, pain={self.pain_level})>"
        )
