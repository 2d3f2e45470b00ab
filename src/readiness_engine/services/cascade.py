"""Injury and illness cascade.

A red-flag check-in runs a fixed pipeline:

    classify -> record injury -> modify workouts -> notify coach

Each step returns a ``StepResult``. A failed critical step stops the
pipeline; the notify step is best-effort, so a delivery failure is recorded
and logged without undoing the earlier writes. Every step is idempotent per
(athlete, trigger date): the injury record is upserted, modifications
supersede rather than duplicate, and notifications are deduplicated.
"""

import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.decisions import Decision
from readiness_engine.calculations.injury import (
    InjuryClassification,
    classify_injury,
    program_adjustment,
)
from readiness_engine.calculations.readiness import ReadinessResult, RedFlag
from readiness_engine.core.config import settings
from readiness_engine.models.athlete import Athlete
from readiness_engine.models.injury import (
    OPEN_STATUSES,
    ImmediateAction,
    InjuryAssessment,
    InjuryPhase,
    InjurySeverity,
    InjuryStatus,
)
from readiness_engine.models.metrics import DailyMetricsRecord
from readiness_engine.models.notification import Notification, NotificationUrgency
from readiness_engine.models.training import ACWRZone
from readiness_engine.services.modifications import ApplyResult, ModificationService
from readiness_engine.services.notifications import NotificationService

logger = structlog.get_logger()


class CascadeKind(str, Enum):
    INJURY = "injury"
    ILLNESS = "illness"
    FATIGUE = "fatigue"  # Non-pain red flags; no injury record


@dataclass
class StepResult:
    """Outcome of one pipeline step."""

    name: str
    ok: bool
    critical: bool = True
    value: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "ok": self.ok, "critical": self.critical, "error": self.error}


@dataclass
class CascadeContext:
    """Inputs and accumulated outputs shared by the steps."""

    athlete: Athlete
    checkin: DailyMetricsRecord
    readiness: ReadinessResult
    decision: Decision
    acwr_zone: ACWRZone | None = None

    classification: InjuryClassification | None = None
    injury: InjuryAssessment | None = None
    injury_created: bool = False
    applied: ApplyResult | None = None
    notification: Notification | None = None

    @property
    def checkin_date(self) -> date:
        return self.checkin.date

    @property
    def kind(self) -> CascadeKind:
        if self.checkin.is_ill:
            return CascadeKind.ILLNESS
        if self.readiness.flag(RedFlag.PAIN) is not None:
            return CascadeKind.INJURY
        return CascadeKind.FATIGUE


@dataclass
class CascadeReport:
    kind: CascadeKind
    steps: list[StepResult] = field(default_factory=list)
    injury: InjuryAssessment | None = None
    injury_created: bool = False
    applied: ApplyResult | None = None
    notification: Notification | None = None

    @property
    def halted(self) -> bool:
        return any(not s.ok and s.critical for s in self.steps)

    @property
    def coach_notified(self) -> bool:
        return any(s.name == "notify" and s.ok for s in self.steps)

    @property
    def warnings(self) -> list[str]:
        return [f"{s.name} failed: {s.error}" for s in self.steps if not s.ok]


Step = Callable[[CascadeContext], Awaitable[Any]]


def classify_illness(illness_type: str | None, rest_days: int) -> InjuryClassification:
    """Illness episodes are always full rest."""
    weeks = max(1, math.ceil(rest_days / 7))
    return InjuryClassification(
        injury_type=None,
        body_part=None,
        severity=InjurySeverity.MODERATE,
        phase=InjuryPhase.ACUTE,
        immediate_action=ImmediateAction.REST,
        estimated_return_weeks=weeks,
        urgency=NotificationUrgency.HIGH,
        suggested_actions=[
            "Full rest until symptom-free for 24 hours",
            "Return with easy running only; no intensity for a week",
            f"Illness reported: {illness_type}" if illness_type else "Check for fever before resuming",
        ],
        program_adjustment=program_adjustment(ImmediateAction.REST, weeks, illness_type or "illness"),
    )


class CascadePipeline:
    """Runs the red-flag cascade for one check-in."""

    def __init__(
        self,
        session: AsyncSession,
        modifications: ModificationService | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        self.session = session
        self.modifications = modifications or ModificationService(session)
        self.notifications = notifications or NotificationService(session)
        self.logger = logger.bind(service="cascade")

    def steps(self) -> list[tuple[str, Step, bool]]:
        return [
            ("classify", self._classify, True),
            ("record_injury", self._record_injury, True),
            ("modify_workouts", self._modify_workouts, True),
            ("notify", self._notify, False),
        ]

    async def run(self, ctx: CascadeContext) -> CascadeReport:
        report = CascadeReport(kind=ctx.kind)
        log = self.logger.bind(
            athlete_id=ctx.athlete.id,
            checkin_date=str(ctx.checkin_date),
            kind=ctx.kind.value,
        )

        for name, step, critical in self.steps():
            try:
                value = await step(ctx)
                report.steps.append(StepResult(name, ok=True, critical=critical, value=value))
            except Exception as e:
                report.steps.append(StepResult(name, ok=False, critical=critical, error=str(e)))
                if critical:
                    log.exception("Cascade halted", step=name, error=str(e))
                    break
                log.warning("Cascade step failed", step=name, error=str(e))

        report.injury = ctx.injury
        report.injury_created = ctx.injury_created
        report.applied = ctx.applied
        report.notification = ctx.notification
        log.info(
            "Cascade complete",
            halted=report.halted,
            injury_id=ctx.injury.id if ctx.injury else None,
            coach_notified=report.coach_notified,
            **(ctx.applied.to_dict() if ctx.applied else {}),
        )
        return report

    async def _classify(self, ctx: CascadeContext) -> InjuryClassification | None:
        checkin = ctx.checkin
        if ctx.kind == CascadeKind.ILLNESS:
            ctx.classification = classify_illness(checkin.illness_type, settings.illness_rest_days)
        elif ctx.kind == CascadeKind.INJURY:
            ctx.classification = classify_injury(
                pain_level=checkin.pain_level or 0,
                gait_affected=checkin.gait_affected,
                reported_type=checkin.injury_type,
                body_part=checkin.pain_body_part,
                timing=checkin.pain_timing,
                notes=checkin.notes,
                acwr_zone=ctx.acwr_zone,
            )
        return ctx.classification

    async def _find_open(self, ctx: CascadeContext, injury_type: str | None) -> InjuryAssessment | None:
        stmt = (
            select(InjuryAssessment)
            .where(InjuryAssessment.athlete_id == ctx.athlete.id)
            .where(InjuryAssessment.status.in_(OPEN_STATUSES))
        )
        if ctx.kind == CascadeKind.ILLNESS:
            stmt = stmt.where(InjuryAssessment.is_illness.is_(True))
        else:
            stmt = stmt.where(InjuryAssessment.injury_type == injury_type)
        stmt = stmt.order_by(InjuryAssessment.detected_on.desc())
        return (await self.session.execute(stmt)).scalars().first()

    async def _record_injury(self, ctx: CascadeContext) -> InjuryAssessment | None:
        classification = ctx.classification
        if classification is None:
            return None

        checkin = ctx.checkin
        injury_type = classification.injury_type.value if classification.injury_type else None
        injury = await self._find_open(ctx, injury_type)
        if injury is None:
            injury = InjuryAssessment(
                athlete_id=ctx.athlete.id,
                status=InjuryStatus.ACTIVE.value,
                is_illness=ctx.kind == CascadeKind.ILLNESS,
                detected_on=ctx.checkin_date,
            )
            self.session.add(injury)
            ctx.injury_created = True
        else:
            injury.transition_to(InjuryStatus.ACTIVE)

        injury.severity = classification.severity.value
        injury.phase = classification.phase.value
        injury.injury_type = injury_type
        injury.body_part = classification.body_part
        injury.illness_type = checkin.illness_type if injury.is_illness else None
        injury.pain_level = checkin.pain_level
        injury.gait_affected = checkin.gait_affected
        injury.immediate_action = classification.immediate_action.value
        injury.estimated_return_weeks = classification.estimated_return_weeks
        injury.return_to_run = classification.return_to_run.to_dict() if classification.return_to_run else None
        injury.program_adjustment = (
            classification.program_adjustment.to_dict() if classification.program_adjustment else None
        )
        injury.last_checkin_date = max(injury.last_checkin_date or ctx.checkin_date, ctx.checkin_date)
        injury.source_checkin_id = checkin.id
        await self.session.flush()

        ctx.injury = injury
        return injury

    async def _modify_workouts(self, ctx: CascadeContext) -> ApplyResult:
        ctx.applied = await self.modifications.apply(
            ctx.athlete,
            ctx.decision,
            ctx.checkin_date,
            checkin_id=ctx.checkin.id,
            injury=ctx.injury,
        )
        return ctx.applied

    async def _notify(self, ctx: CascadeContext) -> Notification:
        classification = ctx.classification
        if classification is not None:
            urgency = classification.urgency
            actions = classification.suggested_actions
        else:
            urgency = NotificationUrgency.MEDIUM
            actions = ["Check in with the athlete about recovery and life stress"]

        title, message = self._compose(ctx)
        payload: dict[str, Any] = {
            "checkin_date": ctx.checkin_date.isoformat(),
            "readiness_score": ctx.readiness.score,
            "red_flags": [hit.to_dict() for hit in ctx.readiness.red_flags],
            "decision": ctx.decision.to_dict(),
            "injury_id": ctx.injury.id if ctx.injury else None,
            "workouts": ctx.applied.to_dict() if ctx.applied else None,
            "suggested_actions": actions,
            "return_to_run": ctx.injury.return_to_run if ctx.injury else None,
            "program_adjustment": ctx.injury.program_adjustment if ctx.injury else None,
        }
        ctx.notification = await self.notifications.notify(
            athlete_id=ctx.athlete.id,
            trigger_date=ctx.checkin_date,
            kind=ctx.kind.value,
            urgency=urgency,
            title=title,
            message=message,
            payload=payload,
            recipient_id=ctx.athlete.coach_id,
        )
        return ctx.notification

    @staticmethod
    def _compose(ctx: CascadeContext) -> tuple[str, str]:
        name = ctx.athlete.name
        affected = len(ctx.applied.created) if ctx.applied else 0
        if ctx.kind == CascadeKind.ILLNESS:
            title = f"{name} reported illness"
        elif ctx.kind == CascadeKind.INJURY and ctx.classification is not None:
            injury = ctx.classification.injury_type.value.replace("_", " ")
            title = f"{name}: possible {injury} (pain {ctx.checkin.pain_level}/10)"
        else:
            title = f"{name}: fatigue red flags"
        reasons = "; ".join(ctx.decision.reasons)
        message = f"{reasons}. {affected} upcoming workout(s) adjusted ({ctx.decision.action.value})."
        return title, message
