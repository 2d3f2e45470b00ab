"""Daily check-in orchestration.

``CheckInService.submit`` is the single entry point that turns an athlete's
morning check-in into a readiness score, a decision and its consequences:

    1. Upsert the DailyMetricsRecord (one per athlete-day)
    2. Refresh baselines and training load for the day
    3. Score readiness and detect red flags
    4. Decide, and upsert the ReadinessAssessment
    5. Run the cascade (red flags) or apply the decision directly

Steps 1-4 are committed before step 5, so a downstream failure is reported
as a warning and the check-in itself still succeeds. The whole call holds
the athlete's write lock.
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.baselines import detect_signals
from readiness_engine.calculations.decisions import DayContext, Decision, decide
from readiness_engine.calculations.load import LoadSnapshot
from readiness_engine.calculations.readiness import (
    ReadinessInputs,
    ReadinessResult,
    compute_readiness,
)
from readiness_engine.core.config import settings
from readiness_engine.core.exceptions import ConcurrentModificationConflict, NotFoundError
from readiness_engine.core.locks import AthleteLockRegistry, athlete_locks
from readiness_engine.models.athlete import Athlete
from readiness_engine.models.baseline import MetricName
from readiness_engine.models.metrics import DailyMetricsRecord
from readiness_engine.models.readiness import ReadinessAssessment
from readiness_engine.schemas.checkin import CheckInRequest
from readiness_engine.services.baseline import BaselineService
from readiness_engine.services.cascade import CascadeContext, CascadePipeline, CascadeReport
from readiness_engine.services.modifications import ApplyResult, ModificationService
from readiness_engine.services.notifications import NotificationService, NotificationSink
from readiness_engine.services.policies import (
    decision_policy_from_settings,
    readiness_weights_from_settings,
    red_flags_from_settings,
)
from readiness_engine.services.training_load import TrainingLoadService

logger = structlog.get_logger()

CHECKIN_FIELDS = (
    "hrv_rmssd",
    "resting_hr",
    "sleep_hours",
    "soreness",
    "stress",
    "mood",
    "energy",
    "pain_level",
    "pain_body_part",
    "injury_type",
    "gait_affected",
    "is_ill",
    "illness_type",
    "notes",
)


@dataclass
class CheckInOutcome:
    """Everything a check-in produced."""

    athlete_id: str
    date: date
    checkin_id: str
    readiness: ReadinessResult
    signals: list[str]
    load: LoadSnapshot
    decision: Decision
    injury_id: str | None = None
    injury_created: bool = False
    workouts: dict[str, int] = field(default_factory=dict)
    substitutions: int = 0
    coach_notified: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "athlete_id": self.athlete_id,
            "date": self.date.isoformat(),
            "checkin_id": self.checkin_id,
            "readiness": {
                "score": self.readiness.score,
                "level": self.readiness.level.value,
                "components": self.readiness.sub_scores(),
                "red_flags": [hit.to_dict() for hit in self.readiness.red_flags],
                "signals": self.signals,
            },
            "load": {
                "acute": round(self.load.acute_load, 2),
                "chronic": round(self.load.chronic_load, 2),
                "acwr": round(self.load.acwr, 3) if self.load.acwr is not None else None,
                "zone": self.load.zone.value if self.load.zone else None,
            },
            "decision": self.decision.to_dict(),
            "actions": {
                "injury_id": self.injury_id,
                "injury_created": self.injury_created,
                "workouts": self.workouts,
                "substitutions": self.substitutions,
                "coach_notified": self.coach_notified,
            },
            "warnings": list(self.warnings),
        }


class CheckInService:
    """Processes athlete check-ins end to end."""

    def __init__(
        self,
        session: AsyncSession,
        locks: AthleteLockRegistry | None = None,
        sink: NotificationSink | None = None,
    ) -> None:
        """Initialize check-in service.

        Args:
            session: Database session
            locks: Per-athlete lock registry (defaults to the process-wide one)
            sink: Notification transport for the cascade
        """
        self.session = session
        self.locks = locks or athlete_locks
        self.sink = sink
        self.logger = logger.bind(service="checkin")

    async def _get_athlete(self, athlete_id: str) -> Athlete:
        athlete = await self.session.get(Athlete, athlete_id)
        if athlete is None:
            raise NotFoundError("athlete", athlete_id)
        return athlete

    async def _upsert_metrics(self, athlete_id: str, payload: CheckInRequest) -> DailyMetricsRecord:
        stmt = (
            select(DailyMetricsRecord)
            .where(DailyMetricsRecord.athlete_id == athlete_id)
            .where(DailyMetricsRecord.date == payload.date)
        )
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        if record is None:
            record = DailyMetricsRecord(athlete_id=athlete_id, date=payload.date)
            self.session.add(record)
        for name in CHECKIN_FIELDS:
            setattr(record, name, getattr(payload, name))
        record.pain_timing = payload.pain_timing.value if payload.pain_timing else None
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConcurrentModificationConflict(
                "Check-in for this day was written concurrently",
                athlete_id=athlete_id,
                date=str(payload.date),
            ) from e
        return record

    async def _upsert_assessment(
        self,
        record: DailyMetricsRecord,
        readiness: ReadinessResult,
        signals: list[str],
        decision: Decision,
    ) -> ReadinessAssessment:
        stmt = (
            select(ReadinessAssessment)
            .where(ReadinessAssessment.athlete_id == record.athlete_id)
            .where(ReadinessAssessment.date == record.date)
        )
        assessment = (await self.session.execute(stmt)).scalar_one_or_none()
        if assessment is None:
            assessment = ReadinessAssessment(athlete_id=record.athlete_id, date=record.date)
            self.session.add(assessment)

        assessment.checkin_id = record.id
        assessment.score = readiness.score
        assessment.level = readiness.level.value
        assessment.hrv_score = readiness.hrv_score
        assessment.rhr_score = readiness.rhr_score
        assessment.wellness_score = readiness.wellness_score
        assessment.acwr_score = readiness.acwr_score
        assessment.sleep_score = readiness.sleep_score
        assessment.signals = signals
        assessment.red_flags = [hit.to_dict() for hit in readiness.red_flags]
        assessment.decision_action = decision.action.value
        assessment.calculated_at = datetime.now(UTC)
        await self.session.flush()
        return assessment

    async def submit(self, athlete_id: str, payload: CheckInRequest) -> CheckInOutcome:
        """Process one check-in.

        Args:
            athlete_id: Athlete identifier
            payload: Validated check-in

        Returns:
            CheckInOutcome with readiness, decision and actions taken

        Raises:
            NotFoundError: Unknown athlete
        """
        async with self.locks.hold(athlete_id):
            try:
                athlete, record, outcome = await self._score(athlete_id, payload)
            except ConcurrentModificationConflict as e:
                # Another process wrote the same athlete-day; the retry updates its row
                self.logger.warning("Concurrent check-in write, retrying", athlete_id=athlete_id, error=e.message)
                athlete, record, outcome = await self._score(athlete_id, payload)
            await self._act(athlete, record, outcome)

        self.logger.info(
            "Check-in processed",
            athlete_id=athlete_id,
            date=str(payload.date),
            score=outcome.readiness.score,
            red_flags=[hit.flag.value for hit in outcome.readiness.red_flags],
            action=outcome.decision.action.value,
            warnings=len(outcome.warnings),
        )
        return outcome

    async def _score(
        self,
        athlete_id: str,
        payload: CheckInRequest,
    ) -> tuple[Athlete, DailyMetricsRecord, CheckInOutcome]:
        """Store the check-in and its assessment, committed."""
        try:
            athlete = await self._get_athlete(athlete_id)
            record = await self._upsert_metrics(athlete_id, payload)

            baselines = await BaselineService(self.session).refresh(athlete_id, payload.date)
            load = await TrainingLoadService(self.session).refresh(athlete_id, payload.date)

            hrv_baseline = baselines[MetricName.HRV_RMSSD]
            rhr_baseline = baselines[MetricName.RESTING_HR]
            readiness = compute_readiness(
                ReadinessInputs(
                    hrv=record.hrv_rmssd,
                    resting_hr=record.resting_hr,
                    sleep_hours=record.sleep_hours,
                    soreness=record.soreness,
                    stress=record.stress,
                    mood=record.mood,
                    energy=record.energy,
                    pain_level=record.pain_level,
                    acwr_zone=load.zone,
                ),
                hrv_baseline=hrv_baseline,
                rhr_baseline=rhr_baseline,
                weights=readiness_weights_from_settings(),
                thresholds=red_flags_from_settings(),
            )
            signals = [
                s.value
                for s in detect_signals(
                    record.hrv_rmssd,
                    record.resting_hr,
                    hrv_baseline,
                    rhr_baseline,
                    settings.baseline_signal_sd,
                )
            ]
            decision = decide(
                DayContext(
                    checkin_date=payload.date,
                    readiness=readiness,
                    acwr_zone=load.zone,
                    pain_level=record.pain_level,
                    gait_affected=record.gait_affected,
                    is_ill=record.is_ill,
                ),
                decision_policy_from_settings(),
            )
            await self._upsert_assessment(record, readiness, signals, decision)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            self.logger.error(
                "Check-in failed",
                athlete_id=athlete_id,
                date=str(payload.date),
                error=str(e),
            )
            raise

        outcome = CheckInOutcome(
            athlete_id=athlete_id,
            date=payload.date,
            checkin_id=record.id,
            readiness=readiness,
            signals=signals,
            load=load,
            decision=decision,
        )
        return athlete, record, outcome

    async def _act(self, athlete: Athlete, record: DailyMetricsRecord, outcome: CheckInOutcome) -> None:
        """Run the downstream consequences of a decision."""
        decision = outcome.decision
        if decision.is_proceed and not decision.triggers_cascade:
            return

        try:
            if decision.triggers_cascade:
                pipeline = CascadePipeline(
                    self.session,
                    notifications=NotificationService(self.session, self.sink),
                )
                report = await pipeline.run(
                    CascadeContext(
                        athlete=athlete,
                        checkin=record,
                        readiness=outcome.readiness,
                        decision=decision,
                        acwr_zone=outcome.load.zone,
                    )
                )
                self._record_cascade(outcome, report)
            else:
                applied = await ModificationService(self.session).apply(
                    athlete,
                    decision,
                    record.date,
                    checkin_id=record.id,
                )
                self._record_applied(outcome, applied)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            outcome.warnings.append(f"Downstream processing failed: {e}")
            self.logger.exception(
                "Check-in downstream processing failed",
                athlete_id=athlete.id,
                date=str(record.date),
                error=str(e),
            )

    @staticmethod
    def _record_applied(outcome: CheckInOutcome, applied: ApplyResult) -> None:
        outcome.workouts = applied.to_dict()
        outcome.substitutions = len(applied.substitutions)

    def _record_cascade(self, outcome: CheckInOutcome, report: CascadeReport) -> None:
        if report.injury is not None:
            outcome.injury_id = report.injury.id
            outcome.injury_created = report.injury_created
        if report.applied is not None:
            self._record_applied(outcome, report.applied)
        outcome.coach_notified = report.coach_notified
        outcome.warnings.extend(report.warnings)

    async def get_assessment(self, athlete_id: str, day: date) -> ReadinessAssessment | None:
        stmt = (
            select(ReadinessAssessment)
            .where(ReadinessAssessment.athlete_id == athlete_id)
            .where(ReadinessAssessment.date == day)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()
