"""Workout modification service: applying decisions and coach review."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.classification import classify_athlete
from readiness_engine.calculations.cross_training import (
    ConvertedWorkout,
    modality_for_injury,
    substitute,
)
from readiness_engine.calculations.decisions import Decision, modified_snapshot, plan_changes
from readiness_engine.calculations.methodology import AthleteContext, rules_for
from readiness_engine.core.exceptions import InvalidTransitionError, NotFoundError
from readiness_engine.models.athlete import Athlete, Methodology
from readiness_engine.models.injury import InjuryAssessment
from readiness_engine.models.modification import (
    DecisionAction,
    ReviewDecision,
    WorkoutModification,
)
from readiness_engine.models.substitution import CrossTrainingSubstitution
from readiness_engine.models.workout import PlannedWorkout, WorkoutStatus, WorkoutType

logger = structlog.get_logger()

WORKOUT_CHANGING_ACTIONS = (
    DecisionAction.REDUCE_INTENSITY,
    DecisionAction.REDUCE_VOLUME,
    DecisionAction.CONVERT_TO_CROSS_TRAINING,
)


@dataclass
class ApplyResult:
    """What one decision did to the plan."""

    created: list[WorkoutModification] = field(default_factory=list)
    substitutions: list[CrossTrainingSubstitution] = field(default_factory=list)
    skipped_reviewed: int = 0
    unchanged: int = 0

    @property
    def manual_review(self) -> int:
        return sum(1 for m in self.created if m.action == DecisionAction.MANUAL_REVIEW.value)

    def to_dict(self) -> dict[str, int]:
        return {
            "modified": len(self.created) - self.manual_review,
            "manual_review": self.manual_review,
            "substitutions": len(self.substitutions),
            "skipped_reviewed": self.skipped_reviewed,
            "unchanged": self.unchanged,
        }


def athlete_context(athlete: Athlete) -> AthleteContext:
    """What the methodology rule sets need to know about an athlete."""
    classification = classify_athlete(
        weekly_km=athlete.weekly_km,
        training_age_years=athlete.training_age_years,
        age=athlete.age,
    )
    return AthleteContext(
        methodology=Methodology(athlete.methodology),
        level=classification.level,
        has_lactate_meter=athlete.has_lactate_meter,
        coach_supervised=athlete.coach_supervised,
    )


class ModificationService:
    """Writes automatic modifications and handles coach review.

    Automatic rows are append-only. A workout has at most one current row:
    a later decision, from any check-in day, resets the workout to that row's
    original snapshot and supersedes it. Coach-reviewed rows are never
    touched by automation.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(service="modifications")

    async def _upcoming_workouts(self, athlete_id: str, from_date: date) -> list[PlannedWorkout]:
        stmt = (
            select(PlannedWorkout)
            .where(PlannedWorkout.athlete_id == athlete_id)
            .where(PlannedWorkout.scheduled_date >= from_date)
            .order_by(PlannedWorkout.scheduled_date, PlannedWorkout.id)
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def _current_for(self, workout_id: str) -> WorkoutModification | None:
        """Latest non-superseded modification for a workout, from any trigger date."""
        stmt = (
            select(WorkoutModification)
            .where(WorkoutModification.workout_id == workout_id)
            .where(WorkoutModification.superseded_by_id.is_(None))
            .order_by(WorkoutModification.trigger_date.desc(), WorkoutModification.created_at.desc())
        )
        return (await self.session.execute(stmt)).scalars().first()

    @staticmethod
    def _build(
        original: dict[str, object],
        action: DecisionAction,
        injury_type: str | None,
    ) -> tuple[dict[str, object], ConvertedWorkout | None]:
        if action == DecisionAction.MANUAL_REVIEW:
            return dict(original), None
        if action != DecisionAction.CONVERT_TO_CROSS_TRAINING:
            return modified_snapshot(original, action), None

        converted = substitute(
            original.get("duration_minutes"),  # type: ignore[arg-type]
            original.get("distance_km"),  # type: ignore[arg-type]
            original.get("target_hr"),  # type: ignore[arg-type]
            original.get("planned_load"),  # type: ignore[arg-type]
            modality_for_injury(injury_type),
        )
        modified = {**original, **converted.snapshot_fields(), "status": WorkoutStatus.MODIFIED.value}
        return modified, converted

    @staticmethod
    def _reset_workout(workout: PlannedWorkout, original: dict[str, object]) -> None:
        workout.restore(original)
        if workout.status != WorkoutStatus.PLANNED.value:
            workout.transition_to(WorkoutStatus.PLANNED)

    @staticmethod
    def _apply_to_workout(
        workout: PlannedWorkout,
        action: DecisionAction,
        modified: dict[str, object],
    ) -> None:
        if action in WORKOUT_CHANGING_ACTIONS:
            workout.restore(modified)
            workout.transition_to(WorkoutStatus.MODIFIED)
        elif action == DecisionAction.CANCEL:
            workout.transition_to(WorkoutStatus.CANCELLED)

    async def _upsert_substitution(
        self,
        workout: PlannedWorkout,
        modification: WorkoutModification,
        converted: ConvertedWorkout,
        original: dict[str, object],
    ) -> CrossTrainingSubstitution:
        stmt = (
            select(CrossTrainingSubstitution)
            .where(CrossTrainingSubstitution.athlete_id == workout.athlete_id)
            .where(CrossTrainingSubstitution.workout_id == workout.id)
            .where(CrossTrainingSubstitution.date == workout.scheduled_date)
        )
        substitution = (await self.session.execute(stmt)).scalar_one_or_none()
        if substitution is None:
            substitution = CrossTrainingSubstitution(
                athlete_id=workout.athlete_id,
                workout_id=workout.id,
                date=workout.scheduled_date,
            )
            self.session.add(substitution)

        substitution.modification_id = modification.id
        substitution.injury_id = modification.injury_id
        substitution.modality = converted.modality
        substitution.is_fallback = converted.is_fallback
        substitution.original_duration_minutes = original.get("duration_minutes")  # type: ignore[assignment]
        substitution.duration_minutes = converted.duration_minutes
        substitution.distance_km = converted.distance_km
        substitution.target_hr = converted.target_hr
        substitution.training_stress = converted.training_stress
        substitution.fitness_retention = converted.fitness_retention
        substitution.instructions = converted.instructions
        await self.session.flush()
        return substitution

    async def _drop_substitution(self, workout_id: str) -> None:
        await self.session.execute(
            delete(CrossTrainingSubstitution).where(CrossTrainingSubstitution.workout_id == workout_id)
        )

    async def apply(
        self,
        athlete: Athlete,
        decision: Decision,
        checkin_date: date,
        checkin_id: str | None = None,
        injury: InjuryAssessment | None = None,
    ) -> ApplyResult:
        """Apply a decision to the athlete's upcoming workouts.

        Args:
            athlete: Athlete whose plan is changed
            decision: Output of the decision engine
            checkin_date: Trigger date; nothing before it is touched
            checkin_id: Source check-in
            injury: Open injury, used to pick the cross-training modality

        Returns:
            ApplyResult with created rows and skip counts
        """
        result = ApplyResult()
        if decision.is_proceed:
            return result

        workouts = await self._upcoming_workouts(athlete.id, checkin_date)
        changes = plan_changes(
            decision,
            workouts,
            checkin_date,
            rules_for(athlete.methodology),
            athlete_context(athlete),
        )
        injury_type = injury.injury_type if injury is not None else None

        for change in changes:
            workout = change.workout
            existing = await self._current_for(workout.id)
            if existing is not None and existing.reviewed:
                result.skipped_reviewed += 1
                self.logger.info(
                    "Skipping coach-reviewed modification",
                    athlete_id=athlete.id,
                    workout_id=workout.id,
                    modification_id=existing.id,
                )
                continue
            if existing is not None and existing.action == change.action.value:
                result.unchanged += 1
                continue

            # Always build from the plan as written, never from an earlier change
            original = dict(existing.original_snapshot) if existing is not None else workout.snapshot()
            if (
                change.action == DecisionAction.CONVERT_TO_CROSS_TRAINING
                and original.get("workout_type") == WorkoutType.CROSS_TRAINING.value
            ):
                result.unchanged += 1
                continue
            if existing is not None:
                self._reset_workout(workout, original)

            modified, converted = self._build(original, change.action, injury_type)
            self._apply_to_workout(workout, change.action, modified)

            modification = WorkoutModification(
                athlete_id=athlete.id,
                workout_id=workout.id,
                trigger_date=checkin_date,
                checkin_id=checkin_id,
                injury_id=injury.id if injury is not None else None,
                action=change.action.value,
                reason=change.reason,
                original_snapshot=original,
                modified_snapshot=modified,
                auto_generated=True,
                reviewed=False,
            )
            self.session.add(modification)
            await self.session.flush()
            result.created.append(modification)

            if existing is not None:
                existing.superseded_by_id = modification.id
                if converted is None:
                    await self._drop_substitution(workout.id)
            if converted is not None:
                result.substitutions.append(
                    await self._upsert_substitution(workout, modification, converted, original)
                )

        await self.session.flush()
        self.logger.info(
            "Decision applied",
            athlete_id=athlete.id,
            trigger_date=str(checkin_date),
            action=decision.action.value,
            **result.to_dict(),
        )
        return result

    async def get(self, modification_id: str) -> WorkoutModification | None:
        return await self.session.get(WorkoutModification, modification_id)

    async def list_modifications(
        self,
        athlete_id: str | None = None,
        action: DecisionAction | None = None,
        reviewed: bool | None = None,
        include_superseded: bool = False,
    ) -> list[WorkoutModification]:
        stmt = select(WorkoutModification)
        if athlete_id is not None:
            stmt = stmt.where(WorkoutModification.athlete_id == athlete_id)
        if action is not None:
            stmt = stmt.where(WorkoutModification.action == action.value)
        if reviewed is not None:
            stmt = stmt.where(WorkoutModification.reviewed == reviewed)
        if not include_superseded:
            stmt = stmt.where(WorkoutModification.superseded_by_id.is_(None))
        stmt = stmt.order_by(WorkoutModification.trigger_date.desc(), WorkoutModification.created_at)
        return list((await self.session.execute(stmt)).scalars().all())

    async def review(
        self,
        modification_id: str,
        decision: ReviewDecision,
        reviewer_id: str,
        revert: bool = False,
        override_action: DecisionAction | None = None,
        notes: str | None = None,
    ) -> WorkoutModification:
        """Record a coach review.

        The automatic ``action`` and ``reason`` are kept as written; a coach
        override is stored beside them and applied to the workout.

        Raises:
            NotFoundError: Unknown modification or workout
            InvalidTransitionError: Already reviewed or superseded, or the
                workout can no longer change (completed)
        """
        modification = await self.get(modification_id)
        if modification is None:
            raise NotFoundError("modification", modification_id)
        if modification.reviewed:
            raise InvalidTransitionError("modification", "reviewed", decision.value)
        if modification.superseded_by_id is not None:
            raise InvalidTransitionError("modification", "superseded", decision.value)

        workout = await self.session.get(PlannedWorkout, modification.workout_id)
        if workout is None:
            raise NotFoundError("workout", modification.workout_id)

        try:
            original = dict(modification.original_snapshot)
            if decision == ReviewDecision.REJECTED and revert:
                self._reset_workout(workout, original)
                await self._drop_substitution(workout.id)
                modification.reverted = True

            if override_action is not None and override_action.value != modification.action:
                injury = (
                    await self.session.get(InjuryAssessment, modification.injury_id)
                    if modification.injury_id
                    else None
                )
                self._reset_workout(workout, original)
                modified, converted = self._build(
                    original,
                    override_action,
                    injury.injury_type if injury is not None else None,
                )
                self._apply_to_workout(workout, override_action, modified)
                if converted is not None:
                    await self._upsert_substitution(workout, modification, converted, original)
                else:
                    await self._drop_substitution(workout.id)
                modification.coach_override_action = override_action.value

            modification.reviewed = True
            modification.review_decision = decision.value
            modification.reviewed_by = reviewer_id
            modification.reviewed_at = datetime.now(UTC)
            modification.coach_notes = notes
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            self.logger.error(
                "Review failed",
                modification_id=modification_id,
                error=str(e),
            )
            raise

        self.logger.info(
            "Modification reviewed",
            modification_id=modification.id,
            decision=decision.value,
            reverted=modification.reverted,
            override=modification.coach_override_action,
        )
        return modification
