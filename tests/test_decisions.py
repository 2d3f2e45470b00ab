"""Tests for the decision engine and methodology rules."""

from datetime import date, timedelta

import pytest

from readiness_engine.calculations.classification import AthleteLevel
from readiness_engine.calculations.decisions import (
    Decision,
    DayContext,
    DecisionPolicy,
    TriggerKind,
    affected_workouts,
    decide,
    modified_snapshot,
    plan_changes,
)
from readiness_engine.calculations.methodology import AthleteContext, CanovaRules, rules_for
from readiness_engine.calculations.readiness import ReadinessInputs, compute_readiness
from readiness_engine.core.exceptions import InvalidTransitionError
from readiness_engine.models.athlete import Methodology
from readiness_engine.models.modification import DecisionAction
from readiness_engine.models.training import ACWRZone
from readiness_engine.models.workout import (
    Intensity,
    PlannedWorkout,
    WorkoutStatus,
    WorkoutType,
    check_transition,
)

DAY = date(2025, 3, 28)

GOOD = {"sleep_hours": 8.0, "soreness": 2, "stress": 2, "mood": 8, "energy": 8}


def _day(zone: ACWRZone | None = None, is_ill: bool = False, gait: bool = False, **inputs) -> DayContext:
    values = {**GOOD, **inputs}
    readiness = compute_readiness(ReadinessInputs(acwr_zone=zone, **values))
    return DayContext(
        checkin_date=DAY,
        readiness=readiness,
        acwr_zone=zone,
        pain_level=values.get("pain_level"),
        gait_affected=gait,
        is_ill=is_ill,
    )


def _workout(offset: int = 0, **fields) -> PlannedWorkout:
    values = {
        "athlete_id": "athlete-1",
        "scheduled_date": DAY + timedelta(days=offset),
        "title": "Run",
        "workout_type": WorkoutType.RUNNING.value,
        "intensity": Intensity.THRESHOLD.value,
        "duration_minutes": 60.0,
        "distance_km": 12.0,
        "target_hr": 150,
        "planned_load": 90.0,
        "status": WorkoutStatus.PLANNED.value,
        "is_double_threshold": False,
        "is_specific_block": False,
        **fields,
    }
    return PlannedWorkout(**values)


class TestDecide:
    """Tests for decide()."""

    def test_all_clear_proceeds(self):
        decision = decide(_day(ACWRZone.OPTIMAL))

        assert decision.action == DecisionAction.PROCEED
        assert decision.is_proceed
        assert not decision.triggers_cascade

    def test_illness_cancels_rest_window(self):
        decision = decide(_day(is_ill=True))

        assert decision.action == DecisionAction.CANCEL
        assert decision.kind == TriggerKind.ILLNESS
        assert decision.window_days == 7
        assert decision.triggers_cascade

    def test_pain_converts_for_cascade_window(self):
        decision = decide(_day(pain_level=7))

        assert decision.action == DecisionAction.CONVERT_TO_CROSS_TRAINING
        assert decision.kind == TriggerKind.INJURY
        assert decision.window_days == 14
        assert decision.triggers_cascade

    def test_pain_with_altered_gait_cancels(self):
        decision = decide(_day(pain_level=6, gait=True))

        assert decision.action == DecisionAction.CANCEL
        assert decision.kind == TriggerKind.INJURY
        assert decision.window_days == 14

    def test_pain_wins_over_high_readiness(self):
        day = _day(pain_level=6, sleep_hours=9.0, soreness=1, stress=1, mood=10, energy=10)

        assert day.readiness.score >= 8.5
        assert decide(day).action == DecisionAction.CONVERT_TO_CROSS_TRAINING

    def test_danger_zone_reduces_volume(self):
        decision = decide(_day(ACWRZone.DANGER))

        assert decision.action == DecisionAction.REDUCE_VOLUME
        assert decision.kind == TriggerKind.LOAD
        assert decision.workout_count == 3
        assert decision.window_days is None
        assert not decision.triggers_cascade

    def test_critical_zone_cancels(self):
        decision = decide(_day(ACWRZone.CRITICAL))

        assert decision.action == DecisionAction.CANCEL
        assert decision.workout_count == 3
        # The readiness dip also fired and its reason is kept
        assert len(decision.reasons) == 2

    def test_caution_zone_reduces_intensity(self):
        decision = decide(_day(ACWRZone.CAUTION))

        assert decision.action == DecisionAction.REDUCE_INTENSITY
        assert decision.workout_count == 1

    def test_poor_sleep_reduces_volume_and_cascades(self):
        decision = decide(_day(sleep_hours=4.0))

        assert decision.action == DecisionAction.REDUCE_VOLUME
        assert decision.kind == TriggerKind.FATIGUE
        assert decision.workout_count == 2
        assert decision.triggers_cascade

    def test_readiness_dip(self):
        decision = decide(_day(sleep_hours=7.0, soreness=5, stress=5, mood=5, energy=5))

        assert decision.action == DecisionAction.REDUCE_INTENSITY
        assert decision.kind == TriggerKind.READINESS_DIP
        assert not decision.triggers_cascade

    def test_minor_pain_eases_intensity(self):
        decision = decide(_day(pain_level=3))

        assert decision.action == DecisionAction.REDUCE_INTENSITY
        assert not decision.triggers_cascade

    def test_critical_load_beats_pain_conversion(self):
        """Rest outranks cross-training; the pain still runs the cascade."""
        decision = decide(_day(ACWRZone.CRITICAL, pain_level=6))

        assert decision.action == DecisionAction.CANCEL
        assert decision.kind == TriggerKind.LOAD
        assert decision.workout_count == 3
        assert decision.window_days is None
        assert decision.triggers_cascade
        assert any("cross-training" in reason for reason in decision.reasons)

    def test_injury_window_wins_a_tie(self):
        """Pain with altered gait and a critical load both cancel; the injury sets the scope."""
        decision = decide(_day(ACWRZone.CRITICAL, gait=True, pain_level=7))

        assert decision.action == DecisionAction.CANCEL
        assert decision.kind == TriggerKind.INJURY
        assert decision.window_days == 14
        assert any("critical" in reason for reason in decision.reasons)

    def test_policy_overrides(self):
        policy = DecisionPolicy(cascade_window_days=10, acwr_reduce_workout_count=5)

        assert decide(_day(pain_level=7), policy).window_days == 10
        assert decide(_day(ACWRZone.DANGER), policy).workout_count == 5


class TestAffectedWorkouts:
    """Tests for decision scope."""

    def test_window_is_half_open(self):
        workouts = [_workout(offset) for offset in range(20)]
        decision = Decision(DecisionAction.CONVERT_TO_CROSS_TRAINING, TriggerKind.INJURY, window_days=14)

        affected = affected_workouts(decision, workouts, DAY)

        assert len(affected) == 14
        assert affected[-1].scheduled_date == DAY + timedelta(days=13)

    def test_count_takes_next_scheduled(self):
        workouts = [_workout(offset) for offset in (5, 1, 3, 8)]
        decision = Decision(DecisionAction.REDUCE_VOLUME, TriggerKind.LOAD, workout_count=3)

        affected = affected_workouts(decision, workouts, DAY)

        assert [w.scheduled_date for w in affected] == [DAY + timedelta(days=d) for d in (1, 3, 5)]

    def test_never_touches_the_past_or_finished_work(self):
        workouts = [
            _workout(-1),
            _workout(0, status=WorkoutStatus.COMPLETED.value),
            _workout(1, status=WorkoutStatus.CANCELLED.value),
            _workout(2, workout_type=WorkoutType.REST.value),
            _workout(3, workout_type=WorkoutType.STRENGTH.value),
            _workout(4),
        ]
        decision = Decision(DecisionAction.CANCEL, TriggerKind.ILLNESS, window_days=7)

        affected = affected_workouts(decision, workouts, DAY)

        assert [w.scheduled_date for w in affected] == [DAY + timedelta(days=4)]


class TestModifiedSnapshot:
    """Tests for per-workout changes."""

    def test_reduce_volume_halves(self):
        original = _workout().snapshot()
        modified = modified_snapshot(original, DecisionAction.REDUCE_VOLUME)

        assert modified["duration_minutes"] == 30.0
        assert modified["distance_km"] == 6.0
        assert modified["planned_load"] == 45.0
        assert modified["intensity"] == Intensity.EASY.value
        assert modified["status"] == WorkoutStatus.MODIFIED.value
        assert original["duration_minutes"] == 60.0

    def test_reduce_intensity_caps_at_moderate(self):
        original = _workout(intensity=Intensity.INTERVAL.value).snapshot()
        modified = modified_snapshot(original, DecisionAction.REDUCE_INTENSITY)

        assert modified["intensity"] == Intensity.MODERATE.value
        assert modified["target_hr"] == 135
        assert modified["planned_load"] == 63.0
        assert modified["duration_minutes"] == 60.0

    def test_reduce_intensity_steps_down_once(self):
        original = _workout(intensity=Intensity.MODERATE.value).snapshot()
        assert modified_snapshot(original, DecisionAction.REDUCE_INTENSITY)["intensity"] == "easy"

    def test_cancel_only_changes_status(self):
        original = _workout().snapshot()
        modified = modified_snapshot(original, DecisionAction.CANCEL)

        assert modified == {**original, "status": WorkoutStatus.CANCELLED.value}


class TestMethodologyRules:
    """Tests for methodology gating."""

    def test_norwegian_double_threshold_needs_review(self):
        workouts = [_workout(0, is_double_threshold=True), _workout(1)]
        decision = Decision(DecisionAction.REDUCE_VOLUME, TriggerKind.LOAD, ["ACWR high"], workout_count=2)

        changes = plan_changes(
            decision,
            workouts,
            DAY,
            rules_for(Methodology.NORWEGIAN),
            AthleteContext(methodology=Methodology.NORWEGIAN),
        )

        assert [c.action for c in changes] == [DecisionAction.MANUAL_REVIEW, DecisionAction.REDUCE_VOLUME]
        assert "lactate meter" in changes[0].reason
        assert changes[0].modified == workouts[0].snapshot()

    def test_norwegian_with_meter_and_coach_is_automatic(self):
        context = AthleteContext(
            methodology=Methodology.NORWEGIAN,
            has_lactate_meter=True,
            coach_supervised=True,
        )
        verdict = rules_for("norwegian").is_eligible_for_auto_modification(
            _workout(is_double_threshold=True), context
        )
        assert verdict.eligible

    @pytest.mark.parametrize(
        ("level", "eligible"),
        [
            (AthleteLevel.ELITE, True),
            (AthleteLevel.ADVANCED, True),
            (AthleteLevel.INTERMEDIATE, False),
            (None, False),
        ],
    )
    def test_canova_specific_block(self, level, eligible):
        context = AthleteContext(methodology=Methodology.CANOVA, level=level)
        verdict = CanovaRules().is_eligible_for_auto_modification(_workout(is_specific_block=True), context)
        assert verdict.eligible is eligible

    def test_unknown_methodology_uses_defaults(self):
        assert rules_for("hybrid").methodology == Methodology.POLARIZED

    def test_proceed_changes_nothing(self):
        decision = Decision(DecisionAction.PROCEED, TriggerKind.NONE)
        assert plan_changes(decision, [_workout()], DAY, rules_for("polarized"), AthleteContext()) == []


class TestWorkoutStateMachine:
    """Tests for workout status transitions."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (WorkoutStatus.PLANNED, WorkoutStatus.MODIFIED),
            (WorkoutStatus.PLANNED, WorkoutStatus.CANCELLED),
            (WorkoutStatus.MODIFIED, WorkoutStatus.PLANNED),
            (WorkoutStatus.MODIFIED, WorkoutStatus.COMPLETED),
            (WorkoutStatus.CANCELLED, WorkoutStatus.PLANNED),
        ],
    )
    def test_allowed(self, current, target):
        assert check_transition(current, target) == target

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (WorkoutStatus.COMPLETED, WorkoutStatus.PLANNED),
            (WorkoutStatus.COMPLETED, WorkoutStatus.MODIFIED),
            (WorkoutStatus.CANCELLED, WorkoutStatus.MODIFIED),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidTransitionError):
            check_transition(current, target)
