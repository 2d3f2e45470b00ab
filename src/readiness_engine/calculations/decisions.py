"""Workout modification decisions.

``decide`` turns one day's readiness and load output into a single action
plus the scope it applies to (a forward window of days, or the next N
scheduled workouts). ``plan_changes`` then walks the athlete's upcoming
workouts, asks the methodology rule set about each one, and produces the
per-workout changes to persist.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum

from readiness_engine.calculations.methodology import AthleteContext, MethodologyRules
from readiness_engine.calculations.readiness import ReadinessResult, RedFlag
from readiness_engine.models.modification import DecisionAction
from readiness_engine.models.training import ACWRZone
from readiness_engine.models.workout import (
    INTENSITY_ORDER,
    Intensity,
    PlannedWorkout,
    WorkoutStatus,
    WorkoutType,
)

MINOR_PAIN_FROM = 3
VOLUME_FACTOR = 0.5
INTENSITY_LOAD_FACTOR = 0.7
INTENSITY_HR_FACTOR = 0.9

UNTOUCHABLE_STATUSES = (WorkoutStatus.COMPLETED.value, WorkoutStatus.CANCELLED.value)
SKIPPED_TYPES = (WorkoutType.REST.value, WorkoutType.STRENGTH.value)


class TriggerKind(str, Enum):
    NONE = "none"
    INJURY = "injury"  # Pain red flag
    ILLNESS = "illness"
    FATIGUE = "fatigue"  # Sleep, stress or readiness red flag
    LOAD = "load"  # ACWR zone
    READINESS_DIP = "readiness_dip"


@dataclass(frozen=True)
class DecisionPolicy:
    cascade_window_days: int = 14
    illness_rest_days: int = 7
    acwr_reduce_workout_count: int = 3
    fatigue_reduce_workout_count: int = 2
    readiness_dip_threshold: float = 7.0


@dataclass
class DayContext:
    """Inputs for one check-in day."""

    checkin_date: date
    readiness: ReadinessResult
    acwr_zone: ACWRZone | None = None
    pain_level: int | None = None
    gait_affected: bool = False
    is_ill: bool = False


@dataclass
class Decision:
    action: DecisionAction
    kind: TriggerKind
    reasons: list[str] = field(default_factory=list)
    window_days: int | None = None
    workout_count: int | None = None
    triggers_cascade: bool = False

    @property
    def is_proceed(self) -> bool:
        return self.action == DecisionAction.PROCEED

    def to_dict(self) -> dict[str, object]:
        return {
            "action": self.action.value,
            "kind": self.kind.value,
            "reasons": list(self.reasons),
            "window_days": self.window_days,
            "workout_count": self.workout_count,
            "triggers_cascade": self.triggers_cascade,
        }


@dataclass
class _Candidate:
    action: DecisionAction
    kind: TriggerKind
    reason: str
    window_days: int | None = None
    workout_count: int | None = None


@dataclass
class WorkoutChange:
    workout: PlannedWorkout
    action: DecisionAction
    reason: str
    modified: dict[str, object]


def decide(day: DayContext, policy: DecisionPolicy = DecisionPolicy()) -> Decision:
    """Most severe applicable action; every fired rule contributes a reason."""
    readiness = day.readiness
    candidates: list[_Candidate] = []
    pain_flag = readiness.flag(RedFlag.PAIN)

    if day.is_ill:
        candidates.append(
            _Candidate(
                DecisionAction.CANCEL,
                TriggerKind.ILLNESS,
                "Illness reported: complete rest",
                window_days=policy.illness_rest_days,
            )
        )
    if pain_flag is not None:
        if day.gait_affected:
            candidates.append(
                _Candidate(
                    DecisionAction.CANCEL,
                    TriggerKind.INJURY,
                    f"{pain_flag.reason} with altered gait: no running",
                    window_days=policy.cascade_window_days,
                )
            )
        else:
            candidates.append(
                _Candidate(
                    DecisionAction.CONVERT_TO_CROSS_TRAINING,
                    TriggerKind.INJURY,
                    f"{pain_flag.reason}: replace running with cross-training",
                    window_days=policy.cascade_window_days,
                )
            )

    if day.acwr_zone == ACWRZone.CRITICAL:
        candidates.append(
            _Candidate(
                DecisionAction.CANCEL,
                TriggerKind.LOAD,
                "ACWR in critical zone: rest",
                workout_count=policy.acwr_reduce_workout_count,
            )
        )
    elif day.acwr_zone == ACWRZone.DANGER:
        candidates.append(
            _Candidate(
                DecisionAction.REDUCE_VOLUME,
                TriggerKind.LOAD,
                "ACWR in danger zone: cut volume",
                workout_count=policy.acwr_reduce_workout_count,
            )
        )
    elif day.acwr_zone == ACWRZone.CAUTION:
        candidates.append(
            _Candidate(
                DecisionAction.REDUCE_INTENSITY,
                TriggerKind.LOAD,
                "ACWR in caution zone: ease intensity",
                workout_count=1,
            )
        )

    for hit in readiness.red_flags:
        if hit.flag != RedFlag.PAIN:
            candidates.append(
                _Candidate(
                    DecisionAction.REDUCE_VOLUME,
                    TriggerKind.FATIGUE,
                    hit.reason,
                    workout_count=policy.fatigue_reduce_workout_count,
                )
            )

    if not readiness.has_red_flags and readiness.score < policy.readiness_dip_threshold:
        candidates.append(
            _Candidate(
                DecisionAction.REDUCE_INTENSITY,
                TriggerKind.READINESS_DIP,
                f"Readiness {readiness.score:.1f} is below usual",
                workout_count=1,
            )
        )
    if pain_flag is None and day.pain_level is not None and day.pain_level >= MINOR_PAIN_FROM:
        candidates.append(
            _Candidate(
                DecisionAction.REDUCE_INTENSITY,
                TriggerKind.READINESS_DIP,
                f"Pain {day.pain_level}/10: keep it easy and monitor",
                workout_count=1,
            )
        )

    if not candidates:
        return Decision(DecisionAction.PROCEED, TriggerKind.NONE, ["No red flags, load in range"])

    # Most severe action wins; on a tie illness and injury keep their window
    episode_kinds = (TriggerKind.ILLNESS, TriggerKind.INJURY)
    chosen = max(candidates, key=lambda c: (c.action.severity, c.kind in episode_kinds))
    triggers_cascade = readiness.has_red_flags or day.is_ill

    return Decision(
        action=chosen.action,
        kind=chosen.kind,
        reasons=[c.reason for c in candidates],
        window_days=chosen.window_days,
        workout_count=chosen.workout_count,
        triggers_cascade=triggers_cascade,
    )


def is_modifiable(workout: PlannedWorkout, checkin_date: date) -> bool:
    """On or after the check-in day, not finished, and a training session."""
    return (
        workout.scheduled_date >= checkin_date
        and workout.status not in UNTOUCHABLE_STATUSES
        and workout.workout_type not in SKIPPED_TYPES
    )


def affected_workouts(
    decision: Decision,
    workouts: list[PlannedWorkout],
    checkin_date: date,
) -> list[PlannedWorkout]:
    """Workouts in the decision's scope, in schedule order."""
    candidates = sorted(
        (w for w in workouts if is_modifiable(w, checkin_date)),
        key=lambda w: (w.scheduled_date, w.id or ""),
    )
    if decision.window_days is not None:
        end = checkin_date + timedelta(days=decision.window_days)
        return [w for w in candidates if w.scheduled_date < end]
    if decision.workout_count is not None:
        return candidates[: decision.workout_count]
    return []


def _lower_intensity(current: str, cap: Intensity | None = None) -> str:
    try:
        index = INTENSITY_ORDER.index(Intensity(current))
    except ValueError:
        return Intensity.EASY.value
    lowered = INTENSITY_ORDER[max(0, index - 1)]
    if cap is not None and INTENSITY_ORDER.index(lowered) > INTENSITY_ORDER.index(cap):
        lowered = cap
    return lowered.value


def _scaled(value: float | int | None, factor: float) -> float | None:
    return round(value * factor, 1) if value is not None else None


def modified_snapshot(original: dict[str, object], action: DecisionAction) -> dict[str, object]:
    """The workout after an automatic action.

    Cross-training conversion is computed by the substitution step and is
    not handled here.
    """
    modified = dict(original)
    if action == DecisionAction.REDUCE_INTENSITY:
        modified["intensity"] = _lower_intensity(str(original["intensity"]), cap=Intensity.MODERATE)
        hr = original.get("target_hr")
        modified["target_hr"] = round(hr * INTENSITY_HR_FACTOR) if isinstance(hr, int | float) else None
        modified["planned_load"] = _scaled(original.get("planned_load"), INTENSITY_LOAD_FACTOR)
        modified["status"] = WorkoutStatus.MODIFIED.value
    elif action == DecisionAction.REDUCE_VOLUME:
        modified["intensity"] = _lower_intensity(str(original["intensity"]), cap=Intensity.EASY)
        modified["duration_minutes"] = _scaled(original.get("duration_minutes"), VOLUME_FACTOR)
        modified["distance_km"] = _scaled(original.get("distance_km"), VOLUME_FACTOR)
        modified["planned_load"] = _scaled(original.get("planned_load"), VOLUME_FACTOR)
        modified["status"] = WorkoutStatus.MODIFIED.value
    elif action == DecisionAction.CANCEL:
        modified["status"] = WorkoutStatus.CANCELLED.value
    return modified


def plan_changes(
    decision: Decision,
    workouts: list[PlannedWorkout],
    checkin_date: date,
    rules: MethodologyRules,
    athlete: AthleteContext,
) -> list[WorkoutChange]:
    """Per-workout changes for a decision.

    Workouts the methodology will not let the engine touch are returned as
    MANUAL_REVIEW changes with their snapshot unchanged.
    """
    if decision.is_proceed:
        return []

    reason = "; ".join(decision.reasons)
    changes: list[WorkoutChange] = []
    for workout in affected_workouts(decision, workouts, checkin_date):
        original = workout.snapshot()
        verdict = rules.is_eligible_for_auto_modification(workout, athlete)
        if not verdict.eligible:
            changes.append(
                WorkoutChange(
                    workout,
                    DecisionAction.MANUAL_REVIEW,
                    f"{reason}; {verdict.reason}",
                    original,
                )
            )
            continue
        changes.append(
            WorkoutChange(workout, decision.action, reason, modified_snapshot(original, decision.action))
        )
    return changes
