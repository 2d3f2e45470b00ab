"""Injury classification from check-in symptoms.

Besides the type and severity, a classification carries the phase of the
return-to-running protocol the athlete starts from and what happens to the
program as a whole while they recover.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Any

from readiness_engine.models.injury import (
    ImmediateAction,
    InjuryPhase,
    InjurySeverity,
    InjuryType,
    ProgramAction,
)
from readiness_engine.models.notification import NotificationUrgency
from readiness_engine.models.training import ACWRZone

BODY_PART_INJURY: dict[str, InjuryType] = {
    "shin": InjuryType.SHIN_SPLINTS,
    "calf": InjuryType.CALF_STRAIN,
    "achilles": InjuryType.ACHILLES_TENDINOPATHY,
    "ankle": InjuryType.SHIN_SPLINTS,
    "foot": InjuryType.PLANTAR_FASCIITIS,
    "heel": InjuryType.PLANTAR_FASCIITIS,
    "knee": InjuryType.PATELLOFEMORAL_SYNDROME,
    "it_band": InjuryType.IT_BAND_SYNDROME,
    "itb": InjuryType.IT_BAND_SYNDROME,
    "hamstring": InjuryType.HAMSTRING_STRAIN,
    "quad": InjuryType.HAMSTRING_STRAIN,
    "hip": InjuryType.HIP_FLEXOR,
    "groin": InjuryType.HIP_FLEXOR,
}
DEFAULT_INJURY = InjuryType.SHIN_SPLINTS

RETURN_WEEKS: dict[InjuryType, int] = {
    InjuryType.PLANTAR_FASCIITIS: 4,
    InjuryType.ACHILLES_TENDINOPATHY: 6,
    InjuryType.IT_BAND_SYNDROME: 3,
    InjuryType.PATELLOFEMORAL_SYNDROME: 4,
    InjuryType.SHIN_SPLINTS: 4,
    InjuryType.STRESS_FRACTURE: 12,
    InjuryType.HAMSTRING_STRAIN: 3,
    InjuryType.CALF_STRAIN: 3,
    InjuryType.HIP_FLEXOR: 3,
}

SUGGESTED_ACTIONS: dict[InjuryType, list[str]] = {
    InjuryType.STRESS_FRACTURE: [
        "Arrange imaging (MRI or bone scan) urgently",
        "No impact loading until cleared",
    ],
    InjuryType.ACHILLES_TENDINOPATHY: [
        "Start isometric calf loading",
        "Avoid hills and speed work",
    ],
    InjuryType.PLANTAR_FASCIITIS: ["Calf and plantar fascia stretching", "Check footwear mileage"],
    InjuryType.PATELLOFEMORAL_SYNDROME: ["Hip and quad strengthening", "Reduce downhill running"],
    InjuryType.IT_BAND_SYNDROME: ["Hip abductor strengthening", "Review cadence"],
    InjuryType.SHIN_SPLINTS: ["Progressive calf raises and tibialis work", "Check surface and shoe wear"],
    InjuryType.CALF_STRAIN: ["Isometric calf holds, then slow heel raises", "No hills or strides"],
    InjuryType.HAMSTRING_STRAIN: ["Isometric bridges, then Nordic curls once pain-free", "No sprinting"],
    InjuryType.HIP_FLEXOR: ["Straight leg raises and hip flexor isometrics", "Avoid hill repeats"],
}

@dataclass(frozen=True)
class ReturnToRunPhase:
    """One stage of the graded return to running."""

    phase: int
    name: str
    weeks: int
    run_walk_ratio: str
    sessions_per_week: int
    session_minutes: int
    intensity: str
    pain_rule: str
    progression_criteria: tuple[str, ...]
    cross_training_allowed: bool

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["progression_criteria"] = list(self.progression_criteria)
        return data


RETURN_TO_RUN_PHASES: tuple[ReturnToRunPhase, ...] = (
    ReturnToRunPhase(
        phase=1,
        name="Walking only",
        weeks=1,
        run_walk_ratio="0:1 (walk only)",
        sessions_per_week=5,
        session_minutes=20,
        intensity="easy, conversational",
        pain_rule="Stop if pain goes above 2/10",
        progression_criteria=(
            "7 consecutive days of pain-free walking",
            "No morning stiffness",
            "Full range of motion",
            "Coach or physio clearance",
        ),
        cross_training_allowed=True,
    ),
    ReturnToRunPhase(
        phase=2,
        name="Walk/run introduction",
        weeks=2,
        run_walk_ratio="1:4 (1 min run, 4 min walk)",
        sessions_per_week=3,
        session_minutes=30,
        intensity="very easy",
        pain_rule="Stop if pain goes above 1/10",
        progression_criteria=(
            "6 sessions completed pain-free",
            "No pain 24 hours after running",
            "HRV within 5 % of baseline",
            "Sleep quality maintained",
        ),
        cross_training_allowed=True,
    ),
    ReturnToRunPhase(
        phase=3,
        name="Progressive walk/run",
        weeks=2,
        run_walk_ratio="2:3 building to 3:2",
        sessions_per_week=4,
        session_minutes=35,
        intensity="easy",
        pain_rule="Stop if pain goes above 2/10",
        progression_criteria=(
            "8 sessions completed pain-free",
            "No ACWR above 1.3",
            "Functional movement screen passed",
            "Strength exercises pain-free",
        ),
        cross_training_allowed=True,
    ),
    ReturnToRunPhase(
        phase=4,
        name="Continuous running",
        weeks=2,
        run_walk_ratio="1:0 (continuous)",
        sessions_per_week=4,
        session_minutes=40,
        intensity="easy to moderate",
        pain_rule="Cut the run short if pain goes above 1/10",
        progression_criteria=(
            "8 continuous runs completed",
            "Weekly volume at 50 % of pre-injury",
            "No symptoms for 2 weeks",
        ),
        cross_training_allowed=False,
    ),
    ReturnToRunPhase(
        phase=5,
        name="Return to full training",
        weeks=4,
        run_walk_ratio="1:0",
        sessions_per_week=5,
        session_minutes=60,
        intensity="easy, then threshold reintroduced",
        pain_rule="Monitor daily; stop if pain returns",
        progression_criteria=(
            "Weekly volume at 80 % of pre-injury",
            "Intensity progression reintroduced",
            "No symptoms for 4 weeks",
            "Coach clearance to race",
        ),
        cross_training_allowed=False,
    ),
)


@dataclass(frozen=True)
class ProgramAdjustment:
    action: ProgramAction
    reason: str
    pause_weeks: int | None = None
    volume_reduction_percent: int | None = None
    intensity_reduction_percent: int | None = None
    goal_shift_days: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        return data


@dataclass
class InjuryClassification:
    injury_type: InjuryType | None  # None for illness
    body_part: str | None
    severity: InjurySeverity
    phase: InjuryPhase
    immediate_action: ImmediateAction
    estimated_return_weeks: int
    urgency: NotificationUrgency
    suggested_actions: list[str] = field(default_factory=list)
    return_to_run: ReturnToRunPhase | None = None
    program_adjustment: ProgramAdjustment | None = None


def infer_injury_type(
    reported_type: str | None,
    body_part: str | None,
    notes: str | None = None,
) -> InjuryType:
    """Explicit type, then body part, then a body-part keyword in the notes."""
    if reported_type:
        try:
            return InjuryType(reported_type.lower())
        except ValueError:
            pass
    if body_part:
        mapped = BODY_PART_INJURY.get(body_part.lower().replace(" ", "_"))
        if mapped is not None:
            return mapped
    if notes:
        lowered = notes.lower()
        for keyword, injury_type in BODY_PART_INJURY.items():
            if keyword in lowered:
                return injury_type
    return DEFAULT_INJURY


def classify_severity(pain_level: int, gait_affected: bool) -> InjurySeverity:
    if pain_level >= 8 or gait_affected:
        return InjurySeverity.SEVERE
    if pain_level >= 5:
        return InjurySeverity.MODERATE
    return InjurySeverity.MILD


def immediate_action(pain_level: int, timing: str | None = None) -> ImmediateAction:
    """Pain-monitoring rules for what to do today."""
    if pain_level > 5 or timing == "constant":
        return ImmediateAction.REST
    if pain_level >= 3:
        return ImmediateAction.CROSS_TRAINING_ONLY
    if pain_level > 0:
        return ImmediateAction.REDUCE
    return ImmediateAction.MONITOR


def estimate_return_weeks(
    injury_type: InjuryType,
    pain_level: int,
    acwr_zone: ACWRZone | None = None,
) -> int:
    weeks = RETURN_WEEKS.get(injury_type, 4)
    if pain_level > 7:
        weeks += 2
    elif pain_level > 5:
        weeks += 1
    if acwr_zone == ACWRZone.CRITICAL:
        weeks += 2
    elif acwr_zone == ACWRZone.DANGER:
        weeks += 1
    return weeks


def rehab_phase(severity: InjurySeverity, action: ImmediateAction) -> InjuryPhase:
    if severity == InjurySeverity.SEVERE:
        return InjuryPhase.ACUTE
    if action in (ImmediateAction.REDUCE, ImmediateAction.MONITOR):
        return InjuryPhase.RETURN_TO_RUN
    return InjuryPhase.SUBACUTE


def return_to_run_phase(pain_level: int, action: ImmediateAction) -> ReturnToRunPhase | None:
    """Phase the athlete starts from once running resumes.

    Only produced when running stops today (rest or cross-training only);
    higher pain starts further back.
    """
    if action not in (ImmediateAction.REST, ImmediateAction.CROSS_TRAINING_ONLY):
        return None
    if pain_level > 7:
        start = 1
    elif pain_level > 5:
        start = 2
    else:
        start = 3
    return RETURN_TO_RUN_PHASES[start - 1]


def program_adjustment(action: ImmediateAction, return_weeks: int, label: str) -> ProgramAdjustment:
    """Pause the program while running is stopped, trim it while running is reduced."""
    if action in (ImmediateAction.REST, ImmediateAction.CROSS_TRAINING_ONLY):
        return ProgramAdjustment(
            action=ProgramAction.PAUSE,
            reason=f"Program paused for {return_weeks} weeks ({label}); goal date moves back to match",
            pause_weeks=return_weeks,
            goal_shift_days=return_weeks * 7,
        )
    if action == ImmediateAction.REDUCE:
        shift = math.ceil(return_weeks * 3.5)
        return ProgramAdjustment(
            action=ProgramAction.MODIFY,
            reason=f"Volume down 50 % and intensity down 30 % for {return_weeks} weeks ({label})",
            volume_reduction_percent=50,
            intensity_reduction_percent=30,
            goal_shift_days=shift,
        )
    return ProgramAdjustment(
        action=ProgramAction.MAINTAIN,
        reason="Continue the program at reduced intensity and monitor symptoms daily",
    )


def notification_urgency(pain_level: int, injury_type: InjuryType | None = None) -> NotificationUrgency:
    if pain_level > 7 or injury_type == InjuryType.STRESS_FRACTURE:
        return NotificationUrgency.CRITICAL
    if pain_level >= 5:
        return NotificationUrgency.HIGH
    return NotificationUrgency.MEDIUM


def classify_injury(
    pain_level: int,
    gait_affected: bool = False,
    reported_type: str | None = None,
    body_part: str | None = None,
    timing: str | None = None,
    notes: str | None = None,
    acwr_zone: ACWRZone | None = None,
) -> InjuryClassification:
    injury_type = infer_injury_type(reported_type, body_part, notes)
    severity = classify_severity(pain_level, gait_affected)
    action = immediate_action(pain_level, timing)
    return_weeks = estimate_return_weeks(injury_type, pain_level, acwr_zone)
    actions = list(SUGGESTED_ACTIONS.get(injury_type, []))
    if gait_affected:
        actions.insert(0, "Altered gait reported: no running until assessed")
    actions.append("Review cross-training plan for the next two weeks")
    return InjuryClassification(
        injury_type=injury_type,
        body_part=body_part,
        severity=severity,
        phase=rehab_phase(severity, action),
        immediate_action=action,
        estimated_return_weeks=return_weeks,
        urgency=notification_urgency(pain_level, injury_type),
        suggested_actions=actions,
        return_to_run=return_to_run_phase(pain_level, action),
        program_adjustment=program_adjustment(action, return_weeks, injury_type.value.replace("_", " ")),
    )
