"""Strength progression, plateau detection and deload prescription.

A lift is progressing when any of three axes moves: working load went up,
the estimated 1RM trend is rising, or reps at the current load went up.
When none of them has moved for ``plateau_min_weeks`` the exercise is on a
plateau; a falling trend always calls for a deload.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from scipy import stats

from readiness_engine.core.exceptions import InsufficientDataError

MIN_SESSIONS = 4
TREND_THRESHOLD_PERCENT = 0.5  # Weekly 1RM slope relative to mean
DELOAD_VOLUME_MIN = 40.0
DELOAD_VOLUME_MAX = 60.0
DELOAD_REPS_FACTOR = 0.75


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class ProgressionStatus(str, Enum):
    PROGRESSING = "progressing"
    PLATEAU = "plateau"
    DECLINING = "declining"
    INSUFFICIENT_DATA = "insufficient_data"


class Recommendation(str, Enum):
    CONTINUE = "continue"
    VARIATION = "variation"
    DELOAD = "deload"
    COLLECT_MORE_DATA = "collect_more_data"


@dataclass(frozen=True)
class StrengthSession:
    date: date
    sets: int
    reps: int
    load_kg: float

    @property
    def estimated_1rm(self) -> float:
        return epley_1rm(self.load_kg, self.reps)


@dataclass(frozen=True)
class ProgressionPolicy:
    window_sessions: int = 8
    plateau_min_weeks: int = 3
    plateau_deload_weeks: int = 6
    deload_load_reduction_percent: float = 5.0


@dataclass
class DeloadPrescription:
    sets: int
    reps: int
    load_kg: float
    volume_reduction_percent: float

    def to_dict(self) -> dict[str, float | int]:
        return {
            "sets": self.sets,
            "reps": self.reps,
            "load_kg": self.load_kg,
            "volume_reduction_percent": self.volume_reduction_percent,
        }


@dataclass
class ProgressionAnalysis:
    exercise: str
    status: ProgressionStatus
    recommendation: Recommendation
    trend: Trend | None = None
    weekly_change_percent: float | None = None
    weeks_without_progress: float = 0.0
    load_increased: bool = False
    reps_increased: bool = False
    estimated_1rm: float | None = None
    sessions_analyzed: int = 0
    deload: DeloadPrescription | None = None
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "exercise": self.exercise,
            "status": self.status.value,
            "recommendation": self.recommendation.value,
            "trend": self.trend.value if self.trend else None,
            "weekly_change_percent": self.weekly_change_percent,
            "weeks_without_progress": self.weeks_without_progress,
            "load_increased": self.load_increased,
            "reps_increased": self.reps_increased,
            "estimated_1rm": self.estimated_1rm,
            "sessions_analyzed": self.sessions_analyzed,
            "deload": self.deload.to_dict() if self.deload else None,
            "reasons": list(self.reasons),
        }


def epley_1rm(load_kg: float, reps: int) -> float:
    """Epley estimate; a single is its own 1RM."""
    if reps <= 1:
        return round(load_kg, 1)
    return round(load_kg * (1 + reps / 30.0), 1)


def one_rm_trend(sessions: list[StrengthSession]) -> tuple[Trend, float]:
    """Classify the 1RM trend from a least-squares slope per week.

    Returns:
        The trend and the weekly change as a percent of the mean 1RM

    Raises:
        InsufficientDataError: With fewer than two sessions
    """
    if len(sessions) < 2:
        raise InsufficientDataError("Need at least 2 sessions for a trend", required=2, received=len(sessions))
    start = sessions[0].date
    days = [(s.date - start).days for s in sessions]
    values = [s.estimated_1rm for s in sessions]
    mean_value = sum(values) / len(values)
    if len(set(days)) < 2 or mean_value <= 0:
        return Trend.STABLE, 0.0

    fit = stats.linregress(days, values)
    weekly_percent = float(fit.slope) * 7 / mean_value * 100
    if weekly_percent > TREND_THRESHOLD_PERCENT:
        trend = Trend.IMPROVING
    elif weekly_percent < -TREND_THRESHOLD_PERCENT:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE
    return trend, round(weekly_percent, 2)


def reps_increased_at_current_load(sessions: list[StrengthSession]) -> bool:
    """Whether the latest session beat the first session at the same load."""
    current = sessions[-1]
    same_load = [s for s in sessions[:-1] if math.isclose(s.load_kg, current.load_kg)]
    return bool(same_load) and current.reps > same_load[0].reps


def weeks_since_progress(sessions: list[StrengthSession]) -> float:
    """Weeks since the best estimated 1RM was last set."""
    best_date = sessions[0].date
    best = sessions[0].estimated_1rm
    for session in sessions[1:]:
        if session.estimated_1rm > best:
            best = session.estimated_1rm
            best_date = session.date
    return round((sessions[-1].date - best_date).days / 7, 1)


def prescribe_deload(sets: int, reps: int, load_kg: float, load_reduction_percent: float = 5.0) -> DeloadPrescription:
    """Halve sets, trim reps, then settle reps so volume drops 40-60 %.

    Neither sets nor reps ever go up. When the halved set count cannot reach
    the band (3x2), other set counts are tried. With very small volumes (3x1,
    1x1) no integer combination lands inside the band; the closest
    achievable reduction is used.
    """
    original_volume = sets * reps
    half_sets = max(1, math.ceil(sets / 2))
    target_reps = max(1, round(reps * DELOAD_REPS_FACTOR))

    def reduction(s: int, r: int) -> float:
        return (1 - s * r / original_volume) * 100

    def distance(s: int, r: int) -> float:
        pct = reduction(s, r)
        if DELOAD_VOLUME_MIN <= pct <= DELOAD_VOLUME_MAX:
            return 0.0
        return min(abs(pct - DELOAD_VOLUME_MIN), abs(pct - DELOAD_VOLUME_MAX))

    # In band first, then the halved set count, then reps nearest the ~25 % cut
    candidates = [(s, r) for s in range(1, sets + 1) for r in range(1, reps + 1)]
    new_sets, new_reps = min(
        candidates,
        key=lambda c: (distance(*c), abs(c[0] - half_sets), abs(c[1] - target_reps)),
    )
    load = round(load_kg * (1 - load_reduction_percent / 100), 1)
    return DeloadPrescription(
        sets=new_sets,
        reps=new_reps,
        load_kg=load,
        volume_reduction_percent=round(reduction(new_sets, new_reps), 1),
    )


def analyze_progression(
    exercise: str,
    sessions: list[StrengthSession],
    policy: ProgressionPolicy = ProgressionPolicy(),
) -> ProgressionAnalysis:
    """Analyze the trailing window of sessions for one exercise."""
    ordered = sorted(sessions, key=lambda s: s.date)[-policy.window_sessions :]
    if len(ordered) < MIN_SESSIONS:
        return ProgressionAnalysis(
            exercise=exercise,
            status=ProgressionStatus.INSUFFICIENT_DATA,
            recommendation=Recommendation.COLLECT_MORE_DATA,
            sessions_analyzed=len(ordered),
            reasons=[f"Need at least {MIN_SESSIONS} sessions, have {len(ordered)}"],
        )

    trend, weekly_percent = one_rm_trend(ordered)
    load_increased = ordered[-1].load_kg > ordered[0].load_kg
    reps_increased = reps_increased_at_current_load(ordered)
    stalled_weeks = weeks_since_progress(ordered)
    latest = ordered[-1]

    analysis = ProgressionAnalysis(
        exercise=exercise,
        status=ProgressionStatus.PROGRESSING,
        recommendation=Recommendation.CONTINUE,
        trend=trend,
        weekly_change_percent=weekly_percent,
        weeks_without_progress=stalled_weeks,
        load_increased=load_increased,
        reps_increased=reps_increased,
        estimated_1rm=latest.estimated_1rm,
        sessions_analyzed=len(ordered),
    )

    if trend == Trend.DECLINING:
        analysis.status = ProgressionStatus.DECLINING
        analysis.recommendation = Recommendation.DELOAD
        analysis.reasons.append(f"Estimated 1RM falling {abs(weekly_percent):.1f}% per week")
    elif not (load_increased or reps_increased or trend == Trend.IMPROVING):
        span_weeks = (ordered[-1].date - ordered[0].date).days / 7
        if span_weeks >= policy.plateau_min_weeks:
            analysis.status = ProgressionStatus.PLATEAU
            if stalled_weeks >= policy.plateau_deload_weeks:
                analysis.recommendation = Recommendation.DELOAD
                analysis.reasons.append(f"No progress for {stalled_weeks:.0f} weeks: deload")
            else:
                analysis.recommendation = Recommendation.VARIATION
                analysis.reasons.append(f"No progress over {span_weeks:.0f} weeks: change the stimulus")
        else:
            analysis.reasons.append("No progress yet, window too short to call a plateau")
    else:
        analysis.reasons.append("Progressing")

    if analysis.recommendation == Recommendation.DELOAD:
        analysis.deload = prescribe_deload(
            latest.sets, latest.reps, latest.load_kg, policy.deload_load_reduction_percent
        )
    return analysis
