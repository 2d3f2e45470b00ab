"""Composite readiness score and red-flag detection.

The composite is a weighted mean of 0-10 sub-scores. Each sub-score is a
clamped non-decreasing function of "good" inputs (HRV, mood, energy, sleep)
and non-increasing in "bad" ones (RHR, soreness, stress, ACWR zone
severity), and missing components are dropped with the remaining weights
renormalised, so a worse input can never raise the score.

Red flags are evaluated independently of the composite.
"""

from dataclasses import dataclass, field
from enum import Enum

from readiness_engine.calculations.baselines import RollingBaseline
from readiness_engine.models.readiness import ReadinessLevel
from readiness_engine.models.training import ACWRZone

ACWR_ZONE_SCORES = {
    ACWRZone.OPTIMAL: 10.0,
    ACWRZone.DETRAINING: 8.0,
    ACWRZone.CAUTION: 6.0,
    ACWRZone.DANGER: 3.0,
    ACWRZone.CRITICAL: 0.0,
}


class RedFlag(str, Enum):
    PAIN = "pain"
    LOW_READINESS = "low_readiness"
    POOR_SLEEP = "poor_sleep"
    HIGH_STRESS = "high_stress"


@dataclass(frozen=True)
class ReadinessWeights:
    hrv: float = 0.25
    rhr: float = 0.15
    wellness: float = 0.30
    acwr: float = 0.15
    sleep: float = 0.15


@dataclass(frozen=True)
class RedFlagThresholds:
    pain: int = 5
    readiness: float = 5.5
    sleep_hours: float = 5.0
    stress: int = 8


@dataclass
class ReadinessInputs:
    hrv: float | None = None
    resting_hr: float | None = None
    sleep_hours: float | None = None
    soreness: int | None = None
    stress: int | None = None
    mood: int | None = None
    energy: int | None = None
    pain_level: int | None = None
    acwr_zone: ACWRZone | None = None


@dataclass
class RedFlagHit:
    flag: RedFlag
    value: float
    threshold: float
    reason: str

    def to_dict(self) -> dict[str, object]:
        return {
            "flag": self.flag.value,
            "value": self.value,
            "threshold": self.threshold,
            "reason": self.reason,
        }


@dataclass
class ReadinessResult:
    score: float
    level: ReadinessLevel
    hrv_score: float | None = None
    rhr_score: float | None = None
    wellness_score: float | None = None
    acwr_score: float | None = None
    sleep_score: float | None = None
    red_flags: list[RedFlagHit] = field(default_factory=list)

    @property
    def has_red_flags(self) -> bool:
        return bool(self.red_flags)

    def flag(self, kind: RedFlag) -> RedFlagHit | None:
        return next((hit for hit in self.red_flags if hit.flag == kind), None)

    def sub_scores(self) -> dict[str, float | None]:
        return {
            "hrv": self.hrv_score,
            "resting_hr": self.rhr_score,
            "wellness": self.wellness_score,
            "acwr": self.acwr_score,
            "sleep": self.sleep_score,
        }


def _clamp(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return max(low, min(high, value))


def _scale_1_10(value: int, invert: bool = False) -> float:
    """Map a 1-10 questionnaire answer to 0-10."""
    v = _clamp(float(value), 1.0, 10.0)
    if invert:
        v = 11.0 - v
    return (v - 1.0) / 9.0 * 10.0


def hrv_component(hrv: float | None, baseline: RollingBaseline | None) -> float | None:
    if hrv is None or baseline is None:
        return None
    z = baseline.z_score(hrv)
    return None if z is None else _clamp(7.5 + 2.5 * z)


def rhr_component(resting_hr: float | None, baseline: RollingBaseline | None) -> float | None:
    if resting_hr is None or baseline is None:
        return None
    z = baseline.z_score(resting_hr)
    return None if z is None else _clamp(7.5 - 2.5 * z)


def wellness_component(inputs: ReadinessInputs) -> float | None:
    parts = []
    if inputs.soreness is not None:
        parts.append(_scale_1_10(inputs.soreness, invert=True))
    if inputs.stress is not None:
        parts.append(_scale_1_10(inputs.stress, invert=True))
    if inputs.mood is not None:
        parts.append(_scale_1_10(inputs.mood))
    if inputs.energy is not None:
        parts.append(_scale_1_10(inputs.energy))
    return sum(parts) / len(parts) if parts else None


def sleep_component(hours: float | None) -> float | None:
    if hours is None:
        return None
    return _clamp((hours - 4.0) / 4.0 * 10.0)


def classify_readiness(score: float) -> ReadinessLevel:
    if score >= 8.5:
        return ReadinessLevel.EXCELLENT
    if score >= 7.0:
        return ReadinessLevel.GOOD
    if score >= 5.5:
        return ReadinessLevel.MODERATE
    if score >= 4.0:
        return ReadinessLevel.LOW
    return ReadinessLevel.VERY_LOW


def detect_red_flags(
    inputs: ReadinessInputs,
    score: float,
    thresholds: RedFlagThresholds = RedFlagThresholds(),
) -> list[RedFlagHit]:
    """Each flag fires on its own input, whatever the composite says."""
    hits: list[RedFlagHit] = []
    if inputs.pain_level is not None and inputs.pain_level >= thresholds.pain:
        hits.append(
            RedFlagHit(RedFlag.PAIN, inputs.pain_level, thresholds.pain, f"Pain {inputs.pain_level}/10")
        )
    if score < thresholds.readiness:
        hits.append(
            RedFlagHit(
                RedFlag.LOW_READINESS,
                round(score, 2),
                thresholds.readiness,
                f"Readiness {score:.1f} below {thresholds.readiness}",
            )
        )
    if inputs.sleep_hours is not None and inputs.sleep_hours < thresholds.sleep_hours:
        hits.append(
            RedFlagHit(
                RedFlag.POOR_SLEEP,
                inputs.sleep_hours,
                thresholds.sleep_hours,
                f"Slept {inputs.sleep_hours:.1f}h",
            )
        )
    if inputs.stress is not None and inputs.stress >= thresholds.stress:
        hits.append(
            RedFlagHit(RedFlag.HIGH_STRESS, inputs.stress, thresholds.stress, f"Stress {inputs.stress}/10")
        )
    return hits


def compute_readiness(
    inputs: ReadinessInputs,
    hrv_baseline: RollingBaseline | None = None,
    rhr_baseline: RollingBaseline | None = None,
    weights: ReadinessWeights = ReadinessWeights(),
    thresholds: RedFlagThresholds = RedFlagThresholds(),
) -> ReadinessResult:
    """Score one day.

    With no usable component at all the score is a neutral 5.0.
    """
    components = {
        "hrv": (hrv_component(inputs.hrv, hrv_baseline), weights.hrv),
        "rhr": (rhr_component(inputs.resting_hr, rhr_baseline), weights.rhr),
        "wellness": (wellness_component(inputs), weights.wellness),
        "acwr": (
            ACWR_ZONE_SCORES[inputs.acwr_zone] if inputs.acwr_zone is not None else None,
            weights.acwr,
        ),
        "sleep": (sleep_component(inputs.sleep_hours), weights.sleep),
    }
    available = [(value, weight) for value, weight in components.values() if value is not None and weight > 0]
    total_weight = sum(weight for _, weight in available)
    score = sum(value * weight for value, weight in available) / total_weight if total_weight else 5.0
    score = round(score, 2)

    return ReadinessResult(
        score=score,
        level=classify_readiness(score),
        hrv_score=components["hrv"][0],
        rhr_score=components["rhr"][0],
        wellness_score=components["wellness"][0],
        acwr_score=components["acwr"][0],
        sleep_score=components["sleep"][0],
        red_flags=detect_red_flags(inputs, score, thresholds),
    )
