"""Threshold detection from stage tests.

Lab/field step tests are analyzed with the D-max family of methods: fit a
cubic to lactate vs. speed, draw a chord from a start point to the final
stage, and take the speed where the fitted curve sits furthest from the
chord. Mod-Dmax (Bishop) starts the chord at the stage before lactate first
rises 0.4 mmol/L above the early-stage baseline.

Multi-trial critical-velocity field tests are analyzed separately with a
linear distance-time model.
"""

from dataclasses import dataclass, field
from math import sqrt
from statistics import mean

import numpy as np
import structlog
from scipy import stats

from readiness_engine.core.exceptions import InsufficientDataError
from readiness_engine.models.threshold_test import Confidence, ThresholdMethod

logger = structlog.get_logger()

MIN_STAGES = 4
POLY_DEGREE = 3
CHORD_SAMPLES = 1000
MIN_R_SQUARED = 0.90

# Mod-Dmax
BASELINE_FRACTION = 0.4
RISE_ABOVE_BASELINE = 0.4  # mmol/L

# Non-monotonic detection
LACTATE_DROP_TOLERANCE = 0.2  # mmol/L
MAX_LACTATE_DROPS = 1

# Critical velocity
MIN_TRIALS = 2
CV_R2_GOOD = 0.90
CV_R2_FAIR = 0.85


@dataclass(frozen=True)
class Stage:
    """One test stage. Speed in km/h, lactate in mmol/L."""

    speed: float
    lactate: float
    heart_rate: float | None = None


@dataclass
class ThresholdResult:
    """Analyzed threshold. Low confidence is a flag, not a failure."""

    threshold_speed: float
    threshold_hr: float | None
    threshold_lactate: float
    confidence: Confidence
    r_squared: float
    method: ThresholdMethod
    reliable: bool
    dmax_distance: float = 0.0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "threshold_speed": round(self.threshold_speed, 3),
            "threshold_hr": round(self.threshold_hr, 1) if self.threshold_hr is not None else None,
            "threshold_lactate": round(self.threshold_lactate, 2),
            "confidence": self.confidence.value,
            "r_squared": round(self.r_squared, 4),
            "method": self.method.value,
            "reliable": self.reliable,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class CriticalVelocityTrial:
    """A maximal time trial: distance covered (m) in duration (s)."""

    distance_m: float
    duration_s: float


@dataclass
class CriticalVelocityResult:
    critical_velocity_ms: float
    d_prime_m: float
    r_squared: float
    confidence: Confidence
    trial_count: int
    retest_recommended: bool
    recommendations: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def critical_velocity_kmh(self) -> float:
        return self.critical_velocity_ms * 3.6

    def to_dict(self) -> dict[str, object]:
        return {
            "critical_velocity_ms": round(self.critical_velocity_ms, 3),
            "critical_velocity_kmh": round(self.critical_velocity_kmh, 2),
            "d_prime_m": round(self.d_prime_m, 1),
            "r_squared": round(self.r_squared, 4),
            "confidence": self.confidence.value,
            "trial_count": self.trial_count,
            "retest_recommended": self.retest_recommended,
            "recommendations": list(self.recommendations),
            "warnings": list(self.warnings),
        }


def r_squared(observed: np.ndarray, predicted: np.ndarray) -> float:
    """Coefficient of determination."""
    ss_res = float(np.sum((observed - predicted) ** 2))
    ss_tot = float(np.sum((observed - np.mean(observed)) ** 2))
    if ss_tot == 0:
        return 1.0 if ss_res == 0 else 0.0
    return 1.0 - ss_res / ss_tot


def count_lactate_drops(lactate: list[float]) -> int:
    """Stage-to-stage decreases larger than the measurement tolerance."""
    return sum(
        1 for prev, cur in zip(lactate, lactate[1:], strict=False) if cur - prev < -LACTATE_DROP_TOLERANCE
    )


def modified_dmax_start(lactate: list[float]) -> int:
    """Index of the chord start for Mod-Dmax.

    Baseline is the mean of the first 40% of stages (at least two) with the
    highest of them dropped. The chord starts one stage before the first
    value at least 0.4 mmol/L above that baseline; at stage 0 if the very
    first value already qualifies; at the midpoint if nothing rises.
    """
    n = len(lactate)
    window = sorted(lactate[: max(2, int(n * BASELINE_FRACTION))])
    baseline = mean(window[:-1]) if len(window) > 2 else mean(window)

    for index, value in enumerate(lactate):
        if value >= baseline + RISE_ABOVE_BASELINE:
            return max(0, index - 1)
    return n // 2


def _max_chord_distance(
    poly: np.poly1d,
    x_start: float,
    y_start: float,
    x_end: float,
    y_end: float,
) -> tuple[float, float]:
    """Point of the fitted curve furthest from the chord.

    Only interior samples are considered so the result lies strictly
    between the chord endpoints.
    """
    slope = (y_end - y_start) / (x_end - x_start)
    intercept = y_start - slope * x_start
    xs = np.linspace(x_start, x_end, CHORD_SAMPLES + 1)[1:-1]
    distances = np.abs(poly(xs) - (slope * xs + intercept)) / sqrt(1 + slope**2)
    best = int(np.argmax(distances))
    return float(xs[best]), float(distances[best])


def _fit_confidence(
    r2: float,
    relative_distance: float,
    min_r_squared: float,
    warnings: list[str],
) -> tuple[Confidence, bool]:
    if r2 < min_r_squared:
        warnings.append(
            f"Poor polynomial fit (R²={r2:.3f} < {min_r_squared:.2f}); threshold is unreliable"
        )
        return Confidence.LOW, False
    if relative_distance < 0.05:
        warnings.append("Lactate curve is nearly linear; breakpoint is weakly defined")
    if r2 >= 0.98 and relative_distance >= 0.10:
        return Confidence.VERY_HIGH, True
    if r2 >= 0.95 and relative_distance >= 0.10:
        return Confidence.HIGH, True
    return Confidence.MEDIUM, True


def analyze_threshold_test(
    stages: list[Stage],
    method: ThresholdMethod = ThresholdMethod.DMAX,
    manual_stage: int | None = None,
    min_r_squared: float = MIN_R_SQUARED,
) -> ThresholdResult:
    """Find the lactate threshold of a stage test.

    Args:
        stages: Stages ordered by strictly increasing speed
        method: DMAX or MOD_DMAX chord placement
        manual_stage: Coach-flagged stage index; always wins over the fit
        min_r_squared: Fit quality below which the result is flagged LOW

    Returns:
        ThresholdResult, flagged unreliable when the fit is poor

    Raises:
        InsufficientDataError: Fewer than four stages
        ValueError: Speeds not strictly increasing, or manual stage out of range
    """
    if len(stages) < MIN_STAGES:
        raise InsufficientDataError(
            f"Threshold analysis needs at least {MIN_STAGES} stages",
            required=MIN_STAGES,
            received=len(stages),
        )

    speeds = np.array([s.speed for s in stages], dtype=float)
    lactate = np.array([s.lactate for s in stages], dtype=float)
    if np.any(np.diff(speeds) <= 0):
        raise ValueError("Stage speeds must be strictly increasing")

    warnings: list[str] = []
    drops = count_lactate_drops(lactate.tolist())
    if drops > MAX_LACTATE_DROPS:
        warnings.append(f"Lactate is non-monotonic ({drops} drops); check sampling")
        logger.warning("Non-monotonic lactate curve", drops=drops, stages=len(stages))

    poly = np.poly1d(np.polyfit(speeds, lactate, POLY_DEGREE))
    r2 = r_squared(lactate, poly(speeds))

    start = 0
    if method == ThresholdMethod.MOD_DMAX:
        start = modified_dmax_start(lactate.tolist())

    x_threshold, distance = _max_chord_distance(
        poly,
        float(speeds[start]),
        float(lactate[start]),
        float(speeds[-1]),
        float(lactate[-1]),
    )
    lactate_range = float(lactate.max() - lactate.min())
    relative_distance = distance / lactate_range if lactate_range > 0 else 0.0
    confidence, reliable = _fit_confidence(r2, relative_distance, min_r_squared, warnings)

    heart_rates = [s.heart_rate for s in stages]
    has_hr = all(hr is not None for hr in heart_rates)

    if manual_stage is not None:
        if not 0 <= manual_stage < len(stages):
            raise ValueError(f"Manual threshold stage {manual_stage} is out of range")
        chosen = stages[manual_stage]
        warnings.append(f"Threshold set manually at stage {manual_stage + 1}")
        return ThresholdResult(
            threshold_speed=chosen.speed,
            threshold_hr=chosen.heart_rate,
            threshold_lactate=chosen.lactate,
            confidence=confidence,
            r_squared=r2,
            method=ThresholdMethod.MANUAL,
            reliable=reliable,
            dmax_distance=distance,
            warnings=warnings,
        )

    threshold_hr = float(np.interp(x_threshold, speeds, heart_rates)) if has_hr else None

    return ThresholdResult(
        threshold_speed=x_threshold,
        threshold_hr=threshold_hr,
        threshold_lactate=float(poly(x_threshold)),
        confidence=confidence,
        r_squared=r2,
        method=method,
        reliable=reliable,
        dmax_distance=distance,
        warnings=warnings,
    )


def _cv_score_tier(score: float) -> Confidence:
    if score >= 95:
        return Confidence.VERY_HIGH
    if score >= 85:
        return Confidence.HIGH
    if score >= 75:
        return Confidence.MEDIUM
    return Confidence.LOW


def analyze_critical_velocity(trials: list[CriticalVelocityTrial]) -> CriticalVelocityResult:
    """Fit distance = CV * time + D' across maximal trials.

    A poor fit is returned with capped confidence and a retest
    recommendation; it is never discarded.

    Raises:
        InsufficientDataError: Fewer than two trials
        ValueError: Non-positive or duplicate durations
    """
    if len(trials) < MIN_TRIALS:
        raise InsufficientDataError(
            f"Critical velocity needs at least {MIN_TRIALS} trials",
            required=MIN_TRIALS,
            received=len(trials),
        )

    durations = np.array([t.duration_s for t in trials], dtype=float)
    distances = np.array([t.distance_m for t in trials], dtype=float)
    if np.any(durations <= 0) or len(set(durations.tolist())) != len(trials):
        raise ValueError("Trial durations must be positive and distinct")

    fit = stats.linregress(durations, distances)
    r2 = float(fit.rvalue**2)
    cv = float(fit.slope)
    d_prime = float(fit.intercept)

    n = len(trials)
    score = r2 * 100
    if n >= 4:
        score += 5
    elif n >= 3:
        score += 3
    if durations.max() / durations.min() >= 3:
        score += 3
    confidence = _cv_score_tier(score)

    warnings: list[str] = []
    recommendations: list[str] = []
    if n == 2:
        confidence = confidence.cap(Confidence.MEDIUM)
        warnings.append("Two trials always fit a straight line; add a third to validate")
    if r2 < CV_R2_FAIR:
        confidence = confidence.cap(Confidence.LOW)
    elif r2 < CV_R2_GOOD:
        confidence = confidence.cap(Confidence.MEDIUM)

    retest = r2 < CV_R2_GOOD
    if retest:
        recommendations.append(
            f"Fit quality is poor (R²={r2:.2f}); repeat a trial with even pacing "
            "after full recovery and re-run the analysis"
        )
    if durations.max() / durations.min() < 2:
        recommendations.append("Spread trial durations further apart (e.g. 3 and 12 minutes)")
    if cv <= 0 or d_prime < 0:
        warnings.append("Fitted parameters are not physiological; check trial data")

    return CriticalVelocityResult(
        critical_velocity_ms=cv,
        d_prime_m=d_prime,
        r_squared=r2,
        confidence=confidence,
        trial_count=n,
        retest_recommended=retest,
        recommendations=recommendations,
        warnings=warnings,
    )
