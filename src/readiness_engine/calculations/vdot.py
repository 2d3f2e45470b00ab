"""VDOT from race performances (Daniels-Gilbert equations).

Velocities are in metres per minute internally and km/h at the edges.
"""

from dataclasses import dataclass, field
from datetime import date
from math import exp, sqrt

from scipy.optimize import brentq

from readiness_engine.models.threshold_test import Confidence

MARATHON_M = 42195.0

EASY_FRACTION = (0.59, 0.74)
THRESHOLD_FRACTION = 0.88
INTERVAL_FRACTION = 0.975
REPETITION_SECONDS_PER_400 = 6.0

RECENT_RACE_DAYS = 42
STALE_RACE_DAYS = 90
OLD_RACE_DAYS = 180
SHORT_RACE_M = 3000.0


@dataclass
class CorePaces:
    """The five core training speeds, km/h."""

    marathon: float
    threshold: float
    easy_min: float
    easy_max: float
    interval: float
    repetition: float


@dataclass
class VdotEstimate:
    vdot: float
    confidence: Confidence
    race_age_days: int | None = None
    warnings: list[str] = field(default_factory=list)


def oxygen_cost(velocity_m_min: float) -> float:
    """VO2 (ml/kg/min) of running at a velocity."""
    return -4.60 + 0.182258 * velocity_m_min + 0.000104 * velocity_m_min**2


def fraction_of_max(duration_min: float) -> float:
    """Fraction of VO2max sustainable for a race of this duration."""
    return (
        0.8
        + 0.1894393 * exp(-0.012778 * duration_min)
        + 0.2989558 * exp(-0.1932605 * duration_min)
    )


def vdot_from_race(distance_m: float, time_seconds: float) -> float:
    """VDOT for a race result.

    Raises:
        ValueError: Non-positive distance or time
    """
    if distance_m <= 0 or time_seconds <= 0:
        raise ValueError("Race distance and time must be positive")
    minutes = time_seconds / 60
    return oxygen_cost(distance_m / minutes) / fraction_of_max(minutes)


def velocity_at_vo2(vo2: float) -> float:
    """Inverse of :func:`oxygen_cost`, metres per minute."""
    a, b, c = 0.000104, 0.182258, -4.60 - vo2
    return (-b + sqrt(b * b - 4 * a * c)) / (2 * a)


def predict_race_seconds(vdot: float, distance_m: float) -> float:
    """Race time at which ``distance_m`` yields ``vdot``."""

    def gap(minutes: float) -> float:
        return vdot_from_race(distance_m, minutes * 60) - vdot

    return brentq(gap, 0.5, 3000.0) * 60


def _m_min_to_kmh(velocity: float) -> float:
    return velocity * 60 / 1000


def paces_from_vdot(vdot: float) -> CorePaces:
    """Daniels training paces for a VDOT."""
    interval = velocity_at_vo2(vdot * INTERVAL_FRACTION)
    rep_400_seconds = 400 / interval * 60 - REPETITION_SECONDS_PER_400
    marathon_seconds = predict_race_seconds(vdot, MARATHON_M)

    return CorePaces(
        marathon=MARATHON_M / marathon_seconds * 3.6,
        threshold=_m_min_to_kmh(velocity_at_vo2(vdot * THRESHOLD_FRACTION)),
        easy_min=_m_min_to_kmh(velocity_at_vo2(vdot * EASY_FRACTION[0])),
        easy_max=_m_min_to_kmh(velocity_at_vo2(vdot * EASY_FRACTION[1])),
        interval=_m_min_to_kmh(interval),
        repetition=400 / rep_400_seconds * 3.6,
    )


def race_confidence(race_date: date, distance_m: float, today: date) -> VdotEstimate:
    """Confidence tier for a race-derived VDOT (VDOT filled in by caller)."""
    age = (today - race_date).days
    warnings: list[str] = []
    if age <= RECENT_RACE_DAYS:
        confidence = Confidence.VERY_HIGH
    elif age <= STALE_RACE_DAYS:
        confidence = Confidence.HIGH
    elif age <= OLD_RACE_DAYS:
        confidence = Confidence.MEDIUM
    else:
        confidence = Confidence.LOW
    if age > STALE_RACE_DAYS:
        warnings.append(f"Race result is {age} days old; paces may not reflect current fitness")
    if distance_m < SHORT_RACE_M:
        confidence = confidence.degrade()
        warnings.append("Short races overstate endurance paces")
    return VdotEstimate(vdot=0.0, confidence=confidence, race_age_days=age, warnings=warnings)


def estimate_vdot_from_race(
    distance_m: float,
    time_seconds: float,
    race_date: date,
    today: date,
) -> VdotEstimate:
    estimate = race_confidence(race_date, distance_m, today)
    estimate.vdot = vdot_from_race(distance_m, time_seconds)
    return estimate


def estimate_vdot_from_profile(
    weekly_km: float | None,
    training_age_years: float | None,
    age: int | None,
) -> float:
    """Heuristic VDOT when no test or race exists.

    Starts at 40 and adjusts for volume, training history and age.
    """
    vdot = 40.0
    weekly_km = weekly_km or 0
    if weekly_km > 80:
        vdot += 15
    elif weekly_km > 60:
        vdot += 10
    elif weekly_km > 40:
        vdot += 5

    training_age_years = training_age_years or 0
    if training_age_years > 5:
        vdot += 5
    elif training_age_years > 2:
        vdot += 2

    if age is not None:
        if age > 50:
            vdot -= 5
        elif age > 40:
            vdot -= 2
    return vdot
