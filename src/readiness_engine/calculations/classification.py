"""Athlete level classification and marathon compression factor."""

from dataclasses import dataclass
from enum import Enum


class AthleteLevel(str, Enum):
    ELITE = "elite"
    ADVANCED = "advanced"
    INTERMEDIATE = "intermediate"
    RECREATIONAL = "recreational"


# Marathon pace as a fraction of threshold pace
COMPRESSION_FACTORS = {
    AthleteLevel.ELITE: 0.96,
    AthleteLevel.ADVANCED: 0.88,
    AthleteLevel.INTERMEDIATE: 0.85,
    AthleteLevel.RECREATIONAL: 0.78,
}
MASTERS_AGE = 50
MASTERS_ADJUSTMENT = 0.01

# Lower bounds per level
VDOT_BANDS = ((60.0, AthleteLevel.ELITE), (50.0, AthleteLevel.ADVANCED), (40.0, AthleteLevel.INTERMEDIATE))
THRESHOLD_KMH_BANDS = (
    (17.0, AthleteLevel.ELITE),
    (15.0, AthleteLevel.ADVANCED),
    (12.5, AthleteLevel.INTERMEDIATE),
)


@dataclass
class Classification:
    level: AthleteLevel
    compression_factor: float
    basis: str

    def to_dict(self) -> dict[str, object]:
        return {
            "level": self.level.value,
            "compression_factor": round(self.compression_factor, 3),
            "basis": self.basis,
        }


def _band(value: float, bands: tuple[tuple[float, AthleteLevel], ...]) -> AthleteLevel:
    for lower, level in bands:
        if value >= lower:
            return level
    return AthleteLevel.RECREATIONAL


def classify_athlete(
    vdot: float | None = None,
    threshold_speed_kmh: float | None = None,
    weekly_km: float | None = None,
    training_age_years: float | None = None,
    age: int | None = None,
) -> Classification:
    """Classify from the strongest available evidence.

    VDOT first, then lactate threshold speed, then training volume and
    history.
    """
    if vdot is not None:
        level, basis = _band(vdot, VDOT_BANDS), "vdot"
    elif threshold_speed_kmh is not None:
        level, basis = _band(threshold_speed_kmh, THRESHOLD_KMH_BANDS), "threshold_speed"
    else:
        basis = "profile"
        weekly_km = weekly_km or 0
        training_age_years = training_age_years or 0
        if weekly_km >= 100 and training_age_years >= 5:
            level = AthleteLevel.ELITE
        elif weekly_km >= 60 and training_age_years >= 3:
            level = AthleteLevel.ADVANCED
        elif weekly_km >= 30:
            level = AthleteLevel.INTERMEDIATE
        else:
            level = AthleteLevel.RECREATIONAL

    factor = COMPRESSION_FACTORS[level]
    if age is not None and age >= MASTERS_AGE:
        factor -= MASTERS_ADJUSTMENT
    return Classification(level=level, compression_factor=factor, basis=basis)
