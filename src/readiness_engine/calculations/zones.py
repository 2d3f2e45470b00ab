"""Training zone systems derived from core paces.

All four systems are pure functions of the resolved paces plus, where
available, heart-rate data; none of them read their own inputs.
"""

from dataclasses import asdict, dataclass, field

from readiness_engine.calculations.classification import AthleteLevel
from readiness_engine.calculations.vdot import CorePaces

DEFAULT_MAX_HR = 190

# 7-zone system: 5K and 1K speed as a fraction of marathon pace, by level
CANOVA_FIVE_K = {AthleteLevel.ELITE: 1.08, AthleteLevel.ADVANCED: 1.10}
CANOVA_ONE_K = {AthleteLevel.ELITE: 1.15, AthleteLevel.ADVANCED: 1.17}
CANOVA_FIVE_K_DEFAULT = 1.12
CANOVA_ONE_K_DEFAULT = 1.20

HR_ZONE_BANDS = (
    ("Zone 1", "Very Easy / Recovery", 0.50, 0.60),
    ("Zone 2", "Easy / Aerobic Base", 0.60, 0.70),
    ("Zone 3", "Moderate / Tempo", 0.70, 0.80),
    ("Zone 4", "Hard / Threshold", 0.80, 0.90),
    ("Zone 5", "Maximum / VO2max", 0.90, 1.00),
)


def format_pace(speed_kmh: float) -> str:
    """km/h to "m:ss/km"."""
    if speed_kmh <= 0:
        return "-"
    total = round(3600 / speed_kmh)
    minutes, seconds = divmod(total, 60)
    return f"{minutes}:{seconds:02d}/km"


@dataclass
class Zone:
    name: str
    description: str
    min_speed: float | None = None
    max_speed: float | None = None
    hr_min: int | None = None
    hr_max: int | None = None
    lactate: str | None = None

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        if self.min_speed is not None:
            data["min_speed"] = round(self.min_speed, 2)
            data["slow_pace"] = format_pace(self.min_speed)
        if self.max_speed is not None:
            data["max_speed"] = round(self.max_speed, 2)
            data["fast_pace"] = format_pace(self.max_speed)
        return data


@dataclass
class ZoneSystems:
    effort: list[Zone] = field(default_factory=list)
    marathon_percent: list[Zone] = field(default_factory=list)
    lactate: list[Zone] = field(default_factory=list)
    heart_rate: list[Zone] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, object]]]:
        return {
            "effort": [z.to_dict() for z in self.effort],
            "marathon_percent": [z.to_dict() for z in self.marathon_percent],
            "lactate": [z.to_dict() for z in self.lactate],
            "heart_rate": [z.to_dict() for z in self.heart_rate],
        }


def _hr(max_hr: int, fraction: float) -> int:
    return round(max_hr * fraction)


def effort_zones(paces: CorePaces, max_hr: int, threshold_hr: float | None = None) -> list[Zone]:
    """Five effort-based zones (easy to repetition)."""
    lt_hr = round(threshold_hr) if threshold_hr else _hr(max_hr, 0.88)
    return [
        Zone(
            "Easy",
            "Conversational aerobic running",
            paces.easy_min,
            paces.easy_max,
            _hr(max_hr, 0.65),
            _hr(max_hr, 0.78),
        ),
        Zone("Marathon", "Goal marathon effort", paces.marathon, paces.marathon, hr_max=_hr(max_hr, 0.84)),
        Zone("Threshold", "Comfortably hard, ~1 hour race effort", paces.threshold, paces.threshold, hr_max=lt_hr),
        Zone("Interval", "VO2max intervals of 3-5 minutes", paces.interval, paces.interval, hr_max=_hr(max_hr, 0.98)),
        Zone("Repetition", "Short fast reps with full recovery", paces.repetition, paces.repetition, hr_max=_hr(max_hr, 0.98)),
    ]


def marathon_percent_zones(paces: CorePaces, max_hr: int, level: AthleteLevel) -> list[Zone]:
    """Seven zones expressed as a percentage of marathon pace."""
    mp = paces.marathon
    five_k = CANOVA_FIVE_K.get(level, CANOVA_FIVE_K_DEFAULT)
    one_k = CANOVA_ONE_K.get(level, CANOVA_ONE_K_DEFAULT)
    threshold_pct = paces.threshold / mp if mp else 1.0
    return [
        Zone("Fundamental", "88% of marathon pace", mp * 0.88, mp * 0.88, hr_max=_hr(max_hr, 0.75)),
        Zone("Progressive", "95-102% of marathon pace", mp * 0.95, mp * 1.02, hr_max=_hr(max_hr, 0.82)),
        Zone("Marathon", "Race pace", mp, mp, hr_max=_hr(max_hr, 0.84)),
        Zone("Specific", "104% of marathon pace", mp * 1.04, mp * 1.04, hr_max=_hr(max_hr, 0.87)),
        Zone("Threshold", f"{threshold_pct:.0%} of marathon pace", paces.threshold, paces.threshold, hr_max=_hr(max_hr, 0.90)),
        Zone("5K", f"{five_k:.0%} of marathon pace", mp * five_k, mp * five_k, hr_max=_hr(max_hr, 0.94)),
        Zone("1K", f"{one_k:.0%} of marathon pace", mp * one_k, mp * one_k, hr_max=_hr(max_hr, 0.98)),
    ]


def lactate_zones(
    paces: CorePaces,
    max_hr: int,
    level: AthleteLevel,
    threshold_lactate: float | None = None,
) -> list[Zone]:
    """Three lactate-banded zones."""
    t = paces.threshold
    green_max = t * (0.80 if level == AthleteLevel.ELITE else 0.85)
    threshold_band = f"{threshold_lactate:.1f}" if threshold_lactate else "2.0-3.0"
    return [
        Zone("Green", "Low lactate aerobic volume", green_max * 0.75, green_max, hr_max=_hr(max_hr, 0.80), lactate="<2.0"),
        Zone("Threshold", "Controlled threshold work", t, t, hr_max=_hr(max_hr, 0.90), lactate=threshold_band),
        Zone("Red", "Above threshold", t * 1.05, t * 1.20, hr_min=_hr(max_hr, 0.95), lactate=">3.0"),
    ]


def heart_rate_zones(max_hr: int) -> list[Zone]:
    """Five zones as a percentage of maximum heart rate."""
    return [
        Zone(name, label, hr_min=_hr(max_hr, low), hr_max=_hr(max_hr, high))
        for name, label, low, high in HR_ZONE_BANDS
    ]


def build_zone_systems(
    paces: CorePaces,
    level: AthleteLevel,
    max_hr: int | None = None,
    threshold_hr: float | None = None,
    threshold_lactate: float | None = None,
) -> ZoneSystems:
    max_hr = max_hr or DEFAULT_MAX_HR
    return ZoneSystems(
        effort=effort_zones(paces, max_hr, threshold_hr),
        marathon_percent=marathon_percent_zones(paces, max_hr, level),
        lactate=lactate_zones(paces, max_hr, level, threshold_lactate),
        heart_rate=heart_rate_zones(max_hr),
    )
