"""Cross-training conversion from a modality equivalency table."""

from dataclasses import dataclass
from enum import Enum

from readiness_engine.core.exceptions import UnknownModalityError
from readiness_engine.models.injury import InjuryType


class Modality(str, Enum):
    DEEP_WATER_RUNNING = "deep_water_running"
    CYCLING = "cycling"
    ELLIPTICAL = "elliptical"
    SWIMMING = "swimming"
    ALTERG = "alterg"  # Anti-gravity treadmill
    ROWING = "rowing"


@dataclass(frozen=True)
class ModalityEquivalence:
    """How one minute of running translates to a modality."""

    fitness_retention: float  # Percent of running fitness retained
    tss_multiplier: float
    hr_adjustment: int  # bpm added to the running target
    time_multiplier: float
    distance_ratio: float | None = None  # None: distance is not meaningful
    description: str = ""


EQUIVALENCY_TABLE: dict[Modality, ModalityEquivalence] = {
    Modality.DEEP_WATER_RUNNING: ModalityEquivalence(
        98, 0.85, -10, 1.0, None, "Deep-water running with running form, no impact"
    ),
    Modality.CYCLING: ModalityEquivalence(
        75, 0.75, -10, 1.3, 2.5, "Steady cycling at matched effort"
    ),
    Modality.ELLIPTICAL: ModalityEquivalence(
        85, 0.85, -5, 1.1, 0.9, "Elliptical at matched effort, low impact"
    ),
    Modality.SWIMMING: ModalityEquivalence(
        45, 0.6, -15, 1.2, 0.25, "Continuous swimming, no leg loading"
    ),
    Modality.ALTERG: ModalityEquivalence(
        95, 0.9, -5, 1.0, 1.0, "Anti-gravity treadmill at reduced body weight"
    ),
    Modality.ROWING: ModalityEquivalence(
        70, 0.8, -8, 1.2, 1.0, "Steady rowing at matched effort"
    ),
}

# Preferred modality by injury: non-impact for foot/Achilles/bone, low knee
# flexion for patellofemoral, no hip/hamstring drive for posterior chain
INJURY_MODALITY: dict[InjuryType, Modality] = {
    InjuryType.PLANTAR_FASCIITIS: Modality.DEEP_WATER_RUNNING,
    InjuryType.ACHILLES_TENDINOPATHY: Modality.DEEP_WATER_RUNNING,
    InjuryType.PATELLOFEMORAL_SYNDROME: Modality.DEEP_WATER_RUNNING,
    InjuryType.STRESS_FRACTURE: Modality.DEEP_WATER_RUNNING,
    InjuryType.SHIN_SPLINTS: Modality.CYCLING,
    InjuryType.CALF_STRAIN: Modality.CYCLING,
    InjuryType.IT_BAND_SYNDROME: Modality.SWIMMING,
    InjuryType.HAMSTRING_STRAIN: Modality.SWIMMING,
    InjuryType.HIP_FLEXOR: Modality.SWIMMING,
}
DEFAULT_MODALITY = Modality.CYCLING

# Generic "continuous moderate effort" used when a modality cannot be resolved
FALLBACK_LABEL = "continuous_moderate_effort"
FALLBACK_RETENTION = 50.0
FALLBACK_TSS_MULTIPLIER = 0.6


@dataclass
class ConvertedWorkout:
    modality: str
    duration_minutes: float | None
    distance_km: float | None
    target_hr: int | None
    training_stress: float | None
    fitness_retention: float
    instructions: str
    is_fallback: bool = False

    def snapshot_fields(self) -> dict[str, object]:
        """Fields applied to the planned workout when converting it."""
        return {
            "workout_type": "cross_training",
            "modality": self.modality,
            "duration_minutes": self.duration_minutes,
            "distance_km": self.distance_km,
            "target_hr": self.target_hr,
            "planned_load": self.training_stress,
            "notes": self.instructions,
        }


def modality_for_injury(injury_type: InjuryType | str | None) -> Modality:
    try:
        return INJURY_MODALITY.get(InjuryType(injury_type), DEFAULT_MODALITY) if injury_type else DEFAULT_MODALITY
    except ValueError:
        return DEFAULT_MODALITY


def lookup_modality(modality: Modality | str) -> tuple[Modality, ModalityEquivalence]:
    """Resolve a modality in the table.

    Raises:
        UnknownModalityError: If the modality is not in the table
    """
    try:
        resolved = Modality(modality)
    except ValueError as e:
        raise UnknownModalityError(str(modality)) from e
    equivalence = EQUIVALENCY_TABLE.get(resolved)
    if equivalence is None:
        raise UnknownModalityError(resolved.value)
    return resolved, equivalence


def convert_workout(
    duration_minutes: float | None,
    distance_km: float | None,
    target_hr: int | None,
    training_stress: float | None,
    modality: Modality,
    equivalence: ModalityEquivalence,
) -> ConvertedWorkout:
    """Scale a run into a modality.

    Training stress is the original x tss multiplier x time multiplier.
    """
    duration = round(duration_minutes * equivalence.time_multiplier, 1) if duration_minutes else None
    distance = (
        round(distance_km * equivalence.distance_ratio, 2)
        if distance_km is not None and equivalence.distance_ratio is not None
        else None
    )
    hr = target_hr + equivalence.hr_adjustment if target_hr is not None else None
    stress = (
        round(training_stress * equivalence.tss_multiplier * equivalence.time_multiplier, 1)
        if training_stress is not None
        else None
    )
    instructions = equivalence.description
    if duration is not None:
        instructions = f"{duration:.0f} min {instructions.lower()}"
    return ConvertedWorkout(
        modality=modality.value,
        duration_minutes=duration,
        distance_km=distance,
        target_hr=hr,
        training_stress=stress,
        fitness_retention=equivalence.fitness_retention,
        instructions=instructions,
    )


def fallback_workout(
    duration_minutes: float | None,
    target_hr: int | None,
    training_stress: float | None,
) -> ConvertedWorkout:
    """Generic continuous moderate effort; never invents a modality."""
    return ConvertedWorkout(
        modality=FALLBACK_LABEL,
        duration_minutes=duration_minutes,
        distance_km=None,
        target_hr=target_hr - 10 if target_hr is not None else None,
        training_stress=round(training_stress * FALLBACK_TSS_MULTIPLIER, 1) if training_stress is not None else None,
        fitness_retention=FALLBACK_RETENTION,
        instructions="Continuous moderate effort on any pain-free, non-impact option",
        is_fallback=True,
    )


def substitute(
    duration_minutes: float | None,
    distance_km: float | None,
    target_hr: int | None,
    training_stress: float | None,
    modality: Modality | str,
) -> ConvertedWorkout:
    """Convert to ``modality``, falling back closed when it is unknown."""
    try:
        resolved, equivalence = lookup_modality(modality)
    except UnknownModalityError:
        return fallback_workout(duration_minutes, target_hr, training_stress)
    return convert_workout(duration_minutes, distance_km, target_hr, training_stress, resolved, equivalence)


def equivalent_minutes(minutes: float, modality: Modality) -> float:
    """Minutes of ``modality`` retaining the fitness of ``minutes`` of running."""
    _, equivalence = lookup_modality(modality)
    return round(minutes * 100 / equivalence.fitness_retention, 1)
