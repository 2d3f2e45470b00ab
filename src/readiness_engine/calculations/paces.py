"""Pace source resolution.

Each possible input (race, lactate test, HR-only field test, profile) is a
small source object that knows its tier, its confidence, whether its data is
present, and how to turn that data into core paces. Choosing the primary
source is a sort over those objects with a single total-order key, so the
tie-break rules can be read and tested without the rest of the pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from readiness_engine.calculations.classification import Classification
from readiness_engine.calculations.threshold import ThresholdResult
from readiness_engine.calculations.vdot import CorePaces, VdotEstimate, paces_from_vdot
from readiness_engine.calculations.zones import ZoneSystems, build_zone_systems, format_pace
from readiness_engine.core.exceptions import InsufficientDataError
from readiness_engine.models.threshold_test import Confidence

DEFAULT_MISMATCH_PERCENT = 15.0


class PaceSourceKind(str, Enum):
    RACE = "race"  # Most recent race -> VDOT
    LACTATE = "lactate"  # Lactate test -> individualized ratio
    FIELD_TEST = "field_test"  # HR-only stage test multipliers
    PROFILE = "profile"  # Age/volume heuristic


@dataclass
class PaceSource(ABC):
    """Base variant. Subclasses set ``kind``, ``tier`` and build paces."""

    kind = PaceSourceKind.PROFILE
    tier = 99
    # Tiers below this confidence cannot be chosen as primary
    min_primary_confidence = Confidence.LOW

    confidence: Confidence = Confidence.LOW
    warnings: list[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return True

    @property
    def satisfiable(self) -> bool:
        return self.has_data and self.confidence.at_least(self.min_primary_confidence)

    def sort_key(self) -> tuple[bool, int, int]:
        """Total order: satisfiable first, then tier, then confidence."""
        return (not self.satisfiable, self.tier, -self.confidence.rank)

    @abstractmethod
    def core_paces(self) -> CorePaces:
        """Core paces from this source's data.

        Raises:
            InsufficientDataError: The source has no data
        """


@dataclass
class RaceSource(PaceSource):
    kind = PaceSourceKind.RACE
    tier = 1
    min_primary_confidence = Confidence.HIGH

    estimate: VdotEstimate | None = None

    @property
    def has_data(self) -> bool:
        return self.estimate is not None

    def core_paces(self) -> CorePaces:
        if self.estimate is None:
            raise InsufficientDataError("No race result to derive paces from", required=1, received=0)
        return paces_from_vdot(self.estimate.vdot)


@dataclass
class LactateSource(PaceSource):
    kind = PaceSourceKind.LACTATE
    tier = 2

    result: ThresholdResult | None = None
    compression_factor: float = 0.85

    @property
    def has_data(self) -> bool:
        return self.result is not None

    def core_paces(self) -> CorePaces:
        if self.result is None:
            raise InsufficientDataError("No lactate test to derive paces from", required=1, received=0)
        t = self.result.threshold_speed
        return CorePaces(
            marathon=t * self.compression_factor,
            threshold=t,
            easy_min=t * 0.65,
            easy_max=t * 0.78,
            interval=t * 1.07,
            repetition=t * 1.18,
        )


@dataclass
class FieldTestSource(PaceSource):
    kind = PaceSourceKind.FIELD_TEST
    tier = 3

    average_speed: float | None = None

    @property
    def has_data(self) -> bool:
        return self.average_speed is not None and self.average_speed > 0

    def core_paces(self) -> CorePaces:
        if self.average_speed is None:
            raise InsufficientDataError("No field test speed to derive paces from", required=1, received=0)
        a = self.average_speed
        threshold = a * 0.88
        return CorePaces(
            marathon=threshold * 0.85,
            threshold=threshold,
            easy_min=a * 0.60,
            easy_max=a * 0.75,
            interval=a * 0.95,
            repetition=a * 1.05,
        )


@dataclass
class ProfileSource(PaceSource):
    kind = PaceSourceKind.PROFILE
    tier = 4

    vdot: float = 40.0

    def core_paces(self) -> CorePaces:
        return paces_from_vdot(self.vdot)


@dataclass
class ConsistencyCheck:
    metric: str
    primary_value: float
    secondary_value: float
    mismatch_percent: float
    consistent: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "metric": self.metric,
            "primary": format_pace(self.primary_value),
            "secondary": format_pace(self.secondary_value),
            "mismatch_percent": round(self.mismatch_percent, 1),
            "consistent": self.consistent,
        }


@dataclass
class ValidationResult:
    sources_available: list[str]
    checks: list[ConsistencyCheck] = field(default_factory=list)
    data_quality: Confidence = Confidence.LOW

    @property
    def consistent(self) -> bool:
        return all(check.consistent for check in self.checks)

    def to_dict(self) -> dict[str, object]:
        return {
            "sources_available": self.sources_available,
            "consistent": self.consistent,
            "checks": [c.to_dict() for c in self.checks],
            "data_quality": self.data_quality.value,
        }


@dataclass
class PaceSelection:
    """Projection of tests, races and profile into one pace set."""

    paces: CorePaces
    zones: ZoneSystems
    primary_source: PaceSourceKind
    secondary_source: PaceSourceKind | None
    confidence: Confidence
    classification: Classification
    validation: ValidationResult
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        core = {}
        for name in ("marathon", "threshold", "easy_min", "easy_max", "interval", "repetition"):
            speed = getattr(self.paces, name)
            core[name] = {"speed_kmh": round(speed, 2), "pace": format_pace(speed)}
        return {
            "primary_source": self.primary_source.value,
            "secondary_source": self.secondary_source.value if self.secondary_source else None,
            "confidence": self.confidence.value,
            "classification": self.classification.to_dict(),
            "paces": core,
            "zones": self.zones.to_dict(),
            "validation": self.validation.to_dict(),
            "warnings": list(self.warnings),
        }


def rank_sources(sources: list[PaceSource]) -> list[PaceSource]:
    return sorted(sources, key=lambda s: s.sort_key())


def choose_sources(
    sources: list[PaceSource],
    preferred: PaceSourceKind | None = None,
) -> tuple[PaceSource, PaceSource | None, list[str]]:
    """Pick primary and secondary sources.

    A preferred source wins only when its data is present. The secondary is
    the next data-bearing, non-profile source that is either high confidence
    or race-derived.
    """
    warnings: list[str] = []
    ranked = rank_sources(sources)
    primary = ranked[0]
    if not primary.has_data:
        raise ValueError("No pace source has data")

    if preferred is not None:
        match = next((s for s in sources if s.kind == preferred), None)
        if match is not None and match.has_data:
            primary = match
        else:
            warnings.append(f"Preferred source '{preferred.value}' has no data; using automatic selection")

    secondary = None
    for candidate in ranked:
        if candidate is primary or not candidate.has_data or candidate.kind == PaceSourceKind.PROFILE:
            continue
        if candidate.confidence.at_least(Confidence.HIGH) or candidate.kind == PaceSourceKind.RACE:
            secondary = candidate
            break
    return primary, secondary, warnings


def mismatch_percent(primary_speed: float, secondary_speed: float) -> float:
    if primary_speed <= 0:
        return 0.0
    return abs(primary_speed - secondary_speed) / primary_speed * 100


def select_paces(
    sources: list[PaceSource],
    classification: Classification,
    preferred: PaceSourceKind | None = None,
    max_hr: int | None = None,
    threshold_hr: float | None = None,
    threshold_lactate: float | None = None,
    mismatch_threshold: float = DEFAULT_MISMATCH_PERCENT,
) -> PaceSelection:
    """Resolve one authoritative pace set and expand it into zones.

    Mismatch between primary and secondary marathon pace beyond
    ``mismatch_threshold`` percent degrades confidence one tier and adds a
    warning; it never fails.
    """
    if not sources:
        raise ValueError("At least one pace source is required")

    primary, secondary, warnings = choose_sources(sources, preferred)
    for source in sources:
        if source.has_data:
            warnings.extend(source.warnings)

    paces = primary.core_paces()
    confidence = primary.confidence
    validation = ValidationResult(
        sources_available=[s.kind.value for s in rank_sources(sources) if s.has_data],
        data_quality=confidence,
    )

    if primary.kind == PaceSourceKind.PROFILE:
        warnings.append("Paces estimated from profile only; run a threshold test or enter a race")

    if secondary is not None:
        other = secondary.core_paces()
        for metric in ("marathon", "threshold"):
            p, s = getattr(paces, metric), getattr(other, metric)
            pct = mismatch_percent(p, s)
            check = ConsistencyCheck(metric, p, s, pct, pct <= mismatch_threshold)
            validation.checks.append(check)
        marathon_check = validation.checks[0]
        if not marathon_check.consistent:
            confidence = confidence.degrade()
            warnings.append(
                f"Marathon pace mismatch between sources ({marathon_check.mismatch_percent:.1f}%)"
            )
        validation.data_quality = confidence

    zones = build_zone_systems(
        paces,
        classification.level,
        max_hr=max_hr,
        threshold_hr=threshold_hr,
        threshold_lactate=threshold_lactate,
    )

    return PaceSelection(
        paces=paces,
        zones=zones,
        primary_source=primary.kind,
        secondary_source=secondary.kind if secondary else None,
        confidence=confidence,
        classification=classification,
        validation=validation,
        warnings=warnings,
    )
