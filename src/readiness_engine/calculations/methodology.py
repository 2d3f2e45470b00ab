"""Methodology rule sets.

Each methodology is a small object answering one question: may the engine
change this workout on its own? The decision engine asks the rule set for
the athlete's methodology and never branches on the methodology tag itself.
"""

from dataclasses import dataclass

from readiness_engine.calculations.classification import AthleteLevel
from readiness_engine.models.athlete import Methodology


@dataclass(frozen=True)
class AthleteContext:
    """What the rule sets know about the athlete."""

    methodology: Methodology = Methodology.POLARIZED
    level: AthleteLevel | None = None
    has_lactate_meter: bool = False
    coach_supervised: bool = False


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    reason: str | None = None


ELIGIBLE = Eligibility(True)


class MethodologyRules:
    """Default rules: any workout may be modified automatically."""

    methodology = Methodology.POLARIZED

    def is_eligible_for_auto_modification(self, workout, context: AthleteContext) -> Eligibility:
        return ELIGIBLE


class PolarizedRules(MethodologyRules):
    methodology = Methodology.POLARIZED


class PyramidalRules(MethodologyRules):
    methodology = Methodology.PYRAMIDAL


class NorwegianRules(MethodologyRules):
    """Double-threshold days are lactate-controlled.

    Without a lactate meter and a supervising coach the engine cannot judge
    a safe substitute, so those sessions go to manual review.
    """

    methodology = Methodology.NORWEGIAN

    def is_eligible_for_auto_modification(self, workout, context: AthleteContext) -> Eligibility:
        if not workout.is_double_threshold:
            return ELIGIBLE
        missing = []
        if not context.has_lactate_meter:
            missing.append("lactate meter")
        if not context.coach_supervised:
            missing.append("coach supervision")
        if missing:
            return Eligibility(
                False,
                f"Double-threshold session requires {' and '.join(missing)} for automatic changes",
            )
        return ELIGIBLE


class CanovaRules(MethodologyRules):
    """Specific-block sessions are only auto-adjusted for advanced athletes."""

    methodology = Methodology.CANOVA

    def is_eligible_for_auto_modification(self, workout, context: AthleteContext) -> Eligibility:
        if workout.is_specific_block and context.level not in (
            AthleteLevel.ELITE,
            AthleteLevel.ADVANCED,
        ):
            return Eligibility(False, "Specific-block session needs coach review before changes")
        return ELIGIBLE


_RULES: dict[Methodology, MethodologyRules] = {
    rules.methodology: rules
    for rules in (PolarizedRules(), PyramidalRules(), NorwegianRules(), CanovaRules())
}


def rules_for(methodology: Methodology | str) -> MethodologyRules:
    """Rule set for a methodology tag (unknown tags get the defaults)."""
    try:
        return _RULES[Methodology(methodology)]
    except ValueError:
        return _RULES[Methodology.POLARIZED]
