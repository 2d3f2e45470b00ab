"""Pace selection service."""

from datetime import UTC, date, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.classification import classify_athlete
from readiness_engine.calculations.paces import (
    FieldTestSource,
    LactateSource,
    PaceSelection,
    PaceSource,
    PaceSourceKind,
    ProfileSource,
    RaceSource,
    select_paces,
)
from readiness_engine.calculations.vdot import estimate_vdot_from_profile, estimate_vdot_from_race
from readiness_engine.core.config import settings
from readiness_engine.core.exceptions import NotFoundError
from readiness_engine.models.athlete import Athlete
from readiness_engine.models.race import RaceResult
from readiness_engine.models.threshold_test import Confidence, StageTestType
from readiness_engine.services.thresholds import ThresholdService, result_from_test

logger = structlog.get_logger()


class PaceService:
    """Builds one authoritative pace set from everything known about an athlete."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(service="paces")

    async def _latest_race(self, athlete_id: str) -> RaceResult | None:
        stmt = (
            select(RaceResult)
            .where(RaceResult.athlete_id == athlete_id)
            .order_by(RaceResult.race_date.desc())
        )
        return (await self.session.execute(stmt)).scalars().first()

    async def get_selection(
        self,
        athlete_id: str,
        preferred: PaceSourceKind | None = None,
        today: date | None = None,
    ) -> PaceSelection:
        """Resolve paces and zones for an athlete.

        Args:
            athlete_id: Athlete identifier
            preferred: Source to use as primary when it has data
            today: Reference day for race age (defaults to today, UTC)

        Raises:
            NotFoundError: Unknown athlete
        """
        athlete = await self.session.get(Athlete, athlete_id)
        if athlete is None:
            raise NotFoundError("athlete", athlete_id)
        today = today or datetime.now(UTC).date()

        thresholds = ThresholdService(self.session)
        race = await self._latest_race(athlete_id)
        lactate_test = await thresholds.current_test(athlete_id, StageTestType.LACTATE)
        field_test = await thresholds.current_test(athlete_id, StageTestType.HEART_RATE)

        estimate = (
            estimate_vdot_from_race(race.distance_m, race.time_seconds, race.race_date, today)
            if race is not None
            else None
        )
        lactate_result = result_from_test(lactate_test) if lactate_test is not None else None

        classification = classify_athlete(
            vdot=estimate.vdot if estimate is not None else None,
            threshold_speed_kmh=lactate_result.threshold_speed if lactate_result else None,
            weekly_km=athlete.weekly_km,
            training_age_years=athlete.training_age_years,
            age=athlete.age,
        )

        sources: list[PaceSource] = [
            ProfileSource(
                confidence=Confidence.LOW,
                vdot=estimate_vdot_from_profile(athlete.weekly_km, athlete.training_age_years, athlete.age),
            )
        ]
        if estimate is not None:
            sources.append(RaceSource(confidence=estimate.confidence, warnings=estimate.warnings, estimate=estimate))
        if lactate_result is not None:
            sources.append(
                LactateSource(
                    confidence=lactate_result.confidence,
                    warnings=list(lactate_result.warnings),
                    result=lactate_result,
                    compression_factor=classification.compression_factor,
                )
            )
        if field_test is not None and field_test.threshold_speed:
            sources.append(
                FieldTestSource(
                    confidence=Confidence(field_test.confidence or Confidence.MEDIUM.value),
                    average_speed=field_test.threshold_speed,
                )
            )

        selection = select_paces(
            sources,
            classification,
            preferred=preferred,
            max_hr=athlete.max_hr or (field_test.max_hr if field_test else None),
            threshold_hr=lactate_result.threshold_hr if lactate_result else None,
            threshold_lactate=lactate_result.threshold_lactate if lactate_result else None,
            mismatch_threshold=settings.pace_mismatch_threshold_percent,
        )
        self.logger.debug(
            "Paces selected",
            athlete_id=athlete_id,
            primary=selection.primary_source.value,
            secondary=selection.secondary_source.value if selection.secondary_source else None,
            confidence=selection.confidence.value,
        )
        return selection
