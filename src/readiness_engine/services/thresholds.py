"""Threshold test service."""

from datetime import UTC, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.threshold import (
    CriticalVelocityResult,
    CriticalVelocityTrial,
    Stage,
    ThresholdResult,
    analyze_critical_velocity,
    analyze_threshold_test,
)
from readiness_engine.core.config import settings
from readiness_engine.core.exceptions import InsufficientDataError, NotFoundError
from readiness_engine.models.athlete import Athlete
from readiness_engine.models.threshold_test import (
    Confidence,
    StageTestType,
    ThresholdMethod,
    ThresholdTest,
)
from readiness_engine.schemas.tests import ThresholdTestRequest, TrialIn

logger = structlog.get_logger()


def result_from_test(test: ThresholdTest) -> ThresholdResult | None:
    """Rebuild the analyzed result stored on a test row."""
    if test.threshold_speed is None or test.threshold_lactate is None:
        return None
    return ThresholdResult(
        threshold_speed=test.threshold_speed,
        threshold_hr=test.threshold_hr,
        threshold_lactate=test.threshold_lactate,
        confidence=Confidence(test.confidence or Confidence.LOW.value),
        r_squared=test.r_squared or 0.0,
        method=ThresholdMethod(test.method),
        reliable=test.reliable,
        warnings=list(test.warnings or []),
    )


class ThresholdService:
    """Stores and analyzes stage tests.

    A test is analyzed once when submitted. The newest test supersedes the
    previous current test of the same type; older rows are never edited
    otherwise.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(service="thresholds")

    async def current_test(self, athlete_id: str, test_type: StageTestType) -> ThresholdTest | None:
        stmt = (
            select(ThresholdTest)
            .where(ThresholdTest.athlete_id == athlete_id)
            .where(ThresholdTest.test_type == test_type.value)
            .where(ThresholdTest.superseded_by_id.is_(None))
            .order_by(ThresholdTest.test_date.desc(), ThresholdTest.created_at.desc())
        )
        return (await self.session.execute(stmt)).scalars().first()

    async def submit_test(self, athlete_id: str, request: ThresholdTestRequest) -> ThresholdTest:
        """Analyze and store a stage test.

        Too few stages is not an error: the test is stored unreliable with
        the reason in its warnings.

        Raises:
            NotFoundError: Unknown athlete
            ValueError: Stage speeds not increasing, or bad manual stage index
        """
        if await self.session.get(Athlete, athlete_id) is None:
            raise NotFoundError("athlete", athlete_id)

        test = ThresholdTest(
            athlete_id=athlete_id,
            test_date=request.test_date,
            test_type=request.test_type.value,
            stages=[s.model_dump() for s in request.stages],
            max_hr=request.max_hr,
            method=request.method.value,
            manual_threshold_stage=request.manual_threshold_stage,
            analyzed_at=datetime.now(UTC),
        )

        if request.test_type == StageTestType.LACTATE:
            stages = [Stage(speed=s.speed, lactate=s.lactate or 0.0, heart_rate=s.heart_rate) for s in request.stages]
            try:
                result = analyze_threshold_test(
                    stages,
                    method=request.method,
                    manual_stage=request.manual_threshold_stage,
                    min_r_squared=settings.threshold_min_r_squared,
                )
            except InsufficientDataError as e:
                test.reliable = False
                test.confidence = Confidence.LOW.value
                test.warnings = [f"Not enough data: {e.message}"]
            else:
                test.method = result.method.value
                test.threshold_speed = result.threshold_speed
                test.threshold_hr = result.threshold_hr
                test.threshold_lactate = result.threshold_lactate
                test.r_squared = result.r_squared
                test.confidence = result.confidence.value
                test.reliable = result.reliable
                test.warnings = list(result.warnings)
        else:
            # Heart-rate stage tests feed the field-test pace source directly
            top = max(request.stages, key=lambda s: s.speed)
            test.threshold_speed = top.speed
            test.threshold_hr = top.heart_rate
            test.confidence = Confidence.MEDIUM.value
            test.reliable = True
            test.warnings = []

        try:
            previous = await self.current_test(athlete_id, request.test_type)
            self.session.add(test)
            await self.session.flush()
            if previous is not None:
                previous.superseded_by_id = test.id
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            self.logger.error("Failed to store threshold test", athlete_id=athlete_id, error=str(e))
            raise

        self.logger.info(
            "Threshold test analyzed",
            athlete_id=athlete_id,
            test_id=test.id,
            speed=test.threshold_speed,
            confidence=test.confidence,
            reliable=test.reliable,
        )
        return test

    @staticmethod
    def critical_velocity(trials: list[TrialIn]) -> CriticalVelocityResult:
        """Fit critical velocity from maximal time trials.

        Raises:
            InsufficientDataError: Fewer than two trials
            ValueError: Non-positive or duplicate durations
        """
        return analyze_critical_velocity(
            [CriticalVelocityTrial(distance_m=t.distance_m, duration_s=t.duration_s) for t in trials]
        )
