"""Strength progression service."""

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.progression import (
    ProgressionAnalysis,
    ProgressionPolicy,
    StrengthSession,
    analyze_progression,
)
from readiness_engine.models.strength import StrengthSetLog
from readiness_engine.services.policies import progression_policy_from_settings

logger = structlog.get_logger()


class ProgressionService:
    def __init__(self, session: AsyncSession, policy: ProgressionPolicy | None = None) -> None:
        self.session = session
        self.policy = policy or progression_policy_from_settings()
        self.logger = logger.bind(service="progression")

    async def analyze(self, athlete_id: str, exercise: str) -> ProgressionAnalysis:
        """Analyze the trailing sessions for one exercise.

        Exercise names are matched case-insensitively.
        """
        stmt = (
            select(StrengthSetLog)
            .where(StrengthSetLog.athlete_id == athlete_id)
            .where(func.lower(StrengthSetLog.exercise) == exercise.lower())
            .order_by(StrengthSetLog.date.desc())
            .limit(self.policy.window_sessions)
        )
        rows = list((await self.session.execute(stmt)).scalars().all())
        sessions = [
            StrengthSession(date=row.date, sets=row.sets, reps=row.reps, load_kg=row.load_kg)
            for row in reversed(rows)
        ]
        analysis = analyze_progression(exercise, sessions, self.policy)
        self.logger.debug(
            "Progression analyzed",
            athlete_id=athlete_id,
            exercise=exercise,
            status=analysis.status.value,
            recommendation=analysis.recommendation.value,
        )
        return analysis
