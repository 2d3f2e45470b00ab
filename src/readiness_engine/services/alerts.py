"""Coach-facing alert queries."""

from datetime import UTC, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.core.exceptions import NotFoundError
from readiness_engine.models.injury import (
    OPEN_STATUSES,
    InjuryAssessment,
    InjurySeverity,
    InjuryStatus,
)
from readiness_engine.models.training import ACWRZone, TrainingLoadRecord
from readiness_engine.services.training_load import TrainingLoadService

logger = structlog.get_logger()

ACWR_ALERT_ZONES = (ACWRZone.CAUTION, ACWRZone.DANGER, ACWRZone.CRITICAL)


class AlertService:
    """Injury and load alerts across athletes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(service="alerts")

    async def injury_alerts(
        self,
        athlete_id: str | None = None,
        severity: InjurySeverity | None = None,
        status: InjuryStatus | None = None,
    ) -> list[InjuryAssessment]:
        """Injuries and illnesses, open ones unless a status is given."""
        stmt = select(InjuryAssessment)
        if status is not None:
            stmt = stmt.where(InjuryAssessment.status == status.value)
        else:
            stmt = stmt.where(InjuryAssessment.status.in_(OPEN_STATUSES))
        if athlete_id is not None:
            stmt = stmt.where(InjuryAssessment.athlete_id == athlete_id)
        if severity is not None:
            stmt = stmt.where(InjuryAssessment.severity == severity.value)
        stmt = stmt.order_by(InjuryAssessment.detected_on.desc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def acwr_alerts(
        self,
        athlete_id: str | None = None,
        zone: ACWRZone | None = None,
    ) -> list[TrainingLoadRecord]:
        """Latest load record per athlete when it sits in a risk zone."""
        zones = (zone,) if zone is not None else ACWR_ALERT_ZONES
        records = await TrainingLoadService(self.session).latest_by_athlete(athlete_id)
        return [r for r in records if r.zone in {z.value for z in zones}]

    async def update_injury_status(
        self,
        injury_id: str,
        status: InjuryStatus,
        notes: str | None = None,
    ) -> InjuryAssessment:
        """Move an injury between ACTIVE and MONITORING, or resolve it.

        Raises:
            NotFoundError: Unknown injury
            InvalidTransitionError: The injury is already resolved
        """
        injury = await self.session.get(InjuryAssessment, injury_id)
        if injury is None:
            raise NotFoundError("injury", injury_id)

        try:
            injury.transition_to(status)
            if status == InjuryStatus.RESOLVED:
                injury.resolved_at = datetime.now(UTC)
            if notes is not None:
                injury.notes = notes
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        self.logger.info("Injury status updated", injury_id=injury_id, status=status.value)
        return injury
