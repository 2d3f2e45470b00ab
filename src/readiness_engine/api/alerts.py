"""Coach alert endpoints."""

from typing import Any

from litestar import Router, get
from litestar.status_codes import HTTP_200_OK
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.models.injury import InjuryAssessment, InjurySeverity, InjuryStatus
from readiness_engine.models.training import ACWRZone
from readiness_engine.services.alerts import AlertService


def serialize_injury(injury: InjuryAssessment) -> dict[str, Any]:
    return {
        "id": injury.id,
        "athlete_id": injury.athlete_id,
        "status": injury.status,
        "severity": injury.severity,
        "phase": injury.phase,
        "is_illness": injury.is_illness,
        "injury_type": injury.injury_type,
        "body_part": injury.body_part,
        "illness_type": injury.illness_type,
        "pain_level": injury.pain_level,
        "gait_affected": injury.gait_affected,
        "immediate_action": injury.immediate_action,
        "estimated_return_weeks": injury.estimated_return_weeks,
        "return_to_run": injury.return_to_run,
        "program_adjustment": injury.program_adjustment,
        "detected_on": str(injury.detected_on),
        "last_checkin_date": str(injury.last_checkin_date),
        "resolved_at": injury.resolved_at.isoformat() if injury.resolved_at else None,
        "notes": injury.notes,
    }


@get("/alerts/injuries", status_code=HTTP_200_OK)
async def injury_alerts(
    session: AsyncSession,
    athlete_id: str | None = None,
    severity: InjurySeverity | None = None,
    status: InjuryStatus | None = None,
) -> list[dict[str, Any]]:
    """List injuries and illnesses.

    Open (ACTIVE or MONITORING) records by default; pass ``status`` to see
    resolved ones.
    """
    injuries = await AlertService(session).injury_alerts(athlete_id, severity=severity, status=status)
    return [serialize_injury(i) for i in injuries]


@get("/alerts/acwr", status_code=HTTP_200_OK)
async def acwr_alerts(
    session: AsyncSession,
    athlete_id: str | None = None,
    zone: ACWRZone | None = None,
) -> list[dict[str, Any]]:
    """List athletes whose latest ACWR sits in caution, danger or critical."""
    records = await AlertService(session).acwr_alerts(athlete_id, zone=zone)
    return [
        {
            "athlete_id": r.athlete_id,
            "date": str(r.date),
            "acute_load": r.acute_load,
            "chronic_load": r.chronic_load,
            "acwr": r.acwr,
            "zone": r.zone,
            "history_days": r.history_days,
        }
        for r in records
    ]


alerts_router = Router(path="/", route_handlers=[injury_alerts, acwr_alerts], tags=["Alerts"])
