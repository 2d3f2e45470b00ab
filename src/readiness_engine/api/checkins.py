"""Daily check-in and readiness endpoints."""

from datetime import date
from typing import Any

from litestar import Router, get, post
from litestar.exceptions import NotFoundException
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.core.exceptions import NotFoundError
from readiness_engine.schemas.checkin import CheckInRequest
from readiness_engine.services.checkin import CheckInService


@post("/athletes/{athlete_id:str}/checkins", status_code=HTTP_201_CREATED)
async def submit_checkin(
    athlete_id: str,
    data: CheckInRequest,
    session: AsyncSession,
) -> dict[str, Any]:
    """Submit the athlete's morning check-in.

    Scores readiness, decides on the upcoming workouts and, when a red flag
    fires, records the injury or illness and notifies the coach. Resubmitting
    the same day replaces the earlier check-in.
    """
    try:
        outcome = await CheckInService(session).submit(athlete_id, data)
    except NotFoundError as e:
        raise NotFoundException(e.message) from e
    return outcome.to_dict()


@get("/athletes/{athlete_id:str}/readiness/{day:date}", status_code=HTTP_200_OK)
async def get_readiness(
    athlete_id: str,
    day: date,
    session: AsyncSession,
) -> dict[str, Any]:
    """Get the stored readiness assessment for one day."""
    assessment = await CheckInService(session).get_assessment(athlete_id, day)
    if assessment is None:
        raise NotFoundException(f"No readiness assessment for athlete {athlete_id} on {day}")

    return {
        "athlete_id": assessment.athlete_id,
        "date": str(assessment.date),
        "checkin_id": assessment.checkin_id,
        "score": assessment.score,
        "level": assessment.level,
        "components": {
            "hrv": assessment.hrv_score,
            "resting_hr": assessment.rhr_score,
            "wellness": assessment.wellness_score,
            "acwr": assessment.acwr_score,
            "sleep": assessment.sleep_score,
        },
        "signals": assessment.signals,
        "red_flags": assessment.red_flags,
        "decision_action": assessment.decision_action,
        "calculated_at": assessment.calculated_at.isoformat() if assessment.calculated_at else None,
    }


checkins_router = Router(
    path="/",
    route_handlers=[submit_checkin, get_readiness],
    tags=["Check-ins"],
)
