"""Strength progression endpoint."""

from typing import Any

from litestar import Router, get
from litestar.status_codes import HTTP_200_OK
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.services.progression import ProgressionService


@get("/athletes/{athlete_id:str}/progression/{exercise:str}", status_code=HTTP_200_OK)
async def get_progression(
    athlete_id: str,
    exercise: str,
    session: AsyncSession,
) -> dict[str, Any]:
    """Analyze recent sessions of one exercise.

    Returns the 1RM trend, plateau detection and, when a deload is
    recommended, the prescription.
    """
    analysis = await ProgressionService(session).analyze(athlete_id, exercise)
    return {"athlete_id": athlete_id, **analysis.to_dict()}


progression_router = Router(path="/", route_handlers=[get_progression], tags=["Strength"])
