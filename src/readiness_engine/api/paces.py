"""Training pace endpoints."""

from typing import Any

from litestar import Router, get
from litestar.exceptions import NotFoundException
from litestar.status_codes import HTTP_200_OK
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.calculations.paces import PaceSourceKind
from readiness_engine.core.exceptions import NotFoundError
from readiness_engine.services.paces import PaceService


@get("/athletes/{athlete_id:str}/paces", status_code=HTTP_200_OK)
async def get_paces(
    athlete_id: str,
    session: AsyncSession,
    preferred: PaceSourceKind | None = None,
) -> dict[str, Any]:
    """Get training paces and zones.

    Paces come from the best available source: a recent race, a lactate
    test, a heart-rate field test, or the athlete profile. ``preferred``
    promotes a source to primary when it has data.
    """
    try:
        selection = await PaceService(session).get_selection(athlete_id, preferred=preferred)
    except NotFoundError as e:
        raise NotFoundException(e.message) from e
    return {"athlete_id": athlete_id, **selection.to_dict()}


paces_router = Router(path="/", route_handlers=[get_paces], tags=["Paces"])
