"""Injury status endpoint."""

from typing import Any

from litestar import Router, patch
from litestar.exceptions import ClientException, NotFoundException
from litestar.status_codes import HTTP_200_OK, HTTP_409_CONFLICT
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.api.alerts import serialize_injury
from readiness_engine.core.exceptions import InvalidTransitionError, NotFoundError
from readiness_engine.schemas.review import InjuryStatusUpdate
from readiness_engine.services.alerts import AlertService


@patch("/injuries/{injury_id:str}/status", status_code=HTTP_200_OK)
async def update_injury_status(
    injury_id: str,
    data: InjuryStatusUpdate,
    session: AsyncSession,
) -> dict[str, Any]:
    """Move an injury to MONITORING, back to ACTIVE, or resolve it.

    Resolved injuries are closed; a new report opens a new record.
    """
    try:
        injury = await AlertService(session).update_injury_status(injury_id, data.status, data.notes)
    except NotFoundError as e:
        raise NotFoundException(e.message) from e
    except InvalidTransitionError as e:
        raise ClientException(e.message, status_code=HTTP_409_CONFLICT) from e
    return serialize_injury(injury)


injuries_router = Router(path="/", route_handlers=[update_injury_status], tags=["Injuries"])
