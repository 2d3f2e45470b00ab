"""Threshold and critical velocity test endpoints."""

from typing import Any

from litestar import Router, post
from litestar.exceptions import NotFoundException, ValidationException
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.core.exceptions import InsufficientDataError, NotFoundError
from readiness_engine.schemas.tests import CriticalVelocityRequest, ThresholdTestRequest
from readiness_engine.services.thresholds import ThresholdService


@post("/athletes/{athlete_id:str}/threshold-tests", status_code=HTTP_201_CREATED)
async def submit_threshold_test(
    athlete_id: str,
    data: ThresholdTestRequest,
    session: AsyncSession,
) -> dict[str, Any]:
    """Submit a stage test and get its analyzed threshold.

    A poor fit is not an error: the result carries a low confidence tier,
    ``reliable: false`` and warnings.
    """
    try:
        test = await ThresholdService(session).submit_test(athlete_id, data)
    except NotFoundError as e:
        raise NotFoundException(e.message) from e
    except ValueError as e:
        raise ValidationException(str(e)) from e

    return {
        "id": test.id,
        "athlete_id": test.athlete_id,
        "test_date": str(test.test_date),
        "test_type": test.test_type,
        "method": test.method,
        "threshold_speed": test.threshold_speed,
        "threshold_hr": test.threshold_hr,
        "threshold_lactate": test.threshold_lactate,
        "r_squared": test.r_squared,
        "confidence": test.confidence,
        "reliable": test.reliable,
        "warnings": test.warnings,
    }


@post("/field-tests/critical-velocity", status_code=HTTP_200_OK)
async def critical_velocity(data: CriticalVelocityRequest) -> dict[str, Any]:
    """Fit critical velocity and D' from two or more maximal time trials."""
    try:
        result = ThresholdService.critical_velocity(data.trials)
    except InsufficientDataError as e:
        raise ValidationException(e.message) from e
    except ValueError as e:
        raise ValidationException(str(e)) from e
    return result.to_dict()


thresholds_router = Router(
    path="/",
    route_handlers=[submit_threshold_test, critical_velocity],
    tags=["Tests"],
)
