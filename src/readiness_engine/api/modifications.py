"""Workout modification endpoints."""

from typing import Any

from litestar import Router, get, post
from litestar.exceptions import ClientException, NotFoundException
from litestar.status_codes import HTTP_200_OK, HTTP_409_CONFLICT
from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.core.exceptions import InvalidTransitionError, NotFoundError
from readiness_engine.models.modification import DecisionAction, WorkoutModification
from readiness_engine.schemas.review import ReviewRequest
from readiness_engine.services.modifications import ModificationService


def serialize_modification(m: WorkoutModification) -> dict[str, Any]:
    return {
        "id": m.id,
        "athlete_id": m.athlete_id,
        "workout_id": m.workout_id,
        "trigger_date": str(m.trigger_date),
        "checkin_id": m.checkin_id,
        "injury_id": m.injury_id,
        "action": m.action,
        "reason": m.reason,
        "original": m.original_snapshot,
        "modified": m.modified_snapshot,
        "auto_generated": m.auto_generated,
        "reviewed": m.reviewed,
        "review_decision": m.review_decision,
        "reviewed_by": m.reviewed_by,
        "reviewed_at": m.reviewed_at.isoformat() if m.reviewed_at else None,
        "reverted": m.reverted,
        "coach_override_action": m.coach_override_action,
        "coach_notes": m.coach_notes,
    }


@get("/modifications", status_code=HTTP_200_OK)
async def list_modifications(
    session: AsyncSession,
    athlete_id: str | None = None,
    action: DecisionAction | None = None,
    reviewed: bool | None = None,
) -> list[dict[str, Any]]:
    """List current workout modifications, e.g. ``?reviewed=false`` for the coach queue."""
    modifications = await ModificationService(session).list_modifications(
        athlete_id=athlete_id,
        action=action,
        reviewed=reviewed,
    )
    return [serialize_modification(m) for m in modifications]


@post("/modifications/{modification_id:str}/review", status_code=HTTP_200_OK)
async def review_modification(
    modification_id: str,
    data: ReviewRequest,
    session: AsyncSession,
) -> dict[str, Any]:
    """Record a coach decision on an automatic modification.

    Rejecting with ``revert`` restores the original workout. An
    ``override_action`` replaces the automatic action; the automatic one is
    kept for audit.
    """
    try:
        modification = await ModificationService(session).review(
            modification_id,
            data.decision,
            data.reviewer_id,
            revert=data.revert,
            override_action=data.override_action,
            notes=data.notes,
        )
    except NotFoundError as e:
        raise NotFoundException(e.message) from e
    except InvalidTransitionError as e:
        raise ClientException(e.message, status_code=HTTP_409_CONFLICT) from e
    return serialize_modification(modification)


modifications_router = Router(
    path="/",
    route_handlers=[list_modifications, review_modification],
    tags=["Modifications"],
)
