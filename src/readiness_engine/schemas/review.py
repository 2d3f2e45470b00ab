"""Coach review and injury status request schemas."""

from pydantic import BaseModel, Field

from readiness_engine.models.injury import InjuryStatus
from readiness_engine.models.modification import DecisionAction, ReviewDecision


class ReviewRequest(BaseModel):
    """Coach decision on an automatic modification."""

    decision: ReviewDecision
    reviewer_id: str = Field(min_length=1, max_length=36)
    revert: bool = Field(
        default=False,
        description="On rejection, restore the workout to its original snapshot",
    )
    override_action: DecisionAction | None = Field(
        default=None,
        description="Apply a different action instead of the automatic one",
    )
    notes: str | None = Field(default=None, max_length=2000)


class InjuryStatusUpdate(BaseModel):
    status: InjuryStatus
    notes: str | None = Field(default=None, max_length=2000)
