"""Pydantic schemas for API requests."""

from readiness_engine.schemas.checkin import CheckInRequest
from readiness_engine.schemas.review import InjuryStatusUpdate, ReviewRequest
from readiness_engine.schemas.tests import (
    CriticalVelocityRequest,
    StageIn,
    ThresholdTestRequest,
    TrialIn,
)

__all__ = [
    "CheckInRequest",
    "CriticalVelocityRequest",
    "InjuryStatusUpdate",
    "ReviewRequest",
    "StageIn",
    "ThresholdTestRequest",
    "TrialIn",
]
