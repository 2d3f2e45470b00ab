"""Daily check-in request schema."""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class PainTiming(str, Enum):
    """When pain shows up relative to running."""

    BEFORE = "before"
    DURING = "during"
    AFTER = "after"
    CONSTANT = "constant"


class CheckInRequest(BaseModel):
    """Morning check-in for one athlete-day.

    Every metric is optional; readiness renormalises over what is present.
    A later submission for the same date replaces the earlier one.
    """

    date: dt.date = Field(description="Check-in day")

    hrv_rmssd: float | None = Field(default=None, gt=0, le=300, description="Morning HRV (RMSSD, ms)")
    resting_hr: float | None = Field(default=None, ge=25, le=150, description="Morning resting HR (bpm)")
    sleep_hours: float | None = Field(default=None, ge=0, le=24)

    soreness: int | None = Field(default=None, ge=1, le=10, description="1 = none, 10 = severe")
    stress: int | None = Field(default=None, ge=1, le=10)
    mood: int | None = Field(default=None, ge=1, le=10)
    energy: int | None = Field(default=None, ge=1, le=10)

    pain_level: int | None = Field(default=None, ge=0, le=10)
    pain_body_part: str | None = Field(default=None, max_length=50)
    pain_timing: PainTiming | None = None
    injury_type: str | None = Field(default=None, max_length=50, description="Athlete-reported injury")
    gait_affected: bool = Field(default=False, description="Pain changes running gait")

    is_ill: bool = False
    illness_type: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def pain_details_need_pain(self) -> "CheckInRequest":
        if self.gait_affected and not self.pain_level:
            raise ValueError("gait_affected requires a pain_level above 0")
        return self
