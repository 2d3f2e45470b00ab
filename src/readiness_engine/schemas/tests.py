"""Threshold and field test request schemas."""

from datetime import date

from pydantic import BaseModel, Field, model_validator

from readiness_engine.models.threshold_test import StageTestType, ThresholdMethod


class StageIn(BaseModel):
    speed: float = Field(gt=0, description="Stage speed (km/h)")
    lactate: float | None = Field(default=None, ge=0, description="Blood lactate (mmol/L)")
    heart_rate: float | None = Field(default=None, gt=0)


class ThresholdTestRequest(BaseModel):
    """Incremental stage test."""

    test_date: date
    test_type: StageTestType = StageTestType.LACTATE
    stages: list[StageIn] = Field(min_length=1)
    method: ThresholdMethod = ThresholdMethod.DMAX
    manual_threshold_stage: int | None = Field(
        default=None,
        ge=0,
        description="Zero-based stage index chosen by the coach",
    )
    max_hr: int | None = Field(default=None, gt=0, le=250)

    @model_validator(mode="after")
    def check_stage_samples(self) -> "ThresholdTestRequest":
        if self.test_type == StageTestType.LACTATE:
            if any(s.lactate is None for s in self.stages):
                raise ValueError("Lactate tests need a lactate sample for every stage")
        elif any(s.heart_rate is None for s in self.stages):
            raise ValueError("Heart rate tests need a heart rate for every stage")
        return self


class TrialIn(BaseModel):
    distance_m: float = Field(gt=0)
    duration_s: float = Field(gt=0)


class CriticalVelocityRequest(BaseModel):
    """Two or more maximal time trials."""

    trials: list[TrialIn] = Field(min_length=1)
