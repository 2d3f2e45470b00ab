"""Database models."""

from readiness_engine.models.athlete import Athlete, Gender, Methodology
from readiness_engine.models.base import Base
from readiness_engine.models.baseline import BaselineSnapshot, BaselineStatus, MetricName
from readiness_engine.models.injury import (
    ImmediateAction,
    InjuryAssessment,
    InjuryPhase,
    InjurySeverity,
    InjuryStatus,
    InjuryType,
    ProgramAction,
)
from readiness_engine.models.metrics import DailyMetricsRecord
from readiness_engine.models.modification import DecisionAction, ReviewDecision, WorkoutModification
from readiness_engine.models.notification import (
    Notification,
    NotificationStatus,
    NotificationUrgency,
)
from readiness_engine.models.race import RaceResult
from readiness_engine.models.readiness import ReadinessAssessment, ReadinessLevel
from readiness_engine.models.strength import StrengthSetLog
from readiness_engine.models.substitution import CrossTrainingSubstitution
from readiness_engine.models.threshold_test import (
    Confidence,
    StageTestType,
    ThresholdMethod,
    ThresholdTest,
)
from readiness_engine.models.training import ACWRZone, TrainingLoadRecord, TrainingSession
from readiness_engine.models.workout import Intensity, PlannedWorkout, WorkoutStatus, WorkoutType

__all__ = [
    "ACWRZone",
    "Athlete",
    "BaselineSnapshot",
    "BaselineStatus",
    "Base",
    "Confidence",
    "CrossTrainingSubstitution",
    "DailyMetricsRecord",
    "DecisionAction",
    "Gender",
    "ImmediateAction",
    "InjuryAssessment",
    "InjuryPhase",
    "InjurySeverity",
    "InjuryStatus",
    "InjuryType",
    "Intensity",
    "Methodology",
    "MetricName",
    "Notification",
    "NotificationStatus",
    "NotificationUrgency",
    "PlannedWorkout",
    "ProgramAction",
    "RaceResult",
    "ReadinessAssessment",
    "ReadinessLevel",
    "ReviewDecision",
    "StrengthSetLog",
    "StageTestType",
    "ThresholdMethod",
    "ThresholdTest",
    "TrainingLoadRecord",
    "TrainingSession",
    "WorkoutModification",
    "WorkoutStatus",
    "WorkoutType",
]
