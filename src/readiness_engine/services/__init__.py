"""Business logic services."""

from readiness_engine.services.alerts import AlertService
from readiness_engine.services.baseline import BaselineService
from readiness_engine.services.batch import NightlyRecomputeService
from readiness_engine.services.cascade import CascadePipeline
from readiness_engine.services.checkin import CheckInService
from readiness_engine.services.modifications import ModificationService
from readiness_engine.services.notifications import NotificationService
from readiness_engine.services.paces import PaceService
from readiness_engine.services.progression import ProgressionService
from readiness_engine.services.thresholds import ThresholdService
from readiness_engine.services.training_load import TrainingLoadService

__all__ = [
    "AlertService",
    "BaselineService",
    "CascadePipeline",
    "CheckInService",
    "ModificationService",
    "NightlyRecomputeService",
    "NotificationService",
    "PaceService",
    "ProgressionService",
    "ThresholdService",
    "TrainingLoadService",
]
