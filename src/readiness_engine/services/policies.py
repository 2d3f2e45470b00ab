"""Calculator configuration built from application settings.

Calculators take small frozen dataclasses; these helpers are the only place
that maps ``Settings`` fields onto them.
"""

from readiness_engine.calculations.decisions import DecisionPolicy
from readiness_engine.calculations.load import ZoneBoundaries
from readiness_engine.calculations.progression import ProgressionPolicy
from readiness_engine.calculations.readiness import ReadinessWeights, RedFlagThresholds
from readiness_engine.core.config import Settings, settings


def readiness_weights_from_settings(cfg: Settings = settings) -> ReadinessWeights:
    return ReadinessWeights(
        hrv=cfg.readiness_weight_hrv,
        rhr=cfg.readiness_weight_rhr,
        wellness=cfg.readiness_weight_wellness,
        acwr=cfg.readiness_weight_acwr,
        sleep=cfg.readiness_weight_sleep,
    )


def red_flags_from_settings(cfg: Settings = settings) -> RedFlagThresholds:
    return RedFlagThresholds(
        pain=cfg.red_flag_pain_threshold,
        readiness=cfg.red_flag_readiness_threshold,
        sleep_hours=cfg.red_flag_sleep_hours,
        stress=cfg.red_flag_stress_threshold,
    )


def zone_boundaries_from_settings(cfg: Settings = settings) -> ZoneBoundaries:
    return ZoneBoundaries(
        detraining_below=cfg.acwr_detraining_below,
        caution_from=cfg.acwr_caution_from,
        danger_from=cfg.acwr_danger_from,
        critical_from=cfg.acwr_critical_from,
    )


def decision_policy_from_settings(cfg: Settings = settings) -> DecisionPolicy:
    return DecisionPolicy(
        cascade_window_days=cfg.cascade_window_days,
        illness_rest_days=cfg.illness_rest_days,
        acwr_reduce_workout_count=cfg.acwr_reduce_workout_count,
        fatigue_reduce_workout_count=cfg.fatigue_reduce_workout_count,
        readiness_dip_threshold=cfg.readiness_dip_threshold,
    )


def progression_policy_from_settings(cfg: Settings = settings) -> ProgressionPolicy:
    return ProgressionPolicy(
        window_sessions=cfg.progression_window_sessions,
        plateau_min_weeks=cfg.plateau_min_weeks,
        plateau_deload_weeks=cfg.plateau_deload_weeks,
        deload_load_reduction_percent=cfg.deload_load_reduction_percent,
    )
