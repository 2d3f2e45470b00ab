"""Test fixtures for readiness-engine."""

from tests.fixtures.seed import (
    CHECKIN_DAY,
    good_checkin,
    seed_history,
    seed_metrics,
    seed_plan,
    seed_sessions,
)

__all__ = [
    "CHECKIN_DAY",
    "good_checkin",
    "seed_history",
    "seed_metrics",
    "seed_plan",
    "seed_sessions",
]
