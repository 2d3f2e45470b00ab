"""Athlete history seeding fixtures.

Builds a reproducible history around a check-in day:
- A week of morning HRV and resting HR readings before the check-in
- Four weeks of completed sessions by default, optionally with a load spike in the last 7
- Two weeks of planned running workouts starting on the check-in day
"""

from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from readiness_engine.models.metrics import DailyMetricsRecord
from readiness_engine.models.training import TrainingSession
from readiness_engine.models.workout import Intensity, PlannedWorkout, WorkoutType

CHECKIN_DAY = date(2025, 3, 28)

# Mean 60.0, sample SD ~2.16
HRV_WEEK = [58.0, 62.0, 60.0, 61.0, 59.0, 63.0, 57.0]
# Mean ~50.7
RHR_WEEK = [50.0, 52.0, 51.0, 49.0, 50.0, 51.0, 52.0]

BASE_LOAD = 40.0
# 21 days at 40 then 7 days at 120 puts ACWR at ~1.65 on the last day
SPIKE_LOAD = 120.0

PLAN_DAYS = 14


def good_checkin(day: date = CHECKIN_DAY, **overrides) -> dict[str, object]:
    """A check-in with nothing wrong in it."""
    payload: dict[str, object] = {
        "date": day,
        "hrv_rmssd": 60.0,
        "resting_hr": 51.0,
        "sleep_hours": 8.0,
        "soreness": 2,
        "stress": 2,
        "mood": 8,
        "energy": 8,
    }
    payload.update(overrides)
    return payload


async def seed_metrics(session: AsyncSession, athlete_id: str, checkin_day: date = CHECKIN_DAY) -> int:
    """One reading per day for the week before ``checkin_day``."""
    for offset, (hrv, rhr) in enumerate(zip(HRV_WEEK, RHR_WEEK, strict=True)):
        day = checkin_day - timedelta(days=len(HRV_WEEK) - offset)
        session.add(
            DailyMetricsRecord(
                athlete_id=athlete_id,
                date=day,
                hrv_rmssd=hrv,
                resting_hr=rhr,
                sleep_hours=7.5,
                soreness=3,
                stress=3,
                mood=7,
                energy=7,
            )
        )
    await session.commit()
    return len(HRV_WEEK)


async def seed_sessions(
    session: AsyncSession,
    athlete_id: str,
    checkin_day: date = CHECKIN_DAY,
    spike: bool = False,
    days: int = 28,
) -> int:
    """Daily sessions for the ``days`` ending on ``checkin_day``; a spike loads the last 7."""
    for offset in range(days):
        day = checkin_day - timedelta(days=days - 1 - offset)
        load = SPIKE_LOAD if spike and offset >= days - 7 else BASE_LOAD
        session.add(TrainingSession(athlete_id=athlete_id, date=day, duration_minutes=45, load=load))
    await session.commit()
    return days


async def seed_plan(
    session: AsyncSession,
    athlete_id: str,
    checkin_day: date = CHECKIN_DAY,
    days: int = PLAN_DAYS,
) -> list[PlannedWorkout]:
    """One running workout per day, alternating easy and threshold."""
    workouts = []
    for offset in range(days):
        hard = offset % 2 == 1
        workout = PlannedWorkout(
            athlete_id=athlete_id,
            scheduled_date=checkin_day + timedelta(days=offset),
            title="Threshold intervals" if hard else "Easy run",
            workout_type=WorkoutType.RUNNING.value,
            intensity=(Intensity.THRESHOLD if hard else Intensity.EASY).value,
            duration_minutes=60.0,
            distance_km=12.0,
            target_hr=165 if hard else 140,
            planned_load=90.0 if hard else 60.0,
        )
        session.add(workout)
        workouts.append(workout)
    await session.commit()
    return workouts


async def seed_history(
    session: AsyncSession,
    athlete_id: str,
    checkin_day: date = CHECKIN_DAY,
    spike: bool = False,
    session_days: int = 28,
) -> list[PlannedWorkout]:
    """Metrics, sessions and plan in one call."""
    await seed_metrics(session, athlete_id, checkin_day)
    await seed_sessions(session, athlete_id, checkin_day, spike=spike, days=session_days)
    return await seed_plan(session, athlete_id, checkin_day)
