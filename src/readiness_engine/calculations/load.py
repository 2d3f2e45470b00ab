"""Acute:chronic workload ratio from session history.

Both loads are exponentially weighted moving averages with
lambda = 2 / (N + 1), N = 7 (acute) and 28 (chronic). Every call walks the
full daily series from the first day of history, so the same history always
produces the same numbers.

Both averages start from zero, and the chronic one needs far longer to
fill. Until a full chronic window of history exists the ratio is not
reported, so a new athlete is never read as a load spike.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from readiness_engine.models.training import ACWRZone


@dataclass(frozen=True)
class ZoneBoundaries:
    detraining_below: float = 0.8
    caution_from: float = 1.3
    danger_from: float = 1.5
    critical_from: float = 2.0


DEFAULT_BOUNDARIES = ZoneBoundaries()


@dataclass(frozen=True)
class LoadSnapshot:
    date: date
    daily_load: float
    acute_load: float
    chronic_load: float
    acwr: float | None
    zone: ACWRZone | None
    history_days: int


def ewma_lambda(window_days: int) -> float:
    return 2 / (window_days + 1)


def classify_acwr(acwr: float, boundaries: ZoneBoundaries = DEFAULT_BOUNDARIES) -> ACWRZone:
    """Step function over the ratio."""
    if acwr >= boundaries.critical_from:
        return ACWRZone.CRITICAL
    if acwr >= boundaries.danger_from:
        return ACWRZone.DANGER
    if acwr >= boundaries.caution_from:
        return ACWRZone.CAUTION
    if acwr >= boundaries.detraining_below:
        return ACWRZone.OPTIMAL
    return ACWRZone.DETRAINING


def daily_series(loads: dict[date, float], start: date, end: date) -> list[tuple[date, float]]:
    """Dense day-by-day series, zero on rest days."""
    days = (end - start).days
    return [(start + timedelta(days=i), loads.get(start + timedelta(days=i), 0.0)) for i in range(days + 1)]


def compute_load(
    loads: dict[date, float],
    as_of: date,
    acute_days: int = 7,
    chronic_days: int = 28,
    boundaries: ZoneBoundaries = DEFAULT_BOUNDARIES,
    history_start: date | None = None,
    min_history_days: int | None = None,
) -> LoadSnapshot:
    """Acute/chronic EWMA and ACWR as of a day.

    Args:
        loads: Daily load totals keyed by day; days after ``as_of`` are ignored
        as_of: Day to compute for (inclusive)
        acute_days: Acute window N
        chronic_days: Chronic window N
        boundaries: ACWR zone boundaries
        history_start: Seed day; defaults to the earliest day in ``loads``
        min_history_days: Days of history needed before a ratio is reported;
            defaults to ``chronic_days``

    Returns:
        LoadSnapshot; ACWR and zone are None while chronic load is zero or
        the history is shorter than ``min_history_days``
    """
    past = {d: v for d, v in loads.items() if d <= as_of}
    start = history_start or (min(past) if past else as_of)
    start = min(start, as_of)

    acute_lambda = ewma_lambda(acute_days)
    chronic_lambda = ewma_lambda(chronic_days)
    acute = chronic = 0.0
    series = daily_series(past, start, as_of)
    for _, load in series:
        acute = acute_lambda * load + (1 - acute_lambda) * acute
        chronic = chronic_lambda * load + (1 - chronic_lambda) * chronic

    required = chronic_days if min_history_days is None else min_history_days
    acwr = acute / chronic if chronic > 0 and len(series) >= required else None
    return LoadSnapshot(
        date=as_of,
        daily_load=past.get(as_of, 0.0),
        acute_load=acute,
        chronic_load=chronic,
        acwr=acwr,
        zone=classify_acwr(acwr, boundaries) if acwr is not None else None,
        history_days=len(series),
    )
