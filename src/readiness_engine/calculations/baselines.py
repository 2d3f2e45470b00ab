"""Rolling HRV/RHR baselines and deviation signals."""

import hashlib
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from statistics import mean, stdev

from readiness_engine.models.baseline import BaselineStatus

MIN_SAMPLES_PARTIAL = 3


class BaselineSignal(str, Enum):
    LOW_HRV = "low_hrv"
    ELEVATED_RHR = "elevated_rhr"


@dataclass(frozen=True)
class RollingBaseline:
    """Statistics over the trailing window that ends the day before ``as_of``."""

    as_of: date
    window_start: date
    window_end: date
    mean: float | None
    std_dev: float | None
    sample_count: int
    status: BaselineStatus
    fingerprint: str

    @property
    def usable(self) -> bool:
        return self.status != BaselineStatus.INSUFFICIENT and self.std_dev is not None

    def z_score(self, value: float) -> float | None:
        if not self.usable or not self.std_dev or self.mean is None:
            return None
        return (value - self.mean) / self.std_dev


def window_fingerprint(points: list[tuple[date, float]]) -> str:
    """Stable hash of the input window; equal inputs give equal baselines."""
    payload = ";".join(f"{d.isoformat()}={v!r}" for d, v in sorted(points))
    return hashlib.sha256(payload.encode()).hexdigest()


def rolling_baseline(
    history: dict[date, float],
    as_of: date,
    window_days: int = 7,
) -> RollingBaseline:
    """Baseline for ``as_of`` from the ``window_days`` days before it.

    The record for ``as_of`` itself is excluded so a bad day cannot dampen
    its own signal.
    """
    window_start = as_of - timedelta(days=window_days)
    window_end = as_of - timedelta(days=1)
    points = [(d, v) for d, v in history.items() if window_start <= d <= window_end]
    values = [v for _, v in sorted(points)]
    count = len(values)

    if count >= window_days:
        status = BaselineStatus.READY
    elif count >= MIN_SAMPLES_PARTIAL:
        status = BaselineStatus.PARTIAL
    else:
        status = BaselineStatus.INSUFFICIENT

    return RollingBaseline(
        as_of=as_of,
        window_start=window_start,
        window_end=window_end,
        mean=mean(values) if values else None,
        std_dev=stdev(values) if count >= 2 else None,
        sample_count=count,
        status=status,
        fingerprint=window_fingerprint(points),
    )


def detect_signals(
    hrv: float | None,
    resting_hr: float | None,
    hrv_baseline: RollingBaseline | None,
    rhr_baseline: RollingBaseline | None,
    sd_multiplier: float = 1.5,
) -> list[BaselineSignal]:
    """Low-HRV / elevated-RHR signals against the rolling baselines."""
    signals: list[BaselineSignal] = []
    if hrv is not None and hrv_baseline is not None:
        z = hrv_baseline.z_score(hrv)
        if z is not None and z < -sd_multiplier:
            signals.append(BaselineSignal.LOW_HRV)
    if resting_hr is not None and rhr_baseline is not None:
        z = rhr_baseline.z_score(resting_hr)
        if z is not None and z > sd_multiplier:
            signals.append(BaselineSignal.ELEVATED_RHR)
    return signals
