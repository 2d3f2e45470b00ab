"""Tests for acute/chronic load and ACWR zones."""

from datetime import date, timedelta

import pytest

from readiness_engine.calculations.load import (
    ZoneBoundaries,
    classify_acwr,
    compute_load,
    daily_series,
    ewma_lambda,
)
from readiness_engine.models.training import ACWRZone, TrainingSession

DAY = date(2025, 3, 28)


def _history(days: int, load: float, end: date = DAY) -> dict[date, float]:
    return {end - timedelta(days=i): load for i in range(days)}


class TestZones:
    """Tests for the ACWR step function."""

    @pytest.mark.parametrize(
        ("acwr", "zone"),
        [
            (0.5, ACWRZone.DETRAINING),
            (0.79, ACWRZone.DETRAINING),
            (0.8, ACWRZone.OPTIMAL),
            (1.29, ACWRZone.OPTIMAL),
            (1.3, ACWRZone.CAUTION),
            (1.5, ACWRZone.DANGER),
            (1.99, ACWRZone.DANGER),
            (2.0, ACWRZone.CRITICAL),
            (3.4, ACWRZone.CRITICAL),
        ],
    )
    def test_boundaries(self, acwr, zone):
        """Lower bounds are inclusive."""
        assert classify_acwr(acwr) == zone

    def test_custom_boundaries(self):
        """Configured boundaries replace the defaults."""
        strict = ZoneBoundaries(detraining_below=0.9, caution_from=1.2, danger_from=1.4, critical_from=1.8)
        assert classify_acwr(1.25, strict) == ACWRZone.CAUTION
        assert classify_acwr(1.85, strict) == ACWRZone.CRITICAL


class TestEWMA:
    """Tests for the EWMA load model."""

    def test_lambda(self):
        assert ewma_lambda(7) == pytest.approx(0.25)
        assert ewma_lambda(28) == pytest.approx(2 / 29)

    def test_no_history_has_no_ratio(self):
        """With chronic load at zero the ratio is undefined."""
        snapshot = compute_load({}, DAY)

        assert snapshot.acute_load == 0.0
        assert snapshot.chronic_load == 0.0
        assert snapshot.acwr is None
        assert snapshot.zone is None
        assert snapshot.history_days == 1

    def test_first_day_seeds_both_averages(self):
        """A single session gives acute/chronic = 0.25 / (2/29)."""
        snapshot = compute_load({DAY: 100.0}, DAY, min_history_days=1)

        assert snapshot.acute_load == pytest.approx(25.0)
        assert snapshot.chronic_load == pytest.approx(200 / 29)
        assert snapshot.acwr == pytest.approx(3.625)
        assert snapshot.zone == ACWRZone.CRITICAL

    @pytest.mark.parametrize("days", [1, 7, 14, 27])
    def test_short_history_has_no_ratio(self, days):
        """Steady training from a cold start is not read as a spike."""
        snapshot = compute_load(_history(days, 50.0), DAY)

        assert snapshot.acute_load > snapshot.chronic_load > 0
        assert snapshot.history_days == days
        assert snapshot.acwr is None
        assert snapshot.zone is None

    def test_ratio_reported_once_window_is_full(self):
        snapshot = compute_load(_history(28, 50.0), DAY)

        assert snapshot.history_days == 28
        assert snapshot.zone == ACWRZone.OPTIMAL

    def test_history_start_counts_toward_window(self):
        """An explicit seed day before the first session counts as rest history."""
        snapshot = compute_load(_history(7, 50.0), DAY, history_start=DAY - timedelta(days=40))

        assert snapshot.history_days == 41
        assert snapshot.acwr is not None

    def test_steady_load_is_optimal(self):
        """Four weeks of identical days land in the optimal zone."""
        snapshot = compute_load(_history(28, 40.0), DAY)

        assert snapshot.acute_load == pytest.approx(40.0, abs=0.1)
        assert 1.1 < snapshot.acwr < 1.2
        assert snapshot.zone == ACWRZone.OPTIMAL

    def test_spike_is_danger(self):
        """Tripling the load for the final week pushes ACWR to ~1.65."""
        loads = _history(28, 40.0)
        loads.update(_history(7, 120.0))

        snapshot = compute_load(loads, DAY)

        assert snapshot.acwr == pytest.approx(1.654, abs=0.01)
        assert snapshot.zone == ACWRZone.DANGER
        assert snapshot.daily_load == 120.0

    def test_future_sessions_ignored(self):
        """Days after as_of never leak into the result."""
        loads = _history(28, 40.0)
        with_future = {**loads, DAY + timedelta(days=1): 500.0}

        assert compute_load(with_future, DAY) == compute_load(loads, DAY)

    def test_rest_days_decay(self):
        """Rest days count as zero, not as missing."""
        loads = _history(28, 40.0, end=DAY - timedelta(days=3))

        snapshot = compute_load(loads, DAY)

        assert snapshot.daily_load == 0.0
        assert snapshot.history_days == 31
        assert snapshot.acute_load < snapshot.chronic_load

    def test_recompute_is_deterministic(self):
        loads = _history(40, 55.0)
        assert compute_load(loads, DAY) == compute_load(dict(loads), DAY)

    def test_daily_series_is_dense(self):
        series = daily_series({DAY: 10.0}, DAY - timedelta(days=2), DAY)
        assert [v for _, v in series] == [0.0, 0.0, 10.0]


class TestSessionLoad:
    """Tests for session load resolution."""

    def test_explicit_load_wins(self):
        session = TrainingSession(date=DAY, load=80.0, rpe=5, duration_minutes=60)
        assert session.effective_load == 80.0

    def test_session_rpe(self):
        session = TrainingSession(date=DAY, rpe=6, duration_minutes=50)
        assert session.effective_load == 300.0

    def test_nothing_recorded(self):
        assert TrainingSession(date=DAY).effective_load == 0.0
