"""Tests for rolling baselines, the readiness composite and red flags."""

from datetime import date, timedelta

import pytest

from readiness_engine.calculations.baselines import (
    BaselineSignal,
    detect_signals,
    rolling_baseline,
)
from readiness_engine.calculations.readiness import (
    ReadinessInputs,
    ReadinessWeights,
    RedFlag,
    RedFlagThresholds,
    classify_readiness,
    compute_readiness,
    sleep_component,
    wellness_component,
)
from readiness_engine.models.baseline import BaselineStatus
from readiness_engine.models.readiness import ReadinessLevel
from readiness_engine.models.training import ACWRZone

DAY = date(2025, 3, 28)
HRV_WEEK = [58.0, 62.0, 60.0, 61.0, 59.0, 63.0, 57.0]


def _week(values: list[float], as_of: date = DAY) -> dict[date, float]:
    return {as_of - timedelta(days=len(values) - i): v for i, v in enumerate(values)}


class TestRollingBaseline:
    """Tests for the trailing 7-day baseline."""

    def test_full_window_is_ready(self):
        baseline = rolling_baseline(_week(HRV_WEEK), DAY)

        assert baseline.status == BaselineStatus.READY
        assert baseline.sample_count == 7
        assert baseline.mean == pytest.approx(60.0)
        assert baseline.std_dev == pytest.approx(2.160, abs=0.001)
        assert baseline.window_end == DAY - timedelta(days=1)

    def test_same_day_excluded(self):
        """A bad reading on the day itself cannot dampen its own signal."""
        history = _week(HRV_WEEK)
        history[DAY] = 20.0

        assert rolling_baseline(history, DAY).mean == pytest.approx(60.0)

    @pytest.mark.parametrize(
        ("samples", "status"),
        [(7, BaselineStatus.READY), (5, BaselineStatus.PARTIAL), (3, BaselineStatus.PARTIAL), (2, BaselineStatus.INSUFFICIENT)],
    )
    def test_status_by_sample_count(self, samples, status):
        baseline = rolling_baseline(_week(HRV_WEEK[-samples:]), DAY)
        assert baseline.status == status

    def test_insufficient_baseline_emits_no_signal(self):
        baseline = rolling_baseline(_week([60.0, 61.0]), DAY)
        assert detect_signals(30.0, None, baseline, None) == []

    def test_fingerprint_tracks_inputs(self):
        """Equal windows hash equal; a corrected value changes the hash."""
        first = rolling_baseline(_week(HRV_WEEK), DAY)
        again = rolling_baseline(_week(list(HRV_WEEK)), DAY)
        corrected = rolling_baseline(_week([*HRV_WEEK[:-1], 45.0]), DAY)

        assert first.fingerprint == again.fingerprint
        assert first.fingerprint != corrected.fingerprint


class TestSignals:
    """Tests for low-HRV and elevated-RHR signals."""

    def test_low_hrv(self):
        baseline = rolling_baseline(_week(HRV_WEEK), DAY)
        # 1.5 SD below the mean is ~56.8
        assert detect_signals(56.0, None, baseline, None) == [BaselineSignal.LOW_HRV]
        assert detect_signals(57.5, None, baseline, None) == []

    def test_elevated_rhr(self):
        baseline = rolling_baseline(_week([50.0, 52.0, 51.0, 49.0, 50.0, 51.0, 52.0]), DAY)
        assert detect_signals(None, 56.0, None, baseline) == [BaselineSignal.ELEVATED_RHR]
        assert detect_signals(None, 45.0, None, baseline) == []


class TestReadinessComposite:
    """Tests for the weighted readiness score."""

    def test_no_inputs_is_neutral(self):
        result = compute_readiness(ReadinessInputs())

        assert result.score == 5.0
        assert all(value is None for value in result.sub_scores().values())

    def test_at_baseline_hrv_scores_seven_and_a_half(self):
        baseline = rolling_baseline(_week(HRV_WEEK), DAY)
        result = compute_readiness(ReadinessInputs(hrv=60.0), hrv_baseline=baseline)

        assert result.hrv_score == pytest.approx(7.5)
        assert result.score == 7.5

    def test_missing_components_renormalise(self):
        """Wellness and sleep alone are weighted .30 / .15 of .45."""
        inputs = ReadinessInputs(sleep_hours=8.0, soreness=1, stress=1, mood=10, energy=10)
        result = compute_readiness(inputs)

        assert result.wellness_score == pytest.approx(10.0)
        assert result.sleep_score == pytest.approx(10.0)
        assert result.score == 10.0
        assert result.level == ReadinessLevel.EXCELLENT

    def test_weights_from_configuration(self):
        inputs = ReadinessInputs(sleep_hours=4.0, mood=10, energy=10)
        sleep_only = ReadinessWeights(hrv=0, rhr=0, wellness=0, acwr=0, sleep=1.0)

        assert compute_readiness(inputs, weights=sleep_only).score == 0.0

    def test_acwr_zone_scores(self):
        optimal = compute_readiness(ReadinessInputs(acwr_zone=ACWRZone.OPTIMAL))
        critical = compute_readiness(ReadinessInputs(acwr_zone=ACWRZone.CRITICAL))

        assert optimal.acwr_score == 10.0
        assert critical.acwr_score == 0.0

    def test_subscores_clamped(self):
        baseline = rolling_baseline(_week(HRV_WEEK), DAY)
        result = compute_readiness(ReadinessInputs(hrv=200.0, sleep_hours=12.0), hrv_baseline=baseline)

        assert result.hrv_score == 10.0
        assert result.sleep_score == 10.0

    @pytest.mark.parametrize("field", ["soreness", "stress"])
    def test_worse_inverted_input_never_raises_score(self, field):
        scores = [
            compute_readiness(ReadinessInputs(mood=7, energy=7, **{field: value})).score
            for value in range(1, 11)
        ]
        assert scores == sorted(scores, reverse=True)

    def test_more_sleep_never_lowers_score(self):
        scores = [compute_readiness(ReadinessInputs(mood=6, sleep_hours=h / 2)).score for h in range(0, 24)]
        assert scores == sorted(scores)

    def test_wellness_scaling(self):
        assert wellness_component(ReadinessInputs(mood=1)) == 0.0
        assert wellness_component(ReadinessInputs(soreness=1)) == 10.0
        assert wellness_component(ReadinessInputs()) is None

    def test_sleep_scaling(self):
        assert sleep_component(6.0) == pytest.approx(5.0)
        assert sleep_component(3.0) == 0.0

    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (9.0, ReadinessLevel.EXCELLENT),
            (8.5, ReadinessLevel.EXCELLENT),
            (7.0, ReadinessLevel.GOOD),
            (5.5, ReadinessLevel.MODERATE),
            (4.0, ReadinessLevel.LOW),
            (3.9, ReadinessLevel.VERY_LOW),
        ],
    )
    def test_levels(self, score, level):
        assert classify_readiness(score) == level


class TestRedFlags:
    """Tests for red-flag detection."""

    def test_pain_flag_fires_with_high_readiness(self):
        """Pain is checked independently of the composite."""
        inputs = ReadinessInputs(sleep_hours=8.0, soreness=1, stress=1, mood=10, energy=10, pain_level=6)
        result = compute_readiness(inputs)

        assert result.score == 10.0
        assert [hit.flag for hit in result.red_flags] == [RedFlag.PAIN]
        assert result.flag(RedFlag.PAIN).reason == "Pain 6/10"

    def test_pain_below_threshold(self):
        result = compute_readiness(ReadinessInputs(mood=9, energy=9, pain_level=4))
        assert result.flag(RedFlag.PAIN) is None

    def test_each_flag(self):
        inputs = ReadinessInputs(sleep_hours=4.5, stress=9, mood=2, energy=2, pain_level=5)
        flags = {hit.flag for hit in compute_readiness(inputs).red_flags}

        assert flags == {RedFlag.PAIN, RedFlag.LOW_READINESS, RedFlag.POOR_SLEEP, RedFlag.HIGH_STRESS}

    def test_custom_thresholds(self):
        lenient = RedFlagThresholds(pain=8, readiness=2.0, sleep_hours=3.0, stress=10)
        inputs = ReadinessInputs(sleep_hours=4.5, stress=9, mood=5, pain_level=6)

        assert compute_readiness(inputs, thresholds=lenient).red_flags == []
