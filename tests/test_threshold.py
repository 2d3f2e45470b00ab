"""Tests for lactate threshold and critical velocity analysis."""

import pytest

from readiness_engine.calculations.threshold import (
    CriticalVelocityTrial,
    Stage,
    analyze_critical_velocity,
    analyze_threshold_test,
    count_lactate_drops,
    modified_dmax_start,
)
from readiness_engine.core.exceptions import InsufficientDataError
from readiness_engine.models.threshold_test import Confidence, ThresholdMethod

SPEEDS = [10.0, 11.0, 12.0, 13.0, 14.0, 15.0]
CLEAN_LACTATE = [1.0, 1.1, 1.4, 2.0, 3.2, 5.5]
ZIGZAG_LACTATE = [1.0, 3.0, 1.2, 3.5, 1.5, 4.0]
HEART_RATES = [130.0, 140.0, 150.0, 160.0, 170.0, 180.0]


def _stages(lactate: list[float], heart_rates: list[float] | None = None) -> list[Stage]:
    hrs = heart_rates or [None] * len(lactate)
    return [Stage(speed=s, lactate=la, heart_rate=hr) for s, la, hr in zip(SPEEDS, lactate, hrs, strict=True)]


class TestDmax:
    """Tests for Dmax threshold detection."""

    def test_clean_curve_is_reliable(self):
        result = analyze_threshold_test(_stages(CLEAN_LACTATE))

        assert result.reliable
        assert result.r_squared > 0.98
        assert result.confidence in (Confidence.HIGH, Confidence.VERY_HIGH)
        assert 12.0 < result.threshold_speed < 14.5
        assert result.method == ThresholdMethod.DMAX
        assert result.threshold_hr is None

    def test_heart_rate_interpolated(self):
        result = analyze_threshold_test(_stages(CLEAN_LACTATE, HEART_RATES))

        # HR rises 10 bpm per km/h from 130 at 10 km/h
        expected = 130 + (result.threshold_speed - 10.0) * 10
        assert result.threshold_hr == pytest.approx(expected, abs=0.01)

    def test_mod_dmax_starts_later(self):
        dmax = analyze_threshold_test(_stages(CLEAN_LACTATE))
        mod = analyze_threshold_test(_stages(CLEAN_LACTATE), method=ThresholdMethod.MOD_DMAX)

        assert mod.method == ThresholdMethod.MOD_DMAX
        assert mod.threshold_speed >= dmax.threshold_speed

    def test_zigzag_is_flagged_not_raised(self):
        """A poor fit comes back LOW and unreliable with warnings."""
        result = analyze_threshold_test(_stages(ZIGZAG_LACTATE))

        assert not result.reliable
        assert result.confidence == Confidence.LOW
        assert any("non-monotonic" in w for w in result.warnings)
        assert any("Poor polynomial fit" in w for w in result.warnings)

    def test_manual_stage_wins(self):
        result = analyze_threshold_test(_stages(CLEAN_LACTATE, HEART_RATES), manual_stage=3)

        assert result.method == ThresholdMethod.MANUAL
        assert result.threshold_speed == 13.0
        assert result.threshold_hr == 160.0
        assert result.threshold_lactate == 2.0

    def test_manual_stage_out_of_range(self):
        with pytest.raises(ValueError):
            analyze_threshold_test(_stages(CLEAN_LACTATE), manual_stage=6)

    def test_too_few_stages(self):
        with pytest.raises(InsufficientDataError) as exc:
            analyze_threshold_test(_stages(CLEAN_LACTATE)[:3])
        assert exc.value.required == 4
        assert exc.value.received == 3

    def test_speeds_must_increase(self):
        stages = _stages(CLEAN_LACTATE)
        stages[2] = Stage(speed=11.0, lactate=1.4)
        with pytest.raises(ValueError):
            analyze_threshold_test(stages)

    def test_stricter_fit_requirement(self):
        result = analyze_threshold_test(_stages(CLEAN_LACTATE), min_r_squared=0.99999)
        assert result.confidence == Confidence.LOW

    def test_rising_step_curve_fits_poorly(self):
        """Flat then a sudden jump: monotonic, yet a cubic only explains ~88 %."""
        speeds = [10.0 + i for i in range(8)]
        lactate = [1.0] * 4 + [5.0] * 4
        stages = [Stage(speed=s, lactate=la) for s, la in zip(speeds, lactate, strict=True)]

        result = analyze_threshold_test(stages)

        assert count_lactate_drops(lactate) == 0
        assert result.r_squared == pytest.approx(0.883, abs=0.005)
        assert result.confidence == Confidence.LOW
        assert not result.reliable
        assert any("Poor polynomial fit" in w for w in result.warnings)
        assert not any("non-monotonic" in w for w in result.warnings)
        assert speeds[0] < result.threshold_speed < speeds[-1]

    def test_lactate_drops(self):
        assert count_lactate_drops(CLEAN_LACTATE) == 0
        assert count_lactate_drops(ZIGZAG_LACTATE) == 2
        # Dips inside the tolerance are sampling noise
        assert count_lactate_drops([1.0, 0.9, 1.5]) == 0

    def test_mod_dmax_start(self):
        # Baseline from the first two stages is 1.05; 2.0 is the first 0.4 rise
        assert modified_dmax_start(CLEAN_LACTATE) == 2
        assert modified_dmax_start([2.0, 2.0, 2.0, 2.0]) == 2


class TestCriticalVelocity:
    """Tests for the distance-time critical velocity model."""

    def test_good_fit(self):
        trials = [
            CriticalVelocityTrial(distance_m=1000 + 4.5 * t, duration_s=t)
            for t in (180.0, 360.0, 720.0)
        ]
        result = analyze_critical_velocity(trials)

        assert result.critical_velocity_ms == pytest.approx(4.5)
        assert result.d_prime_m == pytest.approx(1000.0)
        assert result.r_squared == pytest.approx(1.0)
        assert result.confidence == Confidence.VERY_HIGH
        assert not result.retest_recommended
        assert result.critical_velocity_kmh == pytest.approx(16.2)

    def test_poor_fit_keeps_result_and_recommends_retest(self):
        trials = [
            CriticalVelocityTrial(distance_m=d, duration_s=t)
            for d, t in ((1297, 180), (1263, 360), (1983, 540), (3457, 720))
        ]
        result = analyze_critical_velocity(trials)

        assert result.r_squared == pytest.approx(0.820, abs=0.001)
        assert result.critical_velocity_ms == pytest.approx(4.0)
        assert result.d_prime_m == pytest.approx(200.0)
        assert result.confidence == Confidence.LOW
        assert result.retest_recommended
        assert any("R²=0.82" in r for r in result.recommendations)

    def test_two_trials_capped_at_medium(self):
        trials = [
            CriticalVelocityTrial(distance_m=1800, duration_s=180),
            CriticalVelocityTrial(distance_m=3600, duration_s=720),
        ]
        result = analyze_critical_velocity(trials)

        assert result.confidence == Confidence.MEDIUM
        assert any("third" in w for w in result.warnings)

    def test_single_trial(self):
        with pytest.raises(InsufficientDataError):
            analyze_critical_velocity([CriticalVelocityTrial(distance_m=1500, duration_s=300)])

    def test_duplicate_durations(self):
        trials = [
            CriticalVelocityTrial(distance_m=1500, duration_s=300),
            CriticalVelocityTrial(distance_m=1550, duration_s=300),
        ]
        with pytest.raises(ValueError):
            analyze_critical_velocity(trials)
