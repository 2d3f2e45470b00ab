"""Tests for strength progression analysis."""

from datetime import date, timedelta

import pytest

from readiness_engine.calculations.progression import (
    ProgressionPolicy,
    ProgressionStatus,
    Recommendation,
    StrengthSession,
    Trend,
    analyze_progression,
    epley_1rm,
    one_rm_trend,
    prescribe_deload,
    weeks_since_progress,
)
from readiness_engine.core.exceptions import InsufficientDataError

START = date(2025, 1, 6)


def _weekly(loads: list[float], reps: list[int] | int = 5, sets: int = 4) -> list[StrengthSession]:
    rep_list = reps if isinstance(reps, list) else [reps] * len(loads)
    return [
        StrengthSession(date=START + timedelta(weeks=i), sets=sets, reps=r, load_kg=load)
        for i, (load, r) in enumerate(zip(loads, rep_list, strict=True))
    ]


class TestEstimates:
    """Tests for 1RM estimation and trends."""

    def test_epley(self):
        assert epley_1rm(100.0, 5) == pytest.approx(116.7)
        assert epley_1rm(140.0, 1) == 140.0

    def test_trend_needs_two_sessions(self):
        with pytest.raises(InsufficientDataError):
            one_rm_trend(_weekly([100.0]))

    def test_improving_trend(self):
        trend, weekly = one_rm_trend(_weekly([100.0, 102.5, 105.0, 107.5]))
        assert trend == Trend.IMPROVING
        assert weekly > 0.5

    def test_flat_trend(self):
        assert one_rm_trend(_weekly([100.0] * 4)) == (Trend.STABLE, 0.0)

    def test_weeks_since_progress(self):
        sessions = _weekly([100.0, 105.0, 102.5, 102.5, 100.0])
        assert weeks_since_progress(sessions) == 3.0


class TestAnalyzeProgression:
    """Tests for plateau and deload detection."""

    def test_too_few_sessions(self):
        result = analyze_progression("squat", _weekly([100.0, 102.5, 105.0]))

        assert result.status == ProgressionStatus.INSUFFICIENT_DATA
        assert result.recommendation == Recommendation.COLLECT_MORE_DATA
        assert result.sessions_analyzed == 3

    def test_progressing(self):
        result = analyze_progression("squat", _weekly([100.0, 102.5, 105.0, 107.5]))

        assert result.status == ProgressionStatus.PROGRESSING
        assert result.recommendation == Recommendation.CONTINUE
        assert result.load_increased
        assert result.deload is None

    def test_reps_at_same_load_count_as_progress(self):
        result = analyze_progression("bench", _weekly([80.0] * 4, reps=[5, 5, 5, 7]))

        assert result.reps_increased
        assert result.status == ProgressionStatus.PROGRESSING

    def test_short_plateau_suggests_variation(self):
        result = analyze_progression("squat", _weekly([100.0] * 4))

        assert result.status == ProgressionStatus.PLATEAU
        assert result.recommendation == Recommendation.VARIATION
        assert result.deload is None

    def test_long_plateau_deloads(self):
        result = analyze_progression("squat", _weekly([100.0] * 8))

        assert result.status == ProgressionStatus.PLATEAU
        assert result.recommendation == Recommendation.DELOAD
        assert result.weeks_without_progress == 7.0
        assert result.deload is not None

    def test_declining_deloads(self):
        result = analyze_progression("deadlift", _weekly([100.0, 97.5, 95.0, 92.5]))

        assert result.status == ProgressionStatus.DECLINING
        assert result.trend == Trend.DECLINING
        assert result.recommendation == Recommendation.DELOAD
        assert result.deload.load_kg == pytest.approx(87.9, abs=0.1)

    def test_window_is_trailing(self):
        """Only the most recent ``window_sessions`` are considered."""
        sessions = _weekly([60.0, 70.0, 80.0, 90.0] + [100.0] * 4)
        result = analyze_progression("squat", sessions, ProgressionPolicy(window_sessions=4))

        assert result.sessions_analyzed == 4
        assert result.status == ProgressionStatus.PLATEAU

    def test_short_window_not_a_plateau(self):
        sessions = [
            StrengthSession(date=START + timedelta(days=3 * i), sets=3, reps=5, load_kg=100.0)
            for i in range(4)
        ]
        result = analyze_progression("press", sessions)

        assert result.status == ProgressionStatus.PROGRESSING
        assert "too short" in result.reasons[0]


class TestDeload:
    """Tests for deload prescriptions."""

    def test_four_by_eight(self):
        deload = prescribe_deload(4, 8, 100.0)

        assert deload.sets == 2
        assert deload.reps == 7
        assert deload.load_kg == 95.0
        assert 40.0 <= deload.volume_reduction_percent <= 60.0

    @pytest.mark.parametrize(
        ("sets", "reps"),
        [(5, 5), (3, 10), (6, 3), (4, 12), (3, 2), (5, 1), (2, 3), (3, 3), (10, 1)],
    )
    def test_volume_band(self, sets, reps):
        deload = prescribe_deload(sets, reps, 80.0)

        assert 40.0 <= deload.volume_reduction_percent <= 60.0
        assert deload.sets <= sets
        assert deload.reps <= reps

    def test_heavy_doubles_keep_sets_when_halving_cannot_reach_band(self):
        """3x2 halved to 2 sets is 33 % or 67 %; 3x1 is the in-band option."""
        deload = prescribe_deload(3, 2, 140.0)

        assert (deload.sets, deload.reps) == (3, 1)
        assert deload.volume_reduction_percent == 50.0

    def test_three_singles_use_the_closest_reduction(self):
        """A volume of 3 cannot drop 40-60 % in whole reps; the halved set count wins the tie."""
        deload = prescribe_deload(3, 1, 160.0)

        assert (deload.sets, deload.reps) == (2, 1)
        assert deload.volume_reduction_percent == 33.3

    def test_single_set_single_rep(self):
        """No in-band option exists; the closest reduction is used."""
        deload = prescribe_deload(1, 1, 100.0)

        assert deload.sets == 1
        assert deload.reps == 1
        assert deload.volume_reduction_percent == 0.0
