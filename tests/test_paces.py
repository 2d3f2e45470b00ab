"""Tests for VDOT, athlete classification and pace source selection."""

from datetime import date, timedelta

import pytest

from readiness_engine.calculations.classification import AthleteLevel, classify_athlete
from readiness_engine.calculations.paces import (
    FieldTestSource,
    LactateSource,
    PaceSource,
    PaceSourceKind,
    ProfileSource,
    RaceSource,
    choose_sources,
    rank_sources,
    select_paces,
)
from readiness_engine.calculations.threshold import ThresholdResult
from readiness_engine.calculations.vdot import (
    estimate_vdot_from_profile,
    estimate_vdot_from_race,
    paces_from_vdot,
    predict_race_seconds,
    race_confidence,
    vdot_from_race,
)
from readiness_engine.calculations.zones import format_pace, heart_rate_zones
from readiness_engine.core.exceptions import InsufficientDataError
from readiness_engine.models.threshold_test import Confidence, ThresholdMethod

TODAY = date(2025, 3, 28)


def _race(days_ago: int = 20, distance_m: float = 5000.0, seconds: float = 1200.0) -> RaceSource:
    estimate = estimate_vdot_from_race(distance_m, seconds, TODAY - timedelta(days=days_ago), TODAY)
    return RaceSource(confidence=estimate.confidence, warnings=estimate.warnings, estimate=estimate)


def _lactate(threshold_speed: float, confidence: Confidence = Confidence.HIGH, compression: float = 0.85) -> LactateSource:
    result = ThresholdResult(
        threshold_speed=threshold_speed,
        threshold_hr=168.0,
        threshold_lactate=2.6,
        confidence=confidence,
        r_squared=0.99,
        method=ThresholdMethod.DMAX,
        reliable=True,
    )
    return LactateSource(confidence=confidence, result=result, compression_factor=compression)


class TestVdot:
    """Tests for the Daniels-Gilbert equations."""

    def test_twenty_minute_5k(self):
        assert vdot_from_race(5000, 1200) == pytest.approx(49.8, abs=0.1)

    def test_prediction_inverts_vdot(self):
        vdot = vdot_from_race(10000, 2520)
        assert predict_race_seconds(vdot, 10000) == pytest.approx(2520, abs=1)

    def test_pace_ordering(self):
        paces = paces_from_vdot(50.0)

        assert paces.easy_min < paces.easy_max < paces.marathon < paces.threshold
        assert paces.threshold < paces.interval < paces.repetition

    def test_invalid_race(self):
        with pytest.raises(ValueError):
            vdot_from_race(0, 1200)

    @pytest.mark.parametrize(
        ("days_ago", "confidence"),
        [(20, Confidence.VERY_HIGH), (60, Confidence.HIGH), (120, Confidence.MEDIUM), (400, Confidence.LOW)],
    )
    def test_race_age(self, days_ago, confidence):
        estimate = race_confidence(TODAY - timedelta(days=days_ago), 10000, TODAY)
        assert estimate.confidence == confidence

    def test_short_race_degrades(self):
        estimate = race_confidence(TODAY - timedelta(days=10), 1500, TODAY)

        assert estimate.confidence == Confidence.HIGH
        assert any("Short races" in w for w in estimate.warnings)

    def test_profile_estimate(self):
        assert estimate_vdot_from_profile(None, None, None) == 40.0
        assert estimate_vdot_from_profile(90, 6, 45) == 58.0


class TestClassification:
    """Tests for athlete level classification."""

    def test_vdot_first(self):
        result = classify_athlete(vdot=55.0, threshold_speed_kmh=18.0, weekly_km=10)

        assert result.level == AthleteLevel.ADVANCED
        assert result.basis == "vdot"
        assert result.compression_factor == 0.88

    def test_threshold_speed_next(self):
        result = classify_athlete(threshold_speed_kmh=17.5)
        assert result.level == AthleteLevel.ELITE
        assert result.basis == "threshold_speed"

    def test_profile_last(self):
        assert classify_athlete(weekly_km=70, training_age_years=4).level == AthleteLevel.ADVANCED
        assert classify_athlete(weekly_km=20).level == AthleteLevel.RECREATIONAL

    def test_masters_adjustment(self):
        result = classify_athlete(vdot=45.0, age=55)
        assert result.compression_factor == pytest.approx(0.84)


class TestSourceSelection:
    """Tests for primary/secondary pace source resolution."""

    def test_recent_race_is_primary(self):
        primary, secondary, warnings = choose_sources([ProfileSource(), _lactate(14.0), _race()])

        assert primary.kind == PaceSourceKind.RACE
        assert secondary.kind == PaceSourceKind.LACTATE
        assert warnings == []

    def test_stale_race_yields_to_lactate(self):
        """A race below HIGH confidence cannot be primary but still validates."""
        primary, secondary, _ = choose_sources([_race(days_ago=150), _lactate(14.0), ProfileSource()])

        assert primary.kind == PaceSourceKind.LACTATE
        assert secondary.kind == PaceSourceKind.RACE

    def test_low_confidence_lactate_is_not_secondary(self):
        primary, secondary, _ = choose_sources(
            [_race(), _lactate(14.0, Confidence.LOW), FieldTestSource(average_speed=15.0)]
        )

        assert primary.kind == PaceSourceKind.RACE
        assert secondary is None

    def test_preferred_source_with_data_wins(self):
        primary, _, warnings = choose_sources([_race(), ProfileSource()], PaceSourceKind.PROFILE)

        assert primary.kind == PaceSourceKind.PROFILE
        assert warnings == []

    def test_preferred_source_without_data_warns(self):
        primary, _, warnings = choose_sources(
            [_race(), LactateSource(), ProfileSource()], PaceSourceKind.LACTATE
        )

        assert primary.kind == PaceSourceKind.RACE
        assert "no data" in warnings[0]

    def test_ranking_is_total(self):
        ranked = rank_sources([ProfileSource(), FieldTestSource(average_speed=15.0), _lactate(14.0)])
        assert [s.kind for s in ranked] == [
            PaceSourceKind.LACTATE,
            PaceSourceKind.FIELD_TEST,
            PaceSourceKind.PROFILE,
        ]

    def test_no_data_anywhere(self):
        with pytest.raises(ValueError):
            choose_sources([LactateSource(), FieldTestSource()])

    @pytest.mark.parametrize("source", [RaceSource(), LactateSource(), FieldTestSource()])
    def test_empty_source_refuses_to_build_paces(self, source):
        with pytest.raises(InsufficientDataError):
            source.core_paces()

    def test_base_source_is_abstract(self):
        with pytest.raises(TypeError):
            PaceSource()


class TestSelectPaces:
    """Tests for the full pace selection."""

    def test_consistent_sources_keep_confidence(self):
        race = _race()
        race_paces = race.core_paces()
        lactate = _lactate(race_paces.threshold, compression=race_paces.marathon / race_paces.threshold)

        selection = select_paces([race, lactate], classify_athlete(vdot=race.estimate.vdot))

        assert selection.primary_source == PaceSourceKind.RACE
        assert selection.confidence == Confidence.VERY_HIGH
        assert selection.validation.consistent
        assert [c.metric for c in selection.validation.checks] == ["marathon", "threshold"]

    def test_mismatch_degrades_one_tier(self):
        selection = select_paces([_race(), _lactate(11.0)], classify_athlete(vdot=49.8))

        assert selection.confidence == Confidence.HIGH
        assert not selection.validation.consistent
        assert any("mismatch" in w for w in selection.warnings)

    def test_mismatch_threshold_is_configurable(self):
        selection = select_paces(
            [_race(), _lactate(11.0)],
            classify_athlete(vdot=49.8),
            mismatch_threshold=80.0,
        )
        assert selection.confidence == Confidence.VERY_HIGH

    def test_profile_only_warns(self):
        selection = select_paces([ProfileSource(vdot=45.0)], classify_athlete(weekly_km=40))

        assert selection.primary_source == PaceSourceKind.PROFILE
        assert selection.confidence == Confidence.LOW
        assert any("profile only" in w for w in selection.warnings)

    def test_zone_systems(self):
        selection = select_paces([_race()], classify_athlete(vdot=49.8), max_hr=190)
        zones = selection.zones

        assert len(zones.effort) == 5
        assert len(zones.marathon_percent) == 7
        assert len(zones.lactate) == 3
        assert [z.hr_max for z in zones.heart_rate] == [114, 133, 152, 171, 190]

    def test_to_dict_formats_paces(self):
        data = select_paces([_race()], classify_athlete(vdot=49.8)).to_dict()

        assert data["primary_source"] == "race"
        assert data["paces"]["threshold"]["pace"].endswith("/km")
        assert set(data["zones"]) == {"effort", "marathon_percent", "lactate", "heart_rate"}

    def test_empty_sources(self):
        with pytest.raises(ValueError):
            select_paces([], classify_athlete())


class TestFormatting:
    def test_format_pace(self):
        assert format_pace(12.0) == "5:00/km"
        assert format_pace(0) == "-"

    def test_heart_rate_zones(self):
        zones = heart_rate_zones(200)
        assert (zones[0].hr_min, zones[-1].hr_max) == (100, 200)
