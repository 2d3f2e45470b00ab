"""Tests for cross-training substitution and injury classification."""

import pytest

from readiness_engine.calculations.cross_training import (
    FALLBACK_LABEL,
    Modality,
    equivalent_minutes,
    lookup_modality,
    modality_for_injury,
    substitute,
)
from readiness_engine.calculations.injury import (
    RETURN_TO_RUN_PHASES,
    classify_injury,
    estimate_return_weeks,
    immediate_action,
    infer_injury_type,
    program_adjustment,
    return_to_run_phase,
)
from readiness_engine.core.exceptions import UnknownModalityError
from readiness_engine.models.injury import (
    ImmediateAction,
    InjuryPhase,
    InjurySeverity,
    InjuryType,
    ProgramAction,
)
from readiness_engine.models.notification import NotificationUrgency
from readiness_engine.models.training import ACWRZone


class TestSubstitution:
    """Tests for converting runs into other modalities."""

    def test_cycling_conversion(self):
        converted = substitute(60.0, 12.0, 150, 80.0, Modality.CYCLING)

        assert converted.modality == "cycling"
        assert converted.duration_minutes == 78.0
        assert converted.distance_km == 30.0
        assert converted.target_hr == 140
        assert converted.training_stress == 78.0
        assert converted.fitness_retention == 75
        assert not converted.is_fallback
        assert converted.instructions.startswith("78 min")

    def test_deep_water_has_no_distance(self):
        converted = substitute(45.0, 9.0, 145, 60.0, Modality.DEEP_WATER_RUNNING)

        assert converted.duration_minutes == 45.0
        assert converted.distance_km is None
        assert converted.fitness_retention == 98

    def test_unknown_modality_falls_back_closed(self):
        converted = substitute(60.0, 12.0, 150, 80.0, "trampoline")

        assert converted.is_fallback
        assert converted.modality == FALLBACK_LABEL
        assert converted.duration_minutes == 60.0
        assert converted.distance_km is None
        assert converted.target_hr == 140
        assert converted.training_stress == 48.0

    def test_lookup_unknown_raises(self):
        with pytest.raises(UnknownModalityError) as exc:
            lookup_modality("trampoline")
        assert exc.value.modality == "trampoline"

    def test_missing_fields_stay_missing(self):
        converted = substitute(None, None, None, None, Modality.ELLIPTICAL)

        assert converted.duration_minutes is None
        assert converted.target_hr is None
        assert converted.training_stress is None

    @pytest.mark.parametrize(
        ("injury", "modality"),
        [
            (InjuryType.PLANTAR_FASCIITIS, Modality.DEEP_WATER_RUNNING),
            (InjuryType.SHIN_SPLINTS, Modality.CYCLING),
            (InjuryType.IT_BAND_SYNDROME, Modality.SWIMMING),
            ("stress_fracture", Modality.DEEP_WATER_RUNNING),
            (None, Modality.CYCLING),
            ("unknown_thing", Modality.CYCLING),
        ],
    )
    def test_modality_for_injury(self, injury, modality):
        assert modality_for_injury(injury) == modality

    def test_equivalent_minutes(self):
        assert equivalent_minutes(45.0, Modality.SWIMMING) == 100.0

    def test_snapshot_fields_mark_cross_training(self):
        fields = substitute(60.0, 12.0, 150, 80.0, Modality.CYCLING).snapshot_fields()

        assert fields["workout_type"] == "cross_training"
        assert fields["modality"] == "cycling"
        assert fields["planned_load"] == 78.0


class TestInjuryClassification:
    """Tests for injury classification from check-in symptoms."""

    def test_pain_seven_shin(self):
        result = classify_injury(pain_level=7, body_part="shin")

        assert result.injury_type == InjuryType.SHIN_SPLINTS
        assert result.severity == InjurySeverity.MODERATE
        assert result.phase == InjuryPhase.SUBACUTE
        assert result.immediate_action == ImmediateAction.REST
        assert result.urgency == NotificationUrgency.HIGH
        assert result.estimated_return_weeks == 5

    def test_gait_is_severe_and_acute(self):
        result = classify_injury(pain_level=5, gait_affected=True, body_part="achilles")

        assert result.severity == InjurySeverity.SEVERE
        assert result.phase == InjuryPhase.ACUTE
        assert result.suggested_actions[0].startswith("Altered gait")

    def test_stress_fracture_is_critical(self):
        result = classify_injury(pain_level=5, reported_type="stress_fracture")

        assert result.urgency == NotificationUrgency.CRITICAL
        assert result.estimated_return_weeks == 12
        assert any("imaging" in action for action in result.suggested_actions)

    def test_high_pain_is_critical(self):
        assert classify_injury(pain_level=8).urgency == NotificationUrgency.CRITICAL

    @pytest.mark.parametrize(
        ("reported", "body_part", "notes", "expected"),
        [
            ("calf_strain", "knee", None, InjuryType.CALF_STRAIN),
            ("Not A Type", "knee", None, InjuryType.PATELLOFEMORAL_SYNDROME),
            (None, "IT band", None, InjuryType.IT_BAND_SYNDROME),
            (None, None, "sore heel on waking", InjuryType.PLANTAR_FASCIITIS),
            (None, None, None, InjuryType.SHIN_SPLINTS),
        ],
    )
    def test_infer_type(self, reported, body_part, notes, expected):
        assert infer_injury_type(reported, body_part, notes) == expected

    @pytest.mark.parametrize(
        ("pain", "timing", "action"),
        [
            (6, None, ImmediateAction.REST),
            (2, "constant", ImmediateAction.REST),
            (4, "during", ImmediateAction.CROSS_TRAINING_ONLY),
            (3, None, ImmediateAction.CROSS_TRAINING_ONLY),
            (1, "after", ImmediateAction.REDUCE),
            (0, None, ImmediateAction.MONITOR),
        ],
    )
    def test_immediate_action(self, pain, timing, action):
        assert immediate_action(pain, timing) == action

    def test_return_estimate_grows_with_load_risk(self):
        base = estimate_return_weeks(InjuryType.CALF_STRAIN, 5)

        assert base == 3
        assert estimate_return_weeks(InjuryType.CALF_STRAIN, 5, ACWRZone.DANGER) == 4
        assert estimate_return_weeks(InjuryType.CALF_STRAIN, 9, ACWRZone.CRITICAL) == 7


class TestRecoveryPlan:
    """Tests for the return-to-running protocol and program adjustment."""

    @pytest.mark.parametrize(("pain", "phase"), [(9, 1), (8, 1), (7, 2), (6, 2), (5, 3), (3, 3)])
    def test_start_phase_follows_pain(self, pain, phase):
        assert return_to_run_phase(pain, ImmediateAction.CROSS_TRAINING_ONLY).phase == phase

    def test_no_protocol_while_still_running(self):
        assert return_to_run_phase(2, ImmediateAction.REDUCE) is None
        assert return_to_run_phase(0, ImmediateAction.MONITOR) is None

    def test_phases_progress_from_walking(self):
        assert [p.phase for p in RETURN_TO_RUN_PHASES] == [1, 2, 3, 4, 5]
        assert RETURN_TO_RUN_PHASES[0].run_walk_ratio.startswith("0:1")
        assert RETURN_TO_RUN_PHASES[3].cross_training_allowed is False

    def test_rest_pauses_program(self):
        result = classify_injury(pain_level=7, body_part="shin")

        assert result.return_to_run.name == "Walk/run introduction"
        assert result.program_adjustment.action == ProgramAction.PAUSE
        assert result.program_adjustment.pause_weeks == 5
        assert result.program_adjustment.goal_shift_days == 35

    def test_mild_pain_modifies_program(self):
        result = classify_injury(pain_level=2, body_part="calf")

        assert result.phase == InjuryPhase.RETURN_TO_RUN
        assert result.return_to_run is None
        assert result.program_adjustment.action == ProgramAction.MODIFY
        assert result.program_adjustment.volume_reduction_percent == 50
        assert result.program_adjustment.goal_shift_days == 11

    def test_no_pain_maintains_program(self):
        adjustment = program_adjustment(ImmediateAction.MONITOR, 3, "calf strain")

        assert adjustment.action == ProgramAction.MAINTAIN
        assert adjustment.pause_weeks is None

    def test_serialized_forms(self):
        result = classify_injury(pain_level=8, body_part="achilles")

        protocol = result.return_to_run.to_dict()
        adjustment = result.program_adjustment.to_dict()
        assert protocol["phase"] == 1
        assert isinstance(protocol["progression_criteria"], list)
        assert adjustment["action"] == "pause"
        assert adjustment["pause_weeks"] == 8
