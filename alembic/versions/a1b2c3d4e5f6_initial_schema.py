"""Initial schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18

Creates athletes, daily check-ins, load and baseline history, readiness
assessments, planned workouts with their modifications and substitutions,
injury episodes, coach notifications, threshold tests, races and strength
history.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ATHLETE_SCOPED_TABLES = (
    "daily_metrics",
    "baseline_snapshots",
    "training_sessions",
    "training_load_records",
    "readiness_assessments",
    "planned_workouts",
    "workout_modifications",
    "injury_assessments",
    "cross_training_substitutions",
    "notifications",
    "threshold_tests",
    "race_results",
    "strength_set_logs",
)


def _id() -> sa.Column:
    return sa.Column("id", sa.String(length=36), nullable=False)


def _athlete_id() -> sa.Column:
    return sa.Column("athlete_id", sa.String(length=36), nullable=False, comment="Owning athlete ID")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "athletes",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("coach_id", sa.String(length=36), nullable=True, comment="Coach receiving notifications"),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("weekly_km", sa.Float(), nullable=True, comment="Typical weekly running volume"),
        sa.Column("training_age_years", sa.Float(), nullable=True),
        sa.Column("resting_hr", sa.Integer(), nullable=True),
        sa.Column("max_hr", sa.Integer(), nullable=True),
        sa.Column("methodology", sa.String(length=20), nullable=False, server_default="polarized"),
        sa.Column("has_lactate_meter", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "coach_supervised",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="Quality sessions run under direct coach supervision",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        comment="Athlete profiles",
    )

    op.create_table(
        "daily_metrics",
        _id(),
        _athlete_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("hrv_rmssd", sa.Float(), nullable=True, comment="Morning HRV (RMSSD, ms)"),
        sa.Column("resting_hr", sa.Float(), nullable=True, comment="Morning resting HR (bpm)"),
        sa.Column("sleep_hours", sa.Float(), nullable=True),
        sa.Column("soreness", sa.Integer(), nullable=True, comment="1 = none, 10 = severe"),
        sa.Column("stress", sa.Integer(), nullable=True, comment="1 = none, 10 = extreme"),
        sa.Column("mood", sa.Integer(), nullable=True, comment="1 = very low, 10 = great"),
        sa.Column("energy", sa.Integer(), nullable=True, comment="1 = exhausted, 10 = fresh"),
        sa.Column("pain_level", sa.Integer(), nullable=True, comment="0-10"),
        sa.Column("pain_body_part", sa.String(length=50), nullable=True),
        sa.Column("pain_timing", sa.String(length=20), nullable=True, comment="before, during, after or constant"),
        sa.Column("injury_type", sa.String(length=50), nullable=True, comment="Athlete-reported type"),
        sa.Column(
            "gait_affected",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="Pain alters running gait (limping)",
        ),
        sa.Column("is_ill", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("illness_type", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("athlete_id", "date", name="uq_daily_metrics_athlete_date"),
        comment="Daily athlete check-ins (one per athlete per day)",
    )
    op.create_index(op.f("ix_daily_metrics_date"), "daily_metrics", ["date"], unique=False)

    op.create_table(
        "baseline_snapshots",
        _id(),
        _athlete_id(),
        sa.Column("metric_name", sa.String(length=50), nullable=False),
        sa.Column(
            "as_of_date",
            sa.Date(),
            nullable=False,
            comment="Baseline applies to this day (window ends the day before)",
        ),
        sa.Column("mean", sa.Float(), nullable=True),
        sa.Column("std_dev", sa.Float(), nullable=True),
        sa.Column("sample_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="insufficient"),
        sa.Column("window_start", sa.Date(), nullable=False),
        sa.Column("window_end", sa.Date(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "source_fingerprint",
            sa.String(length=64),
            nullable=False,
            comment="Hash of the input window values",
        ),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("athlete_id", "metric_name", "as_of_date", name="uq_baseline_snapshot"),
        comment="Rolling HRV/RHR baselines per athlete and day",
    )
    op.create_index(
        op.f("ix_baseline_snapshots_metric_name"), "baseline_snapshots", ["metric_name"], unique=False
    )

    op.create_table(
        "training_sessions",
        _id(),
        _athlete_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("sport", sa.String(length=30), nullable=False, server_default="running"),
        sa.Column("duration_minutes", sa.Float(), nullable=True),
        sa.Column("rpe", sa.Integer(), nullable=True, comment="Session RPE (1-10)"),
        sa.Column("load", sa.Float(), nullable=True, comment="Explicit load (e.g. TSS); sRPE is used when absent"),
        sa.Column("workout_id", sa.String(length=36), nullable=True, comment="Planned workout, if any"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        comment="Completed sessions feeding the load model",
    )
    op.create_index(op.f("ix_training_sessions_date"), "training_sessions", ["date"], unique=False)

    op.create_table(
        "training_load_records",
        _id(),
        _athlete_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("daily_load", sa.Float(), nullable=False, server_default="0"),
        sa.Column("acute_load", sa.Float(), nullable=False),
        sa.Column("chronic_load", sa.Float(), nullable=False),
        sa.Column("acwr", sa.Float(), nullable=True, comment="Null while chronic load is zero"),
        sa.Column("zone", sa.String(length=20), nullable=True),
        sa.Column("history_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("athlete_id", "date", name="uq_training_load_athlete_date"),
        comment="EWMA acute/chronic load per athlete and day",
    )
    op.create_index(op.f("ix_training_load_records_date"), "training_load_records", ["date"], unique=False)

    op.create_table(
        "readiness_assessments",
        _id(),
        _athlete_id(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("checkin_id", sa.String(length=36), nullable=True, comment="Source daily_metrics row"),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("level", sa.String(length=20), nullable=False),
        sa.Column("hrv_score", sa.Float(), nullable=True),
        sa.Column("rhr_score", sa.Float(), nullable=True),
        sa.Column("wellness_score", sa.Float(), nullable=True),
        sa.Column("acwr_score", sa.Float(), nullable=True),
        sa.Column("sleep_score", sa.Float(), nullable=True),
        sa.Column("signals", sa.JSON(), nullable=False, comment="Baseline signals (low_hrv, elevated_rhr)"),
        sa.Column("red_flags", sa.JSON(), nullable=False, comment="Red flags that fired, with reasons"),
        sa.Column("decision_action", sa.String(length=40), nullable=True),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("athlete_id", "date", name="uq_readiness_athlete_date"),
        comment="Daily readiness (at most one per athlete and day)",
    )
    op.create_index(op.f("ix_readiness_assessments_date"), "readiness_assessments", ["date"], unique=False)

    op.create_table(
        "planned_workouts",
        _id(),
        _athlete_id(),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("workout_type", sa.String(length=20), nullable=False, server_default="running"),
        sa.Column("intensity", sa.String(length=20), nullable=False, server_default="easy"),
        sa.Column("duration_minutes", sa.Float(), nullable=True),
        sa.Column("distance_km", sa.Float(), nullable=True),
        sa.Column("target_hr", sa.Integer(), nullable=True),
        sa.Column("planned_load", sa.Float(), nullable=True, comment="Planned TSS"),
        sa.Column("modality", sa.String(length=30), nullable=True, comment="Cross-training modality once converted"),
        sa.Column("is_double_threshold", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "is_specific_block",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="Race-specific block session",
        ),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="planned"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        comment="Scheduled workouts in athlete plans",
    )
    op.create_index(op.f("ix_planned_workouts_scheduled_date"), "planned_workouts", ["scheduled_date"], unique=False)
    op.create_index(op.f("ix_planned_workouts_status"), "planned_workouts", ["status"], unique=False)

    op.create_table(
        "workout_modifications",
        _id(),
        _athlete_id(),
        sa.Column("workout_id", sa.String(length=36), nullable=False),
        sa.Column("trigger_date", sa.Date(), nullable=False, comment="Check-in date that triggered the change"),
        sa.Column("checkin_id", sa.String(length=36), nullable=True),
        sa.Column("injury_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=40), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("original_snapshot", sa.JSON(), nullable=False),
        sa.Column("modified_snapshot", sa.JSON(), nullable=False),
        sa.Column("auto_generated", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reviewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("review_decision", sa.String(length=20), nullable=True),
        sa.Column("reviewed_by", sa.String(length=36), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reverted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("coach_override_action", sa.String(length=40), nullable=True),
        sa.Column("coach_notes", sa.Text(), nullable=True),
        sa.Column("superseded_by_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["workout_id"], ["planned_workouts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        comment="Automatic workout modifications and coach reviews",
    )
    op.create_index(op.f("ix_workout_modifications_workout_id"), "workout_modifications", ["workout_id"], unique=False)
    op.create_index(
        op.f("ix_workout_modifications_trigger_date"), "workout_modifications", ["trigger_date"], unique=False
    )
    op.create_index(op.f("ix_workout_modifications_reviewed"), "workout_modifications", ["reviewed"], unique=False)

    op.create_table(
        "injury_assessments",
        _id(),
        _athlete_id(),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("severity", sa.String(length=20), nullable=False),
        sa.Column("phase", sa.String(length=20), nullable=False),
        sa.Column("is_illness", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("injury_type", sa.String(length=50), nullable=True),
        sa.Column("body_part", sa.String(length=50), nullable=True),
        sa.Column("illness_type", sa.String(length=50), nullable=True),
        sa.Column("pain_level", sa.Integer(), nullable=True),
        sa.Column("gait_affected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("immediate_action", sa.String(length=30), nullable=False),
        sa.Column("estimated_return_weeks", sa.Integer(), nullable=True),
        sa.Column("return_to_run", sa.JSON(), nullable=True, comment="Starting return-to-running phase"),
        sa.Column("program_adjustment", sa.JSON(), nullable=True, comment="Pause, modify or maintain the program"),
        sa.Column("detected_on", sa.Date(), nullable=False),
        sa.Column("last_checkin_date", sa.Date(), nullable=False),
        sa.Column("source_checkin_id", sa.String(length=36), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        comment="Injury and illness episodes",
    )
    op.create_index(op.f("ix_injury_assessments_status"), "injury_assessments", ["status"], unique=False)
    op.create_index(op.f("ix_injury_assessments_injury_type"), "injury_assessments", ["injury_type"], unique=False)

    op.create_table(
        "cross_training_substitutions",
        _id(),
        _athlete_id(),
        sa.Column("workout_id", sa.String(length=36), nullable=False),
        sa.Column("modification_id", sa.String(length=36), nullable=True),
        sa.Column("injury_id", sa.String(length=36), nullable=True),
        sa.Column("modality", sa.String(length=30), nullable=False),
        sa.Column(
            "is_fallback",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="Generic continuous effort used because the modality was unknown",
        ),
        sa.Column("original_duration_minutes", sa.Float(), nullable=True),
        sa.Column("duration_minutes", sa.Float(), nullable=True),
        sa.Column("distance_km", sa.Float(), nullable=True),
        sa.Column("target_hr", sa.Integer(), nullable=True),
        sa.Column("training_stress", sa.Float(), nullable=True),
        sa.Column("fitness_retention", sa.Float(), nullable=False),
        sa.Column("instructions", sa.String(length=500), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("athlete_id", "workout_id", "date", name="uq_substitution_workout_date"),
        comment="Cross-training replacements for planned runs",
    )
    op.create_index(
        op.f("ix_cross_training_substitutions_workout_id"), "cross_training_substitutions", ["workout_id"], unique=False
    )
    op.create_index(op.f("ix_cross_training_substitutions_date"), "cross_training_substitutions", ["date"], unique=False)

    op.create_table(
        "notifications",
        _id(),
        _athlete_id(),
        sa.Column("dedupe_key", sa.String(length=255), nullable=False),
        sa.Column("recipient_id", sa.String(length=36), nullable=True, comment="Coach ID"),
        sa.Column("kind", sa.String(length=30), nullable=False),
        sa.Column("urgency", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dedupe_key"),
        comment="Coach notifications",
    )
    op.create_index(op.f("ix_notifications_status"), "notifications", ["status"], unique=False)

    op.create_table(
        "threshold_tests",
        _id(),
        _athlete_id(),
        sa.Column("test_date", sa.Date(), nullable=False),
        sa.Column("test_type", sa.String(length=20), nullable=True),
        sa.Column("stages", sa.JSON(), nullable=False, comment="Ordered stages: speed (km/h), heart_rate, lactate"),
        sa.Column("max_hr", sa.Integer(), nullable=True),
        sa.Column("method", sa.String(length=20), nullable=True),
        sa.Column("manual_threshold_stage", sa.Integer(), nullable=True),
        sa.Column("threshold_speed", sa.Float(), nullable=True, comment="km/h"),
        sa.Column("threshold_hr", sa.Float(), nullable=True),
        sa.Column("threshold_lactate", sa.Float(), nullable=True),
        sa.Column("r_squared", sa.Float(), nullable=True),
        sa.Column("confidence", sa.String(length=20), nullable=True),
        sa.Column("reliable", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("warnings", sa.JSON(), nullable=False),
        sa.Column("analyzed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("superseded_by_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        comment="Threshold tests and derived results",
    )
    op.create_index(op.f("ix_threshold_tests_test_date"), "threshold_tests", ["test_date"], unique=False)

    op.create_table(
        "race_results",
        _id(),
        _athlete_id(),
        sa.Column("race_date", sa.Date(), nullable=False),
        sa.Column("distance_m", sa.Float(), nullable=False),
        sa.Column("time_seconds", sa.Float(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        comment="Race performances",
    )
    op.create_index(op.f("ix_race_results_race_date"), "race_results", ["race_date"], unique=False)

    op.create_table(
        "strength_set_logs",
        _id(),
        _athlete_id(),
        sa.Column("exercise", sa.String(length=100), nullable=False),
        sa.Column("sets", sa.Integer(), nullable=False),
        sa.Column("reps", sa.Integer(), nullable=False),
        sa.Column("load_kg", sa.Float(), nullable=False),
        sa.Column("rpe", sa.Float(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        comment="Strength exercise history for progression analysis",
    )
    op.create_index(op.f("ix_strength_set_logs_exercise"), "strength_set_logs", ["exercise"], unique=False)
    op.create_index(op.f("ix_strength_set_logs_date"), "strength_set_logs", ["date"], unique=False)

    for table in ATHLETE_SCOPED_TABLES:
        op.create_index(op.f(f"ix_{table}_athlete_id"), table, ["athlete_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    for table in reversed(ATHLETE_SCOPED_TABLES):
        op.drop_table(table)
    op.drop_table("athletes")
