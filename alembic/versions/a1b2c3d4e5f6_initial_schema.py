"""Initial schema

Creates the five ride-coach tables:
- ride_activities (rides and their aggregates)
- activity_streams (1 Hz watts / heart-rate samples as JSON)
- power_curve_points (all-time best mean power per window)
- training_params (FTP models, HR thresholds, lookback window)
- athlete_profiles (weight, weekly hours target)

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-17

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    """Columns from TimestampMixin."""
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "ride_activities",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("activity_id", sa.BigInteger(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        # Duration (seconds)
        sa.Column("moving_time_sec", sa.Integer(), nullable=True),
        sa.Column("elapsed_time_sec", sa.Integer(), nullable=True),
        # Distance and climbing
        sa.Column("distance_m", sa.Float(), nullable=True),
        sa.Column("elevation_gain_m", sa.Float(), nullable=True),
        # Device aggregates
        sa.Column("avg_power", sa.Float(), nullable=True),
        sa.Column("max_power", sa.Float(), nullable=True),
        sa.Column("avg_hr", sa.Float(), nullable=True),
        sa.Column("max_hr", sa.Float(), nullable=True),
        sa.Column("has_power", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "activity_id", name="uq_ride_activities_owner_activity"),
        comment="Rides with duration, distance, power and heart-rate aggregates",
    )
    op.create_index(
        op.f("ix_ride_activities_owner_id"), "ride_activities", ["owner_id"], unique=False
    )
    op.create_index(
        op.f("ix_ride_activities_start_time"), "ride_activities", ["start_time"], unique=False
    )
    op.create_index(op.f("ix_ride_activities_max_hr"), "ride_activities", ["max_hr"], unique=False)

    op.create_table(
        "activity_streams",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("activity_id", sa.BigInteger(), nullable=False),
        sa.Column("channel", sa.String(length=20), nullable=False),
        sa.Column("sample_count", sa.Integer(), nullable=False),
        sa.Column("samples_json", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "owner_id", "activity_id", "channel", name="uq_activity_streams_owner_activity_channel"
        ),
        comment="1 Hz watts and heart-rate series per activity",
    )
    op.create_index(
        op.f("ix_activity_streams_owner_id"), "activity_streams", ["owner_id"], unique=False
    )
    op.create_index(
        op.f("ix_activity_streams_activity_id"), "activity_streams", ["activity_id"], unique=False
    )

    op.create_table(
        "power_curve_points",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("window_sec", sa.Integer(), nullable=False),
        sa.Column("best_power", sa.Float(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "window_sec", name="uq_power_curve_owner_window"),
        comment="All-time best mean power per window duration",
    )
    op.create_index(
        op.f("ix_power_curve_points_owner_id"), "power_curve_points", ["owner_id"], unique=False
    )

    op.create_table(
        "training_params",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        # FTP models (watts)
        sa.Column("ftp20", sa.Integer(), nullable=True),
        sa.Column("ftp_from_3min", sa.Integer(), nullable=True),
        sa.Column("ftp_from_cp", sa.Integer(), nullable=True),
        sa.Column("ftp_from_strava", sa.Integer(), nullable=True),
        sa.Column("ftp_recommended", sa.Integer(), nullable=True),
        # Heart rate (bpm)
        sa.Column("hr_max", sa.Integer(), nullable=True),
        sa.Column("hr_threshold", sa.Integer(), nullable=True),
        sa.Column("metrics_window_days", sa.Float(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", name="uq_training_params_owner"),
        comment="Per-athlete FTP and heart-rate thresholds",
    )
    op.create_index(
        op.f("ix_training_params_owner_id"), "training_params", ["owner_id"], unique=False
    )

    op.create_table(
        "athlete_profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("weekly_hours_target", sa.Float(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", name="uq_athlete_profiles_owner"),
        comment="Athlete weight and weekly training target",
    )
    op.create_index(
        op.f("ix_athlete_profiles_owner_id"), "athlete_profiles", ["owner_id"], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "athlete_profiles",
        "training_params",
        "power_curve_points",
        "activity_streams",
        "ride_activities",
    ):
        op.drop_table(table)
