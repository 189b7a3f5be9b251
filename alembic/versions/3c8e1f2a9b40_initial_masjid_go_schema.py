"""initial masjid go schema

Revision ID: 3c8e1f2a9b40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c8e1f2a9b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

VISIT_STATUS = sa.Enum("OPEN", "COMPLETED", "INCOMPLETE", name="visitstatus", native_enum=False)
ACHIEVEMENT_CATEGORY = sa.Enum(
    "EXPLORER", "PRAYER_WARRIOR", "STREAK", "GEOGRAPHIC", "SPECIAL",
    name="achievementcategory", native_enum=False,
)
BADGE_TIER = sa.Enum("BRONZE", "SILVER", "GOLD", "PLATINUM", "DIAMOND", name="badgetier", native_enum=False)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("monthly_points", sa.Integer(), nullable=False),
        sa.Column("unique_pois_visited", sa.Integer(), nullable=False),
        sa.Column("total_check_ins", sa.Integer(), nullable=False),
        sa.Column("global_rank", sa.Integer(), nullable=True),
        sa.Column("monthly_rank", sa.Integer(), nullable=True),
        sa.Column("achievement_count", sa.Integer(), nullable=False),
        sa.Column("show_real_name_in_leaderboard", sa.Boolean(), nullable=False),
        sa.Column("leaderboard_alias", sa.String(length=40), nullable=True),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        sa.Column("longest_streak", sa.Integer(), nullable=False),
        sa.Column("last_visit_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_user_profiles_total_points", "user_profiles", ["total_points"])
    op.create_index("ix_user_profiles_monthly_points", "user_profiles", ["monthly_points"])

    op.create_table(
        "points_of_interest",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("name_normalized", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("geo_cell", sa.String(length=12), nullable=False),
        sa.Column("state_code", sa.String(length=16), nullable=False),
        sa.Column("state_name", sa.String(), nullable=True),
        sa.Column("district_code", sa.String(length=16), nullable=False),
        sa.Column("district_name", sa.String(), nullable=True),
        sa.Column("region_key", sa.String(length=96), nullable=False),
        sa.Column("checkin_radius_m", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_points_of_interest_name_normalized", "points_of_interest", ["name_normalized"])
    op.create_index("ix_points_of_interest_geo_cell", "points_of_interest", ["geo_cell"])
    op.create_index("ix_points_of_interest_state_region", "points_of_interest", ["state_code", "region_key"])

    op.create_table(
        "visits",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_profile_id", sa.Uuid(), nullable=False),
        sa.Column("poi_id", sa.String(length=64), nullable=False),
        sa.Column("poi_name", sa.String(), nullable=False),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_in_lat", sa.Float(), nullable=False),
        sa.Column("check_in_lng", sa.Float(), nullable=False),
        sa.Column("checked_out_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_lat", sa.Float(), nullable=True),
        sa.Column("check_out_lng", sa.Float(), nullable=True),
        sa.Column("status", VISIT_STATUS, nullable=False),
        sa.Column("base_points", sa.Integer(), nullable=False),
        sa.Column("bonus_points", sa.Integer(), nullable=False),
        sa.Column("points_awarded", sa.Integer(), nullable=False),
        sa.Column("checkout_in_proximity", sa.Boolean(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("is_prayer_time", sa.Boolean(), nullable=False),
        sa.Column("prayer_name", sa.String(), nullable=True),
        sa.Column("is_first_visit", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_profile_id"], ["user_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_visits_poi_id", "visits", ["poi_id"])
    op.create_index("ix_visits_checked_in_at", "visits", ["checked_in_at"])
    op.create_index("ix_visits_profile_status", "visits", ["user_profile_id", "status"])
    op.create_index("ix_visits_profile_poi", "visits", ["user_profile_id", "poi_id"])
    op.create_index(
        "uq_visits_one_open_per_profile",
        "visits",
        ["user_profile_id"],
        unique=True,
        postgresql_where=sa.text("status = 'OPEN'"),
        sqlite_where=sa.text("status = 'OPEN'"),
    )

    op.create_table(
        "daily_poi_stats",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("poi_id", sa.String(length=64), nullable=False),
        sa.Column("stat_date", sa.Date(), nullable=False),
        sa.Column("visitor_count", sa.Integer(), nullable=False),
        sa.Column("unique_visitor_count", sa.Integer(), nullable=False),
        sa.Column("points_awarded", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("poi_id", "stat_date", name="uq_daily_poi_stats_poi_date"),
    )
    op.create_index("ix_daily_poi_stats_poi_id", "daily_poi_stats", ["poi_id"])
    op.create_index("ix_daily_poi_stats_stat_date", "daily_poi_stats", ["stat_date"])

    op.create_table(
        "achievement_definitions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("category", ACHIEVEMENT_CATEGORY, nullable=False),
        sa.Column("badge_tier", BADGE_TIER, nullable=False),
        sa.Column("required_count", sa.Integer(), nullable=True),
        sa.Column("bonus_points", sa.Integer(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("icon_url", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_achievement_definitions_category", "achievement_definitions", ["category"])
    op.create_index("ix_achievement_definitions_sort_order", "achievement_definitions", ["sort_order"])

    op.create_table(
        "achievement_progress",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_profile_id", sa.Uuid(), nullable=False),
        sa.Column("achievement_definition_id", sa.Uuid(), nullable=False),
        sa.Column("current_progress", sa.Integer(), nullable=False),
        sa.Column("required_progress", sa.Integer(), nullable=False),
        sa.Column("progress_percentage", sa.Float(), nullable=False),
        sa.Column("is_unlocked", sa.Boolean(), nullable=False),
        sa.Column("unlocked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_profile_id"], ["user_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["achievement_definition_id"], ["achievement_definitions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_profile_id",
            "achievement_definition_id",
            name="uq_achievement_progress_profile_definition",
        ),
    )
    op.create_index("ix_achievement_progress_user_profile_id", "achievement_progress", ["user_profile_id"])

    op.create_table(
        "monthly_leaderboard_snapshots",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("user_profile_id", sa.Uuid(), nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("pois_visited", sa.Integer(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_profile_id"], ["user_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("month", "user_profile_id", name="uq_monthly_snapshot_month_profile"),
    )
    op.create_index("ix_monthly_snapshot_month_rank", "monthly_leaderboard_snapshots", ["month", "rank"])


def downgrade() -> None:
    op.drop_table("monthly_leaderboard_snapshots")
    op.drop_table("achievement_progress")
    op.drop_table("achievement_definitions")
    op.drop_table("daily_poi_stats")
    op.drop_index("uq_visits_one_open_per_profile", table_name="visits")
    op.drop_table("visits")
    op.drop_table("points_of_interest")
    op.drop_table("user_profiles")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
