import uuid
from datetime import datetime, timezone
from sqlalchemy import String, ForeignKey, DateTime, Integer, Float, Boolean, Enum as SAEnum, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from masjid_go.database import Base
from masjid_go.models.enums import AchievementCategory, BadgeTier


class AchievementDefinition(Base):
    """Catalog entry for an achievement. Static reference data."""
    __tablename__ = "achievement_definitions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)  # e.g. EXPLORER_10
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[AchievementCategory] = mapped_column(SAEnum(AchievementCategory, native_enum=False), nullable=False, index=True)
    badge_tier: Mapped[BadgeTier] = mapped_column(SAEnum(BadgeTier, native_enum=False), nullable=False)
    required_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bonus_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    icon_url: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class AchievementProgress(Base):
    """Progress of one user towards one achievement."""
    __tablename__ = "achievement_progress"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_profile_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    achievement_definition_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("achievement_definitions.id", ondelete="CASCADE"), nullable=False)
    current_progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    required_progress: Mapped[int] = mapped_column(Integer, nullable=False)
    progress_percentage: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    is_unlocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    unlocked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    definition = relationship("AchievementDefinition")

    __table_args__ = (
        UniqueConstraint("user_profile_id", "achievement_definition_id", name="uq_achievement_progress_profile_definition"),
    )


class MonthlyLeaderboardSnapshot(Base):
    """Frozen monthly leaderboard row, written before monthly points are reset."""
    __tablename__ = "monthly_leaderboard_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    user_profile_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    pois_visited: Mapped[int] = mapped_column(Integer, nullable=False)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("month", "user_profile_id", name="uq_monthly_snapshot_month_profile"),
        Index("ix_monthly_snapshot_month_rank", "month", "rank"),
    )
