import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, ForeignKey, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from masjid_go.database import Base

class User(Base):
    """Account record owned by the auth subsystem; read-only here."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class UserProfile(Base):
    """Gamification counters for a user. Created lazily on the first check-in attempt."""
    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Points & stats
    total_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    monthly_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    unique_pois_visited: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_check_ins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Cached ranks, recomputed by the maintenance job
    global_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    monthly_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    achievement_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Leaderboard display
    show_real_name_in_leaderboard: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    leaderboard_alias: Mapped[str | None] = mapped_column(String(40), nullable=True)

    # Streak tracking
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_visit_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User")
