import uuid
from datetime import date, datetime, timezone
from sqlalchemy import String, ForeignKey, DateTime, Date, Integer, Float, Boolean, Enum as SAEnum, Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from masjid_go.database import Base
from masjid_go.models.enums import VisitStatus


class Visit(Base):
    """One check-in/check-out cycle of a user at a point of interest."""
    __tablename__ = "visits"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_profile_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False)
    poi_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    poi_name: Mapped[str] = mapped_column(String, nullable=False)  # kept for history if the directory entry changes

    checked_in_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)
    check_in_lat: Mapped[float] = mapped_column(Float, nullable=False)
    check_in_lng: Mapped[float] = mapped_column(Float, nullable=False)

    checked_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    status: Mapped[VisitStatus] = mapped_column(SAEnum(VisitStatus, native_enum=False), default=VisitStatus.OPEN, nullable=False)

    # Points breakdown
    base_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bonus_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    points_awarded: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    checkout_in_proximity: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_prayer_time: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    prayer_name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_first_visit: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user_profile = relationship("UserProfile")

    __table_args__ = (
        Index("ix_visits_profile_status", "user_profile_id", "status"),
        Index("ix_visits_profile_poi", "user_profile_id", "poi_id"),
        # At most one open visit per profile.
        Index(
            "uq_visits_one_open_per_profile",
            "user_profile_id",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
            sqlite_where=text("status = 'OPEN'"),
        ),
    )


class DailyPoiStats(Base):
    """Per point of interest, per local calendar day visit aggregates."""
    __tablename__ = "daily_poi_stats"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    poi_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    stat_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    visitor_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unique_visitor_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    points_awarded: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("poi_id", "stat_date", name="uq_daily_poi_stats_poi_date"),
    )
