"""Check-in / check-out lifecycle of a visit.

A user has at most one OPEN visit. Business refusals come back as a
`CheckInResult` with a reason code; storage errors propagate.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
import logging
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.config import settings
from masjid_go.core.geo import haversine_distance_m
from masjid_go.models.enums import VisitStatus
from masjid_go.models.visit import DailyPoiStats, Visit
from masjid_go.services import achievement_service, profile_service, scoring_service
from masjid_go.services.directory_service import DirectoryStore
from masjid_go.services.poi_service import admission_radius_m
from masjid_go.services.prayer_time_service import detect_prayer_time
from masjid_go.services.timezone_service import ensure_utc, local_date

logger = logging.getLogger(__name__)


class CheckInFailureReason(str, Enum):
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    POI_NOT_FOUND = "POI_NOT_FOUND"
    TOO_FAR = "TOO_FAR"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    NO_ACTIVE_VISIT = "NO_ACTIVE_VISIT"


@dataclass
class CheckInResult:
    success: bool
    message: str
    visit: Visit | None = None
    reason: CheckInFailureReason | None = None
    points_earned: int | None = None
    distance_m: int | None = None
    checkin_radius_m: float | None = None

    @classmethod
    def failure(cls, reason: CheckInFailureReason, message: str, **extra) -> "CheckInResult":
        return cls(success=False, message=message, reason=reason, **extra)


def _format_meters(value: float) -> str:
    return f"{value:g}"


async def get_active_visit(db: AsyncSession, profile_id: uuid.UUID) -> Visit | None:
    stmt = select(Visit).where(
        Visit.user_profile_id == profile_id,
        Visit.status == VisitStatus.OPEN,
    ).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_active_visit_for_user(db: AsyncSession, user_id: uuid.UUID) -> Visit | None:
    profile = await profile_service.get_profile(db, user_id)
    if profile is None:
        return None
    return await get_active_visit(db, profile.id)


async def get_visit_history(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    limit: int = 20,
    offset: int = 0,
) -> list[Visit]:
    profile = await profile_service.get_profile(db, user_id)
    if profile is None:
        return []
    stmt = (
        select(Visit)
        .where(Visit.user_profile_id == profile.id)
        .order_by(Visit.checked_in_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list((await db.execute(stmt)).scalars().all())


async def _count_previous_visits(db: AsyncSession, profile_id: uuid.UUID, poi_id: str) -> int:
    stmt = select(func.count()).select_from(Visit).where(
        Visit.user_profile_id == profile_id,
        Visit.poi_id == poi_id,
    )
    return (await db.execute(stmt)).scalar() or 0


async def perform_checkin(
    db: AsyncSession,
    directory: DirectoryStore,
    *,
    user_id: uuid.UUID,
    poi_id: str,
    lat: float,
    lng: float,
    now: datetime | None = None,
) -> CheckInResult:
    now = now or datetime.now(timezone.utc)
    profile = await profile_service.get_or_create_profile(db, user_id)

    if await get_active_visit(db, profile.id):
        return CheckInResult.failure(
            CheckInFailureReason.ALREADY_CHECKED_IN,
            "You already have an active check-in. Please checkout first.",
        )

    poi = await directory.get_by_id(poi_id)
    if poi is None or not poi.is_active:
        return CheckInResult.failure(CheckInFailureReason.POI_NOT_FOUND, "Masjid not found")

    radius = admission_radius_m(poi)
    distance = haversine_distance_m(lat, lng, poi.lat, poi.lng)
    if distance > radius:
        return CheckInResult.failure(
            CheckInFailureReason.TOO_FAR,
            f"Too far from masjid. You are {round(distance)}m away, must be within {_format_meters(radius)}m",
            distance_m=round(distance),
            checkin_radius_m=radius,
        )

    is_first_visit = await _count_previous_visits(db, profile.id, poi.id) == 0
    is_prayer_time, prayer_name = detect_prayer_time(poi, now)
    base_points, bonus_points = scoring_service.checkin_points(is_first_visit, is_prayer_time)

    visit = Visit(
        user_profile_id=profile.id,
        poi_id=poi.id,
        poi_name=poi.name,
        checked_in_at=now,
        check_in_lat=lat,
        check_in_lng=lng,
        status=VisitStatus.OPEN,
        base_points=base_points,
        bonus_points=bonus_points,
        points_awarded=0,  # finalized on checkout
        is_prayer_time=is_prayer_time,
        prayer_name=prayer_name,
        is_first_visit=is_first_visit,
    )
    db.add(visit)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent check-in by the same user won the open-visit slot.
        await db.rollback()
        return CheckInResult.failure(
            CheckInFailureReason.ALREADY_CHECKED_IN,
            "You already have an active check-in. Please checkout first.",
        )

    logger.info(
        "Check-in %s: profile=%s poi=%s distance_m=%.1f first_visit=%s",
        visit.id, profile.id, poi.id, distance, is_first_visit,
    )
    return CheckInResult(
        success=True,
        message="Check-in successful",
        visit=visit,
        distance_m=round(distance),
        checkin_radius_m=radius,
    )


async def perform_checkout(
    db: AsyncSession,
    directory: DirectoryStore,
    *,
    user_id: uuid.UUID,
    lat: float,
    lng: float,
    poi_id: str | None = None,
    now: datetime | None = None,
) -> CheckInResult:
    """Close the user's open visit and credit its points.

    The closed visit is committed before profile counters, achievements and
    daily stats are updated, and stays authoritative if those later steps fail.
    """
    now = now or datetime.now(timezone.utc)
    profile = await profile_service.get_profile(db, user_id)
    if profile is None:
        return CheckInResult.failure(CheckInFailureReason.PROFILE_NOT_FOUND, "User profile not found")

    visit = await get_active_visit(db, profile.id)
    if visit is None or (poi_id is not None and visit.poi_id != poi_id):
        return CheckInResult.failure(CheckInFailureReason.NO_ACTIVE_VISIT, "No active check-in found")

    # A directory entry that disappeared must not leave the user stuck in an open visit.
    poi = await directory.get_by_id(visit.poi_id)
    radius = admission_radius_m(poi)
    if poi is not None:
        distance = haversine_distance_m(lat, lng, poi.lat, poi.lng)
    else:
        logger.warning("Masjid %s missing at checkout of visit %s; using check-in position", visit.poi_id, visit.id)
        distance = haversine_distance_m(lat, lng, visit.check_in_lat, visit.check_in_lng)
    in_proximity = distance <= radius

    score = scoring_service.checkout_score(in_proximity, visit.bonus_points)
    duration_minutes = max(int((now - ensure_utc(visit.checked_in_at)).total_seconds() // 60), 0)

    # Only the request that flips the row out of OPEN credits the visit.
    closed = await db.execute(
        update(Visit)
        .where(Visit.id == visit.id, Visit.status == VisitStatus.OPEN)
        .values(
            checked_out_at=now,
            check_out_lat=lat,
            check_out_lng=lng,
            status=score.status,
            base_points=score.base_points,
            points_awarded=score.points_awarded,
            checkout_in_proximity=in_proximity,
            duration_minutes=duration_minutes,
        )
    )
    if closed.rowcount == 0:
        logger.info("Visit %s was already closed by a concurrent checkout", visit.id)
        await db.rollback()
        return CheckInResult.failure(CheckInFailureReason.NO_ACTIVE_VISIT, "No active check-in found")
    await db.commit()

    logger.info(
        "Checkout %s: profile=%s poi=%s status=%s points=%s duration_min=%s",
        visit.id, profile.id, visit.poi_id, score.status.value, score.points_awarded, duration_minutes,
    )

    profile = await profile_service.apply_visit_to_profile(
        db,
        profile.id,
        points=score.points_awarded,
        is_new_poi=visit.is_first_visit,
        visited_at=now,
    )
    await db.commit()

    await achievement_service.evaluate_achievements(db, profile, now)
    await db.commit()

    await upsert_daily_poi_stats(db, visit, now)
    await db.commit()

    return CheckInResult(
        success=True,
        message=(
            "Checkout successful! Full points earned."
            if in_proximity
            else "Checkout completed outside proximity. Partial points earned."
        ),
        visit=visit,
        points_earned=score.points_awarded,
        distance_m=round(distance),
        checkin_radius_m=radius,
    )


async def upsert_daily_poi_stats(db: AsyncSession, visit: Visit, closed_at: datetime) -> DailyPoiStats:
    """Add a closed visit to its point of interest's stats for the local calendar day."""
    stat_date = local_date(closed_at)
    poi_id = visit.poi_id
    points = visit.points_awarded

    # First closed visit of this profile at this poi today counts as a unique visitor.
    same_day_visits = (
        await db.execute(
            select(Visit.checked_out_at).where(
                Visit.user_profile_id == visit.user_profile_id,
                Visit.poi_id == poi_id,
                Visit.status != VisitStatus.OPEN,
                Visit.id != visit.id,
                Visit.checked_out_at.is_not(None),
            )
        )
    ).scalars().all()
    is_unique_visitor = not any(local_date(closed) == stat_date for closed in same_day_visits)

    stats = await _find_daily_stats(db, poi_id, stat_date)
    if stats is None:
        stats = DailyPoiStats(
            poi_id=poi_id,
            stat_date=stat_date,
            visitor_count=1,
            unique_visitor_count=1,
            points_awarded=points,
        )
        db.add(stats)
        try:
            await db.flush()
            return stats
        except IntegrityError:
            # Another checkout created today's row first; add to it instead.
            await db.rollback()
            await db.refresh(visit)
            logger.info("Daily stats row for %s on %s created concurrently; incrementing", poi_id, stat_date)
            stats = await _find_daily_stats(db, poi_id, stat_date)
            if stats is None:
                raise

    stats.visitor_count += 1
    if is_unique_visitor:
        stats.unique_visitor_count += 1
    stats.points_awarded += points
    await db.flush()
    return stats


async def _find_daily_stats(db: AsyncSession, poi_id: str, stat_date: date) -> DailyPoiStats | None:
    stmt = (
        select(DailyPoiStats)
        .where(DailyPoiStats.poi_id == poi_id, DailyPoiStats.stat_date == stat_date)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_poi_stats(db: AsyncSession, poi_id: str, now: datetime | None = None) -> dict:
    today = local_date(now or datetime.now(timezone.utc))
    today_stats = (
        await db.execute(
            select(DailyPoiStats).where(
                DailyPoiStats.poi_id == poi_id,
                DailyPoiStats.stat_date == today,
            )
        )
    ).scalar_one_or_none()

    totals = (
        await db.execute(
            select(
                func.coalesce(func.sum(DailyPoiStats.visitor_count), 0),
                func.coalesce(func.sum(DailyPoiStats.points_awarded), 0),
            ).where(DailyPoiStats.poi_id == poi_id)
        )
    ).one()

    return {
        "today": {
            "date": today_stats.stat_date.isoformat(),
            "visitor_count": today_stats.visitor_count,
            "unique_visitor_count": today_stats.unique_visitor_count,
            "points_awarded": today_stats.points_awarded,
        } if today_stats else None,
        "all_time": {
            "total_visitors": int(totals[0] or 0),
            "total_points": int(totals[1] or 0),
        },
    }
