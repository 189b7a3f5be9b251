"""User profile counters: lazy creation, per-visit scoring updates, preferences."""
from datetime import datetime, timezone
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.models.user import UserProfile
from masjid_go.services import scoring_service
from masjid_go.services.timezone_service import local_date

logger = logging.getLogger(__name__)


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> UserProfile | None:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_profile(db: AsyncSession, user_id: uuid.UUID) -> UserProfile:
    """Fetch the user's profile, creating it on first use.

    The unique constraint on user_id decides concurrent creations; the loser
    re-reads the winner's row.
    """
    profile = await get_profile(db, user_id)
    if profile:
        return profile

    profile = UserProfile(
        user_id=user_id,
        total_points=0,
        monthly_points=0,
        unique_pois_visited=0,
        total_check_ins=0,
        achievement_count=0,
        current_streak=0,
        longest_streak=0,
        show_real_name_in_leaderboard=False,
    )
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        profile = await get_profile(db, user_id)
        if profile is None:
            raise
        return profile

    logger.info("Created user profile %s for user %s", profile.id, user_id)
    return profile


async def apply_visit_to_profile(
    db: AsyncSession,
    profile_id: uuid.UUID,
    *,
    points: int,
    is_new_poi: bool,
    visited_at: datetime | None = None,
) -> UserProfile:
    """Credit a closed visit to the profile counters and streak.

    The profile row is locked for the read-modify-write. The caller commits.
    """
    visited_at = visited_at or datetime.now(timezone.utc)
    stmt = (
        select(UserProfile)
        .where(UserProfile.id == profile_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    profile = (await db.execute(stmt)).scalar_one()

    last_day = local_date(profile.last_visit_date) if profile.last_visit_date else None
    streak = scoring_service.next_streak(
        profile.current_streak,
        profile.longest_streak,
        last_day,
        local_date(visited_at),
    )

    profile.total_points += points
    profile.monthly_points += points
    profile.total_check_ins += 1
    if is_new_poi:
        profile.unique_pois_visited += 1
    profile.current_streak = streak.current_streak
    profile.longest_streak = streak.longest_streak
    profile.last_visit_date = visited_at
    await db.flush()
    return profile


async def update_leaderboard_preferences(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    changes: dict,
) -> UserProfile | None:
    profile = await get_profile(db, user_id)
    if profile is None:
        return None

    if "show_real_name_in_leaderboard" in changes and changes["show_real_name_in_leaderboard"] is not None:
        profile.show_real_name_in_leaderboard = changes["show_real_name_in_leaderboard"]
    if "leaderboard_alias" in changes:
        alias = (changes["leaderboard_alias"] or "").strip()
        profile.leaderboard_alias = alias or None

    await db.commit()
    return profile
