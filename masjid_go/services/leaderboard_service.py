"""Leaderboards, on-demand ranks and the rank/snapshot/reset batch passes."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import uuid

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.models.gamification import MonthlyLeaderboardSnapshot
from masjid_go.models.user import User, UserProfile
from masjid_go.services.timezone_service import month_label

logger = logging.getLogger(__name__)

MASK_CHAR = "*"


@dataclass
class LeaderboardEntry:
    rank: int
    display_name: str
    points: int
    pois_visited: int
    is_current_user: bool | None = None


def censor_name(name: str) -> str:
    """Keep the first and last character and mask the rest ("Ahmad" -> "A***d")."""
    if not name:
        return ""
    if len(name) <= 2:
        return name[0] + MASK_CHAR * (len(name) - 1)
    return name[0] + MASK_CHAR * (len(name) - 2) + name[-1]


def display_name(profile: UserProfile, user: User) -> str:
    if profile.leaderboard_alias:
        return profile.leaderboard_alias
    name = (user.full_name or "").strip() or user.email.split("@")[0]
    if profile.show_real_name_in_leaderboard:
        return name
    return censor_name(name)


def _entries(rows, *, points_attr: str, start_rank: int, current_user_id: uuid.UUID | None) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            rank=start_rank + index,
            display_name=display_name(profile, user),
            points=getattr(profile, points_attr),
            pois_visited=profile.unique_pois_visited,
            is_current_user=(profile.user_id == current_user_id) if current_user_id else None,
        )
        for index, (profile, user) in enumerate(rows)
    ]


async def get_monthly_leaderboard(
    db: AsyncSession,
    limit: int = 8,
    current_user_id: uuid.UUID | None = None,
) -> list[LeaderboardEntry]:
    stmt = (
        select(UserProfile, User)
        .join(User, UserProfile.user_id == User.id)
        .order_by(UserProfile.monthly_points.desc(), UserProfile.created_at)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()
    return _entries(rows, points_attr="monthly_points", start_rank=1, current_user_id=current_user_id)


async def get_global_leaderboard(
    db: AsyncSession,
    limit: int = 20,
    offset: int = 0,
    current_user_id: uuid.UUID | None = None,
) -> tuple[list[LeaderboardEntry], int]:
    stmt = (
        select(UserProfile, User)
        .join(User, UserProfile.user_id == User.id)
        .order_by(UserProfile.total_points.desc(), UserProfile.created_at)
        .limit(limit)
        .offset(offset)
    )
    rows = (await db.execute(stmt)).all()
    total = (await db.execute(select(func.count()).select_from(UserProfile))).scalar() or 0
    entries = _entries(rows, points_attr="total_points", start_rank=offset + 1, current_user_id=current_user_id)
    return entries, total


async def get_user_rank(db: AsyncSession, user_id: uuid.UUID) -> dict:
    """Live rank: one more than the number of profiles with strictly more points."""
    profile = (
        await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    ).scalar_one_or_none()
    if profile is None:
        return {"global_rank": None, "monthly_rank": None}

    global_ahead = (
        await db.execute(
            select(func.count()).select_from(UserProfile).where(UserProfile.total_points > profile.total_points)
        )
    ).scalar() or 0
    monthly_ahead = (
        await db.execute(
            select(func.count()).select_from(UserProfile).where(UserProfile.monthly_points > profile.monthly_points)
        )
    ).scalar() or 0
    return {"global_rank": global_ahead + 1, "monthly_rank": monthly_ahead + 1}


async def recalculate_ranks(db: AsyncSession) -> int:
    """Persist positional global and monthly ranks for every profile."""
    global_order = (
        await db.execute(
            select(UserProfile.id).order_by(UserProfile.total_points.desc(), UserProfile.created_at)
        )
    ).scalars().all()
    for position, profile_id in enumerate(global_order, start=1):
        await db.execute(update(UserProfile).where(UserProfile.id == profile_id).values(global_rank=position))

    monthly_order = (
        await db.execute(
            select(UserProfile.id).order_by(UserProfile.monthly_points.desc(), UserProfile.created_at)
        )
    ).scalars().all()
    for position, profile_id in enumerate(monthly_order, start=1):
        await db.execute(update(UserProfile).where(UserProfile.id == profile_id).values(monthly_rank=position))

    await db.commit()
    logger.info("Recalculated ranks for %s profiles", len(global_order))
    return len(global_order)


async def create_monthly_snapshot(db: AsyncSession, month: str | None = None) -> int:
    """Freeze the monthly leaderboard under `month` (YYYY-MM), replacing an earlier run.

    The caller commits, so a rollover can pair it with the reset in one transaction.
    """
    month = month or month_label(datetime.now(timezone.utc))
    await db.execute(delete(MonthlyLeaderboardSnapshot).where(MonthlyLeaderboardSnapshot.month == month))

    rows = (
        await db.execute(
            select(UserProfile, User)
            .join(User, UserProfile.user_id == User.id)
            .order_by(UserProfile.monthly_points.desc(), UserProfile.created_at)
        )
    ).all()
    for position, (profile, user) in enumerate(rows, start=1):
        db.add(
            MonthlyLeaderboardSnapshot(
                month=month,
                user_profile_id=profile.id,
                rank=position,
                points=profile.monthly_points,
                pois_visited=profile.unique_pois_visited,
                display_name=display_name(profile, user),
                is_anonymous=not profile.show_real_name_in_leaderboard,
            )
        )
    await db.flush()
    logger.info("Monthly leaderboard snapshot %s written with %s rows", month, len(rows))
    return len(rows)


async def reset_monthly_points(db: AsyncSession) -> int:
    """Zero every profile's monthly points. The caller commits."""
    result = await db.execute(update(UserProfile).values(monthly_points=0, monthly_rank=None))
    logger.info("Monthly points reset for %s profiles", result.rowcount)
    return result.rowcount or 0


async def get_monthly_leaderboard_history(
    db: AsyncSession,
    month: str,
    limit: int = 10,
) -> list[LeaderboardEntry]:
    stmt = (
        select(MonthlyLeaderboardSnapshot)
        .where(MonthlyLeaderboardSnapshot.month == month)
        .order_by(MonthlyLeaderboardSnapshot.rank)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).scalars().all()
    return [
        LeaderboardEntry(
            rank=row.rank,
            display_name=row.display_name,
            points=row.points,
            pois_visited=row.pois_visited,
        )
        for row in rows
    ]


async def snapshot_exists(db: AsyncSession, month: str) -> bool:
    stmt = select(func.count()).select_from(MonthlyLeaderboardSnapshot).where(MonthlyLeaderboardSnapshot.month == month)
    return bool((await db.execute(stmt)).scalar())
