"""Achievement catalog, progress evaluation and unlock bonuses.

Each achievement category is evaluated by a progress strategy. Only the
explorer category (distinct points of interest visited) has one; definitions
in other categories are listed but never progressed.
"""
from __future__ import annotations

from datetime import datetime, timezone
import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.models.enums import AchievementCategory
from masjid_go.models.gamification import AchievementDefinition, AchievementProgress
from masjid_go.models.user import UserProfile
from masjid_go.services.profile_service import get_profile

logger = logging.getLogger(__name__)


class ProgressStrategy:
    category: AchievementCategory

    def current_progress(self, profile: UserProfile) -> int:
        raise NotImplementedError


class ExplorerProgress(ProgressStrategy):
    category = AchievementCategory.EXPLORER

    def current_progress(self, profile: UserProfile) -> int:
        return profile.unique_pois_visited


PROGRESS_STRATEGIES: dict[AchievementCategory, ProgressStrategy] = {
    strategy.category: strategy for strategy in (ExplorerProgress(),)
}


def progress_percentage(current: int, required: int) -> float:
    return min(current / required * 100, 100.0)


async def get_active_definitions(
    db: AsyncSession,
    category: AchievementCategory | None = None,
) -> list[AchievementDefinition]:
    stmt = select(AchievementDefinition).where(AchievementDefinition.is_active.is_(True))
    if category is not None:
        stmt = stmt.where(AchievementDefinition.category == category)
    stmt = stmt.order_by(AchievementDefinition.sort_order, AchievementDefinition.code)
    return list((await db.execute(stmt)).scalars().all())


async def get_user_achievements(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> list[tuple[AchievementDefinition, AchievementProgress | None]]:
    """Every active achievement paired with the user's progress record, if any."""
    definitions = await get_active_definitions(db)
    profile = await get_profile(db, user_id)
    if profile is None:
        return [(definition, None) for definition in definitions]

    result = await db.execute(
        select(AchievementProgress).where(AchievementProgress.user_profile_id == profile.id)
    )
    progress_map = {p.achievement_definition_id: p for p in result.scalars().all()}
    return [(definition, progress_map.get(definition.id)) for definition in definitions]


async def _award_bonus(db: AsyncSession, profile_id: uuid.UUID, bonus_points: int) -> None:
    # Increment in SQL so profile writes committed since the caller loaded the row survive.
    await db.execute(
        update(UserProfile)
        .where(UserProfile.id == profile_id)
        .values(
            total_points=UserProfile.total_points + bonus_points,
            monthly_points=UserProfile.monthly_points + bonus_points,
            achievement_count=UserProfile.achievement_count + 1,
        )
        .execution_options(synchronize_session=False)
    )


async def evaluate_achievements(
    db: AsyncSession,
    profile: UserProfile,
    now: datetime | None = None,
) -> list[AchievementDefinition]:
    """Recompute progress for every evaluable achievement. Returns the ones unlocked now.

    Unlocked records are never touched again, so the bonus is credited once.
    The caller commits.
    """
    now = now or datetime.now(timezone.utc)
    definitions = [
        d for d in await get_active_definitions(db)
        if d.category in PROGRESS_STRATEGIES and d.required_count
    ]
    if not definitions:
        return []

    result = await db.execute(
        select(AchievementProgress).where(
            AchievementProgress.user_profile_id == profile.id,
            AchievementProgress.achievement_definition_id.in_([d.id for d in definitions]),
        )
    )
    existing = {p.achievement_definition_id: p for p in result.scalars().all()}

    unlocked: list[AchievementDefinition] = []
    for definition in definitions:
        record = existing.get(definition.id)
        if record is not None and record.is_unlocked:
            continue

        current = PROGRESS_STRATEGIES[definition.category].current_progress(profile)
        required = record.required_progress if record is not None else definition.required_count
        reached = current >= required

        if record is None:
            db.add(
                AchievementProgress(
                    user_profile_id=profile.id,
                    achievement_definition_id=definition.id,
                    current_progress=current,
                    required_progress=required,
                    progress_percentage=progress_percentage(current, required),
                    is_unlocked=reached,
                    unlocked_at=now if reached else None,
                )
            )
        else:
            record.current_progress = current
            record.progress_percentage = progress_percentage(current, required)
            if reached:
                record.is_unlocked = True
                record.unlocked_at = now

        if reached:
            await _award_bonus(db, profile.id, definition.bonus_points)
            unlocked.append(definition)
            logger.info(
                "Achievement %s unlocked for profile %s (+%s points)",
                definition.code, profile.id, definition.bonus_points,
            )

    await db.flush()
    if unlocked:
        await db.refresh(profile)
    return unlocked
