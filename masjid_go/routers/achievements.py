from datetime import datetime
from typing import Annotated
import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.auth import dependencies
from masjid_go.core.responses import StandardResponse
from masjid_go.database import get_db
from masjid_go.models.enums import AchievementCategory, BadgeTier
from masjid_go.models.user import User
from masjid_go.services import achievement_service

router = APIRouter()


class AchievementDefinitionResponse(BaseModel):
    id: uuid.UUID
    code: str
    name: str
    description: str | None = None
    category: AchievementCategory
    badge_tier: BadgeTier
    required_count: int | None = None
    bonus_points: int
    icon_url: str | None = None

    class Config:
        from_attributes = True


class UserAchievementResponse(BaseModel):
    achievement: AchievementDefinitionResponse
    current_progress: int
    required_progress: int | None = None
    progress_percentage: float
    is_unlocked: bool
    unlocked_at: datetime | None = None


@router.get("", response_model=StandardResponse[list[AchievementDefinitionResponse]])
async def list_achievements(
    db: Annotated[AsyncSession, Depends(get_db)],
    category: AchievementCategory | None = Query(None),
):
    definitions = await achievement_service.get_active_definitions(db, category=category)
    return StandardResponse(data=[AchievementDefinitionResponse.model_validate(d) for d in definitions])


@router.get("/me", response_model=StandardResponse[list[UserAchievementResponse]])
async def get_my_achievements(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Every active achievement with the caller's progress, locked ones included."""
    rows = await achievement_service.get_user_achievements(db, current_user.id)
    data = []
    for definition, progress in rows:
        data.append(
            UserAchievementResponse(
                achievement=AchievementDefinitionResponse.model_validate(definition),
                current_progress=progress.current_progress if progress else 0,
                required_progress=progress.required_progress if progress else definition.required_count,
                progress_percentage=progress.progress_percentage if progress else 0.0,
                is_unlocked=progress.is_unlocked if progress else False,
                unlocked_at=progress.unlocked_at if progress else None,
            )
        )
    return StandardResponse(data=data)
