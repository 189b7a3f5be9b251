from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.auth import dependencies
from masjid_go.core.responses import StandardResponse
from masjid_go.database import get_db
from masjid_go.models.user import User, UserProfile
from masjid_go.services import leaderboard_service, profile_service

router = APIRouter()


class ProfileResponse(BaseModel):
    email: str
    full_name: str | None = None
    display_name: str
    total_points: int
    monthly_points: int
    unique_pois_visited: int
    total_check_ins: int
    current_streak: int
    longest_streak: int
    last_visit_date: datetime | None = None
    global_rank: int | None = None
    monthly_rank: int | None = None
    achievement_count: int
    show_real_name_in_leaderboard: bool
    leaderboard_alias: str | None = None
    created_at: datetime | None = None


class ProfileUpdate(BaseModel):
    show_real_name_in_leaderboard: bool | None = None
    leaderboard_alias: str | None = Field(None, max_length=40)


def _profile_response(profile: UserProfile, user: User) -> ProfileResponse:
    return ProfileResponse(
        email=user.email,
        full_name=user.full_name,
        display_name=leaderboard_service.display_name(profile, user),
        total_points=profile.total_points,
        monthly_points=profile.monthly_points,
        unique_pois_visited=profile.unique_pois_visited,
        total_check_ins=profile.total_check_ins,
        current_streak=profile.current_streak,
        longest_streak=profile.longest_streak,
        last_visit_date=profile.last_visit_date,
        global_rank=profile.global_rank,
        monthly_rank=profile.monthly_rank,
        achievement_count=profile.achievement_count,
        show_real_name_in_leaderboard=profile.show_real_name_in_leaderboard,
        leaderboard_alias=profile.leaderboard_alias,
        created_at=profile.created_at,
    )


@router.get("/me", response_model=StandardResponse[ProfileResponse | None])
async def get_my_profile(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    profile = await profile_service.get_profile(db, current_user.id)
    if profile is None:
        return StandardResponse(data=None, message="No check-ins yet")
    return StandardResponse(data=_profile_response(profile, current_user))


@router.patch("/me", response_model=StandardResponse[ProfileResponse])
async def update_my_profile(
    data: ProfileUpdate,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Update leaderboard display preferences, creating the profile if needed."""
    await profile_service.get_or_create_profile(db, current_user.id)
    profile = await profile_service.update_leaderboard_preferences(
        db, current_user.id, changes=data.model_dump(exclude_unset=True)
    )
    return StandardResponse(data=_profile_response(profile, current_user), message="Profile updated")
