from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.auth import dependencies
from masjid_go.core.responses import PageMeta, PaginatedResponse, StandardResponse
from masjid_go.database import get_db
from masjid_go.models.user import User
from masjid_go.services import leaderboard_service, profile_service

router = APIRouter()


class LeaderboardEntryResponse(BaseModel):
    rank: int
    display_name: str
    points: int
    pois_visited: int
    is_current_user: bool | None = None


class UserRankResponse(BaseModel):
    global_rank: int | None = None
    monthly_rank: int | None = None
    cached_global_rank: int | None = None
    cached_monthly_rank: int | None = None
    total_points: int = 0
    monthly_points: int = 0


def _to_response(entries) -> list[LeaderboardEntryResponse]:
    return [LeaderboardEntryResponse(**asdict(entry)) for entry in entries]


@router.get("/monthly", response_model=StandardResponse[list[LeaderboardEntryResponse]])
async def get_monthly_leaderboard(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(dependencies.get_optional_user)],
    limit: int = Query(8, ge=1, le=100),
):
    entries = await leaderboard_service.get_monthly_leaderboard(
        db, limit=limit, current_user_id=current_user.id if current_user else None
    )
    return StandardResponse(data=_to_response(entries))


@router.get("/global", response_model=PaginatedResponse[list[LeaderboardEntryResponse]])
async def get_global_leaderboard(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(dependencies.get_optional_user)],
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    entries, total = await leaderboard_service.get_global_leaderboard(
        db, limit=limit, offset=offset, current_user_id=current_user.id if current_user else None
    )
    return PaginatedResponse(
        data=_to_response(entries),
        meta=PageMeta(total=total, limit=limit, offset=offset),
    )


@router.get("/history/{month}", response_model=StandardResponse[list[LeaderboardEntryResponse]])
async def get_leaderboard_history(
    db: Annotated[AsyncSession, Depends(get_db)],
    month: str = Path(pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    limit: int = Query(10, ge=1, le=100),
):
    entries = await leaderboard_service.get_monthly_leaderboard_history(db, month, limit=limit)
    return StandardResponse(data=_to_response(entries))


@router.get("/me", response_model=StandardResponse[UserRankResponse])
async def get_my_rank(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    profile = await profile_service.get_profile(db, current_user.id)
    if profile is None:
        raise HTTPException(status_code=404, detail="User profile not found")
    live = await leaderboard_service.get_user_rank(db, current_user.id)
    return StandardResponse(
        data=UserRankResponse(
            global_rank=live["global_rank"],
            monthly_rank=live["monthly_rank"],
            cached_global_rank=profile.global_rank,
            cached_monthly_rank=profile.monthly_rank,
            total_points=profile.total_points,
            monthly_points=profile.monthly_points,
        )
    )
