from datetime import datetime
from typing import Annotated
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.auth import dependencies
from masjid_go.config import settings
from masjid_go.core.rate_limit import rate_limit_dependency
from masjid_go.core.responses import StandardResponse
from masjid_go.database import get_db
from masjid_go.models.enums import VisitStatus
from masjid_go.models.user import User
from masjid_go.services import checkin_service
from masjid_go.services.checkin_service import CheckInFailureReason, CheckInResult
from masjid_go.services.directory_service import DirectoryStore, get_directory_store

router = APIRouter()


class CoordinatesRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class VisitResponse(BaseModel):
    id: uuid.UUID
    poi_id: str
    poi_name: str
    status: VisitStatus
    checked_in_at: datetime
    check_in_lat: float
    check_in_lng: float
    checked_out_at: datetime | None = None
    check_out_lat: float | None = None
    check_out_lng: float | None = None
    base_points: int
    bonus_points: int
    points_awarded: int
    checkout_in_proximity: bool | None = None
    duration_minutes: int | None = None
    is_prayer_time: bool
    prayer_name: str | None = None
    is_first_visit: bool

    class Config:
        from_attributes = True


class CheckInResponse(BaseModel):
    visit: VisitResponse
    points_earned: int | None = None
    distance_m: int | None = None
    checkin_radius_m: float | None = None


_FAILURE_STATUS = {
    CheckInFailureReason.POI_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CheckInFailureReason.PROFILE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CheckInFailureReason.TOO_FAR: status.HTTP_403_FORBIDDEN,
    CheckInFailureReason.ALREADY_CHECKED_IN: status.HTTP_400_BAD_REQUEST,
    CheckInFailureReason.NO_ACTIVE_VISIT: status.HTTP_400_BAD_REQUEST,
}


def result_to_response(result: CheckInResult) -> StandardResponse[CheckInResponse]:
    if not result.success:
        detail: dict = {"detail": result.message, "code": result.reason.value if result.reason else None}
        if result.distance_m is not None:
            detail["distance_m"] = result.distance_m
            detail["checkin_radius_m"] = result.checkin_radius_m
        raise HTTPException(
            status_code=_FAILURE_STATUS.get(result.reason, status.HTTP_400_BAD_REQUEST),
            detail=detail,
        )
    return StandardResponse(
        data=CheckInResponse(
            visit=VisitResponse.model_validate(result.visit),
            points_earned=result.points_earned,
            distance_m=result.distance_m,
            checkin_radius_m=result.checkin_radius_m,
        ),
        message=result.message,
    )


checkout_rate_limit = rate_limit_dependency(
    route_key="checkins.checkout",
    scope="checkout",
    limit=settings.CHECKIN_RATE_LIMIT,
    window_seconds=settings.CHECKIN_RATE_WINDOW_SECONDS,
)


@router.post("/checkout", response_model=StandardResponse[CheckInResponse], dependencies=[checkout_rate_limit])
async def checkout(
    request: CoordinatesRequest,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    directory: Annotated[DirectoryStore, Depends(get_directory_store)],
):
    """Close the current user's open visit from their present position."""
    result = await checkin_service.perform_checkout(
        db, directory, user_id=current_user.id, lat=request.lat, lng=request.lng
    )
    return result_to_response(result)


@router.get("/active", response_model=StandardResponse[VisitResponse | None])
async def get_active_checkin(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    visit = await checkin_service.get_active_visit_for_user(db, current_user.id)
    if visit is None:
        return StandardResponse(data=None, message="No active check-in")
    return StandardResponse(data=VisitResponse.model_validate(visit))


@router.get("/history", response_model=StandardResponse[list[VisitResponse]])
async def get_checkin_history(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    visits = await checkin_service.get_visit_history(db, current_user.id, limit=limit, offset=offset)
    return StandardResponse(data=[VisitResponse.model_validate(v) for v in visits])
