from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.auth import dependencies
from masjid_go.config import settings
from masjid_go.core.rate_limit import rate_limit_dependency
from masjid_go.core.responses import StandardResponse
from masjid_go.database import get_db
from masjid_go.models.user import User
from masjid_go.routers.checkins import CheckInResponse, CoordinatesRequest, result_to_response
from masjid_go.services import checkin_service
from masjid_go.services.directory_service import DirectoryStore, get_directory_store
from masjid_go.services.poi_service import GeoIndex, ProximityMatch

router = APIRouter()

Latitude = Annotated[float, Query(ge=-90, le=90)]
Longitude = Annotated[float, Query(ge=-180, le=180)]


class PoiResponse(BaseModel):
    id: str
    name: str
    address: str | None = None
    lat: float
    lng: float
    state_code: str
    state_name: str | None = None
    district_code: str
    district_name: str | None = None
    checkin_radius_m: float
    is_verified: bool

    class Config:
        from_attributes = True


class NearbyPoiResponse(PoiResponse):
    distance_km: float
    distance_m: int
    can_checkin: bool


class DailyStatsResponse(BaseModel):
    date: str
    visitor_count: int
    unique_visitor_count: int
    points_awarded: int


class AllTimeStatsResponse(BaseModel):
    total_visitors: int
    total_points: int


class PoiStatsResponse(BaseModel):
    today: DailyStatsResponse | None = None
    all_time: AllTimeStatsResponse


def get_geo_index(store: Annotated[DirectoryStore, Depends(get_directory_store)]) -> GeoIndex:
    return GeoIndex(store)


def _nearby_response(match: ProximityMatch) -> NearbyPoiResponse:
    return NearbyPoiResponse(
        **PoiResponse.model_validate(match.poi).model_dump(),
        distance_km=match.distance_km,
        distance_m=match.distance_m,
        can_checkin=match.can_checkin,
    )


async def _get_poi_or_404(geo_index: GeoIndex, poi_id: str):
    poi = await geo_index.get(poi_id)
    # Inactive entries stay readable to checkout only.
    if poi is None or not poi.is_active:
        raise HTTPException(status_code=404, detail="Masjid not found")
    return poi


@router.get("/nearby", response_model=StandardResponse[list[NearbyPoiResponse]])
async def get_nearby_pois(
    lat: Latitude,
    lng: Longitude,
    geo_index: Annotated[GeoIndex, Depends(get_geo_index)],
    radius: float = Query(settings.NEARBY_MAX_RADIUS_KM, gt=0, description="Radius in km, capped server-side"),
):
    matches = await geo_index.nearby(lat, lng, radius)
    return StandardResponse(data=[_nearby_response(m) for m in matches])


@router.get("/checkin", response_model=StandardResponse[list[NearbyPoiResponse]])
async def get_checkin_eligible_pois(
    lat: Latitude,
    lng: Longitude,
    geo_index: Annotated[GeoIndex, Depends(get_geo_index)],
):
    """Masjids close enough to check in to from this position."""
    matches = await geo_index.checkin_eligible(lat, lng)
    return StandardResponse(data=[_nearby_response(m) for m in matches])


@router.get("/search", response_model=StandardResponse[list[PoiResponse]])
async def search_pois(
    geo_index: Annotated[GeoIndex, Depends(get_geo_index)],
    q: str = Query(min_length=1, max_length=100),
    limit: int = Query(20, ge=1, le=100),
):
    if not q.strip():
        raise HTTPException(status_code=400, detail="Search query 'q' is required")
    pois = await geo_index.search(q, limit)
    return StandardResponse(data=[PoiResponse.model_validate(p) for p in pois])


@router.get("/{poi_id}", response_model=StandardResponse[PoiResponse])
async def get_poi(
    poi_id: str,
    geo_index: Annotated[GeoIndex, Depends(get_geo_index)],
):
    poi = await _get_poi_or_404(geo_index, poi_id)
    return StandardResponse(data=PoiResponse.model_validate(poi))


@router.get("/{poi_id}/stats", response_model=StandardResponse[PoiStatsResponse])
async def get_poi_stats(
    poi_id: str,
    geo_index: Annotated[GeoIndex, Depends(get_geo_index)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    await _get_poi_or_404(geo_index, poi_id)
    stats = await checkin_service.get_poi_stats(db, poi_id)
    return StandardResponse(data=PoiStatsResponse(**stats))


checkin_rate_limit = rate_limit_dependency(
    route_key="pois.checkin",
    scope="checkin",
    limit=settings.CHECKIN_RATE_LIMIT,
    window_seconds=settings.CHECKIN_RATE_WINDOW_SECONDS,
)
poi_checkout_rate_limit = rate_limit_dependency(
    route_key="pois.checkout",
    scope="checkout",
    limit=settings.CHECKIN_RATE_LIMIT,
    window_seconds=settings.CHECKIN_RATE_WINDOW_SECONDS,
)


@router.post("/{poi_id}/checkin", response_model=StandardResponse[CheckInResponse], dependencies=[checkin_rate_limit])
async def checkin_to_poi(
    poi_id: str,
    request: CoordinatesRequest,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    directory: Annotated[DirectoryStore, Depends(get_directory_store)],
):
    result = await checkin_service.perform_checkin(
        db, directory, user_id=current_user.id, poi_id=poi_id, lat=request.lat, lng=request.lng
    )
    return result_to_response(result)


@router.post("/{poi_id}/checkout", response_model=StandardResponse[CheckInResponse], dependencies=[poi_checkout_rate_limit])
async def checkout_from_poi(
    poi_id: str,
    request: CoordinatesRequest,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    directory: Annotated[DirectoryStore, Depends(get_directory_store)],
):
    result = await checkin_service.perform_checkout(
        db, directory, user_id=current_user.id, lat=request.lat, lng=request.lng, poi_id=poi_id
    )
    return result_to_response(result)
