from typing import Annotated

from fastapi import APIRouter, Depends

from masjid_go.core.responses import StandardResponse
from masjid_go.routers.pois import PoiResponse, get_geo_index
from masjid_go.services.poi_service import GeoIndex

router = APIRouter()


@router.get("/{state_code}/pois", response_model=StandardResponse[list[PoiResponse]])
async def list_state_pois(
    state_code: str,
    geo_index: Annotated[GeoIndex, Depends(get_geo_index)],
):
    pois = await geo_index.by_region(state_code)
    return StandardResponse(data=[PoiResponse.model_validate(p) for p in pois])


@router.get("/{state_code}/districts/{district_code}/pois", response_model=StandardResponse[list[PoiResponse]])
async def list_district_pois(
    state_code: str,
    district_code: str,
    geo_index: Annotated[GeoIndex, Depends(get_geo_index)],
):
    pois = await geo_index.by_region(state_code, district_code)
    return StandardResponse(data=[PoiResponse.model_validate(p) for p in pois])
