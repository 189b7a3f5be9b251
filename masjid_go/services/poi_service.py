"""Geo index over the point-of-interest directory."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from masjid_go.config import settings
from masjid_go.core.geo import cells_around, haversine_distance_m
from masjid_go.models.poi import PointOfInterest
from masjid_go.services.directory_service import DirectoryStore, normalize_name

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20


@dataclass
class ProximityMatch:
    poi: PointOfInterest
    distance_km: float
    distance_m: int
    checkin_radius_m: float
    can_checkin: bool


def admission_radius_m(poi: PointOfInterest | None) -> float:
    if poi is None or not poi.checkin_radius_m:
        return settings.DEFAULT_CHECKIN_RADIUS_M
    return poi.checkin_radius_m


def _match(poi: PointOfInterest, lat: float, lng: float) -> ProximityMatch:
    distance_m = haversine_distance_m(lat, lng, poi.lat, poi.lng)
    radius = admission_radius_m(poi)
    return ProximityMatch(
        poi=poi,
        distance_km=distance_m / 1000.0,
        distance_m=round(distance_m),
        checkin_radius_m=radius,
        can_checkin=distance_m <= radius,
    )


class GeoIndex:
    def __init__(self, store: DirectoryStore) -> None:
        self.store = store

    async def _fetch_cells(self, cells: list[str]) -> list[PointOfInterest]:
        # A failed bucket fails the whole query rather than returning a partial area.
        buckets = await asyncio.gather(*(self.store.query_bucket(cell) for cell in cells))
        seen: set[str] = set()
        pois: list[PointOfInterest] = []
        for bucket in buckets:
            for poi in bucket:
                if poi.id not in seen:
                    seen.add(poi.id)
                    pois.append(poi)
        return pois

    async def nearby(self, lat: float, lng: float, radius_km: float | None = None) -> list[ProximityMatch]:
        """Points of interest within `radius_km` (capped) of a coordinate, nearest first."""
        requested = settings.NEARBY_MAX_RADIUS_KM if radius_km is None else radius_km
        effective_radius_km = min(requested, settings.NEARBY_MAX_RADIUS_KM)

        cells = cells_around(lat, lng, settings.GEO_INDEX_PRECISION)
        pois = await self._fetch_cells(cells)

        matches = [_match(poi, lat, lng) for poi in pois]
        matches = [m for m in matches if m.distance_km <= effective_radius_km]
        matches.sort(key=lambda m: m.distance_km)
        logger.debug(
            "nearby lat=%s lng=%s radius_km=%s cells=%s candidates=%s matches=%s",
            lat, lng, effective_radius_km, len(cells), len(pois), len(matches),
        )
        return matches

    async def checkin_eligible(self, lat: float, lng: float) -> list[ProximityMatch]:
        """Points of interest whose admission radius covers the coordinate, nearest first."""
        near_cells = cells_around(lat, lng, settings.GEO_NEAR_PRECISION)
        # The directory is only bucketed at the index precision.
        prefixes = list(dict.fromkeys(cell[: settings.GEO_INDEX_PRECISION] for cell in near_cells))
        pois = await self._fetch_cells(prefixes)

        matches = [m for m in (_match(poi, lat, lng) for poi in pois) if m.can_checkin]
        matches.sort(key=lambda m: m.distance_km)
        return matches

    async def get(self, poi_id: str) -> PointOfInterest | None:
        return await self.store.get_by_id(poi_id)

    async def by_region(self, state_code: str, district_code: str | None = None) -> list[PointOfInterest]:
        return await self.store.query_region(state_code, district_code)

    async def search(self, term: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[PointOfInterest]:
        prefix = normalize_name(term)
        if not prefix:
            return []
        return await self.store.search_by_name_prefix(prefix, limit)
