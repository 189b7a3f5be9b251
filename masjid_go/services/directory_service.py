"""Point-of-interest directory store.

The directory is read-mostly and keyed for four access paths: by id, by
geohash bucket, by region and by normalised name prefix. Every call runs on its
own session so bucket lookups can be issued concurrently.
"""
from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from masjid_go.config import settings
from masjid_go.core.geo import encode_geohash
from masjid_go.database import AsyncSessionLocal
from masjid_go.models.poi import PointOfInterest


class DirectoryStore(Protocol):
    async def get_by_id(self, poi_id: str) -> PointOfInterest | None: ...

    async def query_bucket(self, cell: str) -> list[PointOfInterest]: ...

    async def query_region(self, state_code: str, district_code: str | None = None) -> list[PointOfInterest]: ...

    async def search_by_name_prefix(self, prefix: str, limit: int) -> list[PointOfInterest]: ...


def normalize_name(name: str) -> str:
    return name.strip().lower()


def build_point_of_interest(
    *,
    poi_id: str,
    name: str,
    lat: float,
    lng: float,
    state_code: str,
    district_code: str,
    state_name: str | None = None,
    district_name: str | None = None,
    address: str | None = None,
    checkin_radius_m: float | None = None,
    is_active: bool = True,
    is_verified: bool = False,
) -> PointOfInterest:
    """Directory record with its derived bucket, region and search keys filled in."""
    return PointOfInterest(
        id=poi_id,
        name=name,
        name_normalized=normalize_name(name),
        address=address,
        lat=lat,
        lng=lng,
        geo_cell=encode_geohash(lat, lng, settings.GEO_INDEX_PRECISION),
        state_code=state_code,
        state_name=state_name,
        district_code=district_code,
        district_name=district_name,
        region_key=f"{district_code}#{poi_id}",
        checkin_radius_m=checkin_radius_m or settings.DEFAULT_CHECKIN_RADIUS_M,
        is_active=is_active,
        is_verified=is_verified,
    )


class SqlDirectoryStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, poi_id: str) -> PointOfInterest | None:
        async with self._session_factory() as session:
            return await session.get(PointOfInterest, poi_id)

    async def query_bucket(self, cell: str) -> list[PointOfInterest]:
        stmt = select(PointOfInterest).where(
            PointOfInterest.geo_cell == cell,
            PointOfInterest.is_active.is_(True),
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def query_region(self, state_code: str, district_code: str | None = None) -> list[PointOfInterest]:
        stmt = select(PointOfInterest).where(
            PointOfInterest.state_code == state_code,
            PointOfInterest.is_active.is_(True),
        )
        if district_code:
            stmt = stmt.where(PointOfInterest.region_key.startswith(f"{district_code}#", autoescape=True))
        stmt = stmt.order_by(PointOfInterest.region_key)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def search_by_name_prefix(self, prefix: str, limit: int) -> list[PointOfInterest]:
        stmt = (
            select(PointOfInterest)
            .where(
                PointOfInterest.name_normalized.startswith(prefix, autoescape=True),
                PointOfInterest.is_active.is_(True),
            )
            .order_by(PointOfInterest.name_normalized)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())


def get_directory_store() -> DirectoryStore:
    return SqlDirectoryStore(AsyncSessionLocal)
