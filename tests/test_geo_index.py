import pytest

from masjid_go.core.geo import encode_geohash
from masjid_go.services.directory_service import build_point_of_interest
from masjid_go.services.poi_service import GeoIndex
from tests.conftest import BASE_LAT, BASE_LNG, north_of


class FailingBucketStore:
    """Directory whose bucket reads fail for one cell."""

    def __init__(self, failing_cell: str) -> None:
        self.failing_cell = failing_cell
        self.queried: list[str] = []

    async def get_by_id(self, poi_id):
        return None

    async def query_bucket(self, cell):
        self.queried.append(cell)
        if cell == self.failing_cell:
            raise RuntimeError("bucket unavailable")
        return []

    async def query_region(self, state_code, district_code=None):
        return []

    async def search_by_name_prefix(self, prefix, limit):
        return []


@pytest.mark.asyncio
async def test_nearby_caps_radius_and_sorts(add_poi, directory):
    await add_poi("FAR", lat=north_of(BASE_LAT, 6000), name="Masjid Jauh")
    await add_poi("MID", lat=north_of(BASE_LAT, 2000), name="Masjid Tengah")
    await add_poi("NEAR", lat=north_of(BASE_LAT, 500), name="Masjid Dekat")

    matches = await GeoIndex(directory).nearby(BASE_LAT, BASE_LNG, 10)

    assert [m.poi.id for m in matches] == ["NEAR", "MID"]
    assert matches[0].distance_m == 500
    assert matches[0].distance_km == pytest.approx(0.5, abs=0.001)
    assert matches[0].can_checkin is False


@pytest.mark.asyncio
async def test_nearby_respects_smaller_radius(add_poi, directory):
    await add_poi("NEAR", lat=north_of(BASE_LAT, 500))
    await add_poi("MID", lat=north_of(BASE_LAT, 2000))

    matches = await GeoIndex(directory).nearby(BASE_LAT, BASE_LNG, 1)
    assert [m.poi.id for m in matches] == ["NEAR"]


@pytest.mark.asyncio
async def test_nearby_skips_inactive(add_poi, directory):
    await add_poi("CLOSED", lat=north_of(BASE_LAT, 100), is_active=False)
    assert await GeoIndex(directory).nearby(BASE_LAT, BASE_LNG) == []


@pytest.mark.asyncio
async def test_checkin_eligible_uses_each_radius(add_poi, directory):
    await add_poi("INSIDE", lat=north_of(BASE_LAT, 50), name="Masjid A")
    await add_poi("OUTSIDE", lat=north_of(BASE_LAT, 300), name="Masjid B")
    await add_poi("WIDE", lat=north_of(BASE_LAT, 400), name="Masjid C", checkin_radius_m=500)

    matches = await GeoIndex(directory).checkin_eligible(BASE_LAT, BASE_LNG)

    assert [m.poi.id for m in matches] == ["INSIDE", "WIDE"]
    assert all(m.can_checkin for m in matches)
    assert matches[1].checkin_radius_m == 500


@pytest.mark.asyncio
async def test_failing_bucket_fails_whole_query():
    store = FailingBucketStore(encode_geohash(BASE_LAT, BASE_LNG, 5))
    with pytest.raises(RuntimeError):
        await GeoIndex(store).nearby(BASE_LAT, BASE_LNG)


@pytest.mark.asyncio
async def test_region_listing(add_poi, directory):
    await add_poi("KL-1", name="Masjid Negara")
    await add_poi("KL-2", lat=north_of(BASE_LAT, 800), name="Masjid Jamek")
    await add_poi("PJ-1", district_code="PJ", state_code="SGR", name="Masjid Petaling Jaya")
    await add_poi("SA-1", district_code="SA", state_code="SGR", name="Masjid Sultan Salahuddin")

    geo_index = GeoIndex(directory)
    assert {p.id for p in await geo_index.by_region("WPKL")} == {"KL-1", "KL-2"}
    assert [p.id for p in await geo_index.by_region("SGR", "PJ")] == ["PJ-1"]
    assert await geo_index.by_region("SGR", "XX") == []


@pytest.mark.asyncio
async def test_search_is_case_insensitive_prefix(add_poi, directory):
    await add_poi("KL-1", name="Masjid Negara")
    await add_poi("KL-2", lat=north_of(BASE_LAT, 800), name="Masjid Jamek")
    await add_poi("KL-3", lat=north_of(BASE_LAT, 900), name="Surau Al-Ikhlas")

    geo_index = GeoIndex(directory)
    assert [p.id for p in await geo_index.search("MASJID")] == ["KL-2", "KL-1"]
    assert [p.id for p in await geo_index.search("masjid", limit=1)] == ["KL-2"]
    assert await geo_index.search("   ") == []


def test_build_point_of_interest_derives_keys():
    poi = build_point_of_interest(
        poi_id="KL-1",
        name="  Masjid Negara ",
        lat=BASE_LAT,
        lng=BASE_LNG,
        state_code="WPKL",
        district_code="KL",
    )
    assert poi.geo_cell == encode_geohash(BASE_LAT, BASE_LNG, 5)
    assert poi.region_key == "KL#KL-1"
    assert poi.name_normalized == "masjid negara"
    assert poi.checkin_radius_m == 100.0
