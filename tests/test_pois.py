import pytest
from httpx import AsyncClient

from masjid_go.config import settings
from masjid_go.services import checkin_service
from tests.conftest import BASE_LAT, BASE_LNG, north_of

API = settings.API_V1_STR


@pytest.mark.asyncio
async def test_nearby_endpoint(client: AsyncClient, add_poi):
    await add_poi("NEAR", lat=north_of(BASE_LAT, 60), name="Masjid Dekat")
    await add_poi("MID", lat=north_of(BASE_LAT, 2000), name="Masjid Tengah")
    await add_poi("FAR", lat=north_of(BASE_LAT, 6000), name="Masjid Jauh")

    response = await client.get(f"{API}/pois/nearby", params={"lat": BASE_LAT, "lng": BASE_LNG, "radius": 10})
    assert response.status_code == 200
    data = response.json()["data"]
    assert [p["id"] for p in data] == ["NEAR", "MID"]
    assert data[0]["distance_m"] == 60
    assert data[0]["can_checkin"] is True
    assert data[1]["can_checkin"] is False


@pytest.mark.asyncio
async def test_checkin_candidates_endpoint(client: AsyncClient, add_poi):
    await add_poi("NEAR", lat=north_of(BASE_LAT, 60))
    await add_poi("MID", lat=north_of(BASE_LAT, 2000))

    response = await client.get(f"{API}/pois/checkin", params={"lat": BASE_LAT, "lng": BASE_LNG})
    assert [p["id"] for p in response.json()["data"]] == ["NEAR"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"lat": 95, "lng": BASE_LNG},
        {"lat": BASE_LAT, "lng": 181},
        {"lat": BASE_LAT},
        {"lat": BASE_LAT, "lng": BASE_LNG, "radius": 0},
    ],
)
async def test_nearby_rejects_bad_coordinates(client: AsyncClient, params):
    response = await client.get(f"{API}/pois/nearby", params=params)
    assert response.status_code == 400
    assert response.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_search_and_detail(client: AsyncClient, add_poi):
    await add_poi("KL-1", name="Masjid Negara")
    await add_poi("KL-2", lat=north_of(BASE_LAT, 800), name="Masjid Jamek")

    response = await client.get(f"{API}/pois/search", params={"q": "masjid j"})
    assert [p["id"] for p in response.json()["data"]] == ["KL-2"]

    response = await client.get(f"{API}/pois/search", params={"q": ""})
    assert response.status_code == 400

    response = await client.get(f"{API}/pois/KL-1")
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Masjid Negara"

    response = await client.get(f"{API}/pois/UNKNOWN")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_inactive_poi_detail_and_stats_are_hidden(client: AsyncClient, add_poi):
    await add_poi("CLOSED", is_active=False)

    response = await client.get(f"{API}/pois/CLOSED")
    assert response.status_code == 404

    response = await client.get(f"{API}/pois/CLOSED/stats")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_region_endpoints(client: AsyncClient, add_poi):
    await add_poi("KL-1")
    await add_poi("PJ-1", state_code="SGR", district_code="PJ", name="Masjid PJ")
    await add_poi("SA-1", state_code="SGR", district_code="SA", name="Masjid Shah Alam")

    response = await client.get(f"{API}/states/SGR/pois")
    assert {p["id"] for p in response.json()["data"]} == {"PJ-1", "SA-1"}

    response = await client.get(f"{API}/states/SGR/districts/SA/pois")
    assert [p["id"] for p in response.json()["data"]] == ["SA-1"]


@pytest.mark.asyncio
async def test_poi_stats_endpoint(client: AsyncClient, db_session, directory, user, add_poi):
    await add_poi("P")

    response = await client.get(f"{API}/pois/P/stats")
    assert response.status_code == 200
    assert response.json()["data"] == {"today": None, "all_time": {"total_visitors": 0, "total_points": 0}}

    await checkin_service.perform_checkin(
        db_session, directory, user_id=user.id, poi_id="P", lat=BASE_LAT, lng=BASE_LNG
    )
    await checkin_service.perform_checkout(
        db_session, directory, user_id=user.id, lat=BASE_LAT, lng=BASE_LNG
    )

    response = await client.get(f"{API}/pois/P/stats")
    data = response.json()["data"]
    assert data["today"]["visitor_count"] == 1
    assert data["today"]["unique_visitor_count"] == 1
    assert data["all_time"] == {"total_visitors": 1, "total_points": 15}

    response = await client.get(f"{API}/pois/MISSING/stats")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_checkout_from_poi_route(client: AsyncClient, user_token_headers, add_poi):
    await add_poi("P")
    await add_poi("Q", lat=north_of(BASE_LAT, 3000))
    await client.post(f"{API}/pois/P/checkin", json={"lat": BASE_LAT, "lng": BASE_LNG}, headers=user_token_headers)

    response = await client.post(
        f"{API}/pois/Q/checkout", json={"lat": BASE_LAT, "lng": BASE_LNG}, headers=user_token_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "NO_ACTIVE_VISIT"

    response = await client.post(
        f"{API}/pois/P/checkout", json={"lat": BASE_LAT, "lng": BASE_LNG}, headers=user_token_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["visit"]["status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.json() == {"status": "ok"}
