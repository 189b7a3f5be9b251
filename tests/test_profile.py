import pytest
from httpx import AsyncClient

from masjid_go.config import settings
from masjid_go.services import profile_service

API = settings.API_V1_STR


@pytest.mark.asyncio
async def test_get_or_create_profile_is_idempotent(db_session, user):
    first = await profile_service.get_or_create_profile(db_session, user.id)
    second = await profile_service.get_or_create_profile(db_session, user.id)
    assert first.id == second.id


@pytest.mark.asyncio
async def test_profile_me_before_any_checkin(client: AsyncClient, user_token_headers):
    response = await client.get(f"{API}/profile/me", headers=user_token_headers)
    assert response.status_code == 200
    assert response.json()["data"] is None


@pytest.mark.asyncio
async def test_update_leaderboard_preferences(client: AsyncClient, user, user_token_headers):
    response = await client.patch(
        f"{API}/profile/me",
        json={"leaderboard_alias": "  Musafir  "},
        headers=user_token_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["leaderboard_alias"] == "Musafir"
    assert data["display_name"] == "Musafir"
    assert data["show_real_name_in_leaderboard"] is False

    response = await client.patch(
        f"{API}/profile/me",
        json={"leaderboard_alias": " ", "show_real_name_in_leaderboard": True},
        headers=user_token_headers,
    )
    data = response.json()["data"]
    assert data["leaderboard_alias"] is None
    assert data["display_name"] == user.full_name

    # Omitted fields are left alone
    response = await client.patch(f"{API}/profile/me", json={}, headers=user_token_headers)
    assert response.json()["data"]["show_real_name_in_leaderboard"] is True

    response = await client.get(f"{API}/profile/me", headers=user_token_headers)
    assert response.json()["data"]["total_points"] == 0


@pytest.mark.asyncio
async def test_alias_length_is_validated(client: AsyncClient, user_token_headers):
    response = await client.patch(
        f"{API}/profile/me",
        json={"leaderboard_alias": "x" * 41},
        headers=user_token_headers,
    )
    assert response.status_code == 400
