import json

import pytest
from sqlalchemy import func, select

from masjid_go.initial_data import ACHIEVEMENTS, import_pois, seed_achievements
from masjid_go.maintenance.cli import build_parser
from masjid_go.models.gamification import AchievementDefinition
from masjid_go.models.poi import PointOfInterest


@pytest.mark.asyncio
async def test_seed_achievements_is_idempotent(db_session):
    assert await seed_achievements(db_session) == len(ACHIEVEMENTS)
    assert await seed_achievements(db_session) == 0
    count = (await db_session.execute(select(func.count()).select_from(AchievementDefinition))).scalar()
    assert count == len(ACHIEVEMENTS)


@pytest.mark.asyncio
async def test_import_pois_from_json(db_session, tmp_path):
    path = tmp_path / "masjids.json"
    path.write_text(json.dumps([
        {"id": "SGR-PJ-001", "name": "Masjid Jamek Sultan Abdul Aziz", "lat": 3.1073, "lng": 101.6067,
         "state_code": "SGR", "district_code": "PJ", "checkin_radius_m": 150},
        {"id": "SGR-SA-001", "name": "Masjid Sultan Salahuddin Abdul Aziz Shah", "lat": 3.0787, "lng": 101.5209,
         "state_code": "SGR", "district_code": "SA", "is_verified": True},
    ]), encoding="utf-8")

    assert await import_pois(db_session, path) == 2
    assert await import_pois(db_session, path) == 0

    poi = await db_session.get(PointOfInterest, "SGR-PJ-001")
    assert poi.region_key == "PJ#SGR-PJ-001"
    assert poi.checkin_radius_m == 150
    other = await db_session.get(PointOfInterest, "SGR-SA-001")
    assert other.checkin_radius_m == 100
    assert other.is_verified is True


def test_cli_parser():
    parser = build_parser()
    args = parser.parse_args(["snapshot", "--month", "2026-09"])
    assert (args.command, args.month) == ("snapshot", "2026-09")
    assert parser.parse_args(["monthly", "--force"]).force is True
    with pytest.raises(SystemExit):
        parser.parse_args([])
