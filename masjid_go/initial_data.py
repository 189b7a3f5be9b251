import argparse
import asyncio
import json
import logging
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.database import AsyncSessionLocal
from masjid_go.models.enums import AchievementCategory, BadgeTier
from masjid_go.models.gamification import AchievementDefinition
from masjid_go.models.poi import PointOfInterest
from masjid_go.services.directory_service import build_point_of_interest

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Explorer tiers are evaluated on every checkout; other categories are catalog-only for now.
ACHIEVEMENTS = [
    {"code": "EXPLORER_1", "name": "First Steps", "description": "Visit your first masjid",
     "category": AchievementCategory.EXPLORER, "badge_tier": BadgeTier.BRONZE, "required_count": 1, "bonus_points": 5},
    {"code": "EXPLORER_5", "name": "Wanderer", "description": "Visit 5 different masjids",
     "category": AchievementCategory.EXPLORER, "badge_tier": BadgeTier.BRONZE, "required_count": 5, "bonus_points": 10},
    {"code": "EXPLORER_10", "name": "Traveller", "description": "Visit 10 different masjids",
     "category": AchievementCategory.EXPLORER, "badge_tier": BadgeTier.SILVER, "required_count": 10, "bonus_points": 20},
    {"code": "EXPLORER_25", "name": "Pathfinder", "description": "Visit 25 different masjids",
     "category": AchievementCategory.EXPLORER, "badge_tier": BadgeTier.GOLD, "required_count": 25, "bonus_points": 50},
    {"code": "EXPLORER_50", "name": "Voyager", "description": "Visit 50 different masjids",
     "category": AchievementCategory.EXPLORER, "badge_tier": BadgeTier.PLATINUM, "required_count": 50, "bonus_points": 100},
    {"code": "EXPLORER_100", "name": "Musafir", "description": "Visit 100 different masjids",
     "category": AchievementCategory.EXPLORER, "badge_tier": BadgeTier.DIAMOND, "required_count": 100, "bonus_points": 250},
    {"code": "PRAYER_WARRIOR_10", "name": "Steadfast", "description": "Check in during prayer time 10 times",
     "category": AchievementCategory.PRAYER_WARRIOR, "badge_tier": BadgeTier.SILVER, "required_count": 10, "bonus_points": 20},
    {"code": "STREAK_7", "name": "Week of Devotion", "description": "Visit a masjid 7 days in a row",
     "category": AchievementCategory.STREAK, "badge_tier": BadgeTier.SILVER, "required_count": 7, "bonus_points": 25},
    {"code": "GEOGRAPHIC_3_STATES", "name": "State Hopper", "description": "Visit masjids in 3 different states",
     "category": AchievementCategory.GEOGRAPHIC, "badge_tier": BadgeTier.GOLD, "required_count": 3, "bonus_points": 30},
    {"code": "SPECIAL_FOUNDER", "name": "Early Supporter", "description": "Joined during the launch season",
     "category": AchievementCategory.SPECIAL, "badge_tier": BadgeTier.GOLD, "required_count": None, "bonus_points": 0},
]


async def seed_achievements(session: AsyncSession) -> int:
    created = 0
    for sort_order, data in enumerate(ACHIEVEMENTS, start=1):
        existing = (
            await session.execute(select(AchievementDefinition).where(AchievementDefinition.code == data["code"]))
        ).scalar_one_or_none()
        if existing:
            logger.info("Achievement already exists: %s", data["code"])
            continue
        session.add(AchievementDefinition(sort_order=sort_order, **data))
        created += 1
        logger.info("Created achievement: %s", data["code"])
    await session.commit()
    return created


async def import_pois(session: AsyncSession, path: Path) -> int:
    """Load masjids from a JSON array; records already in the directory are left untouched."""
    records = json.loads(path.read_text(encoding="utf-8"))
    created = 0
    for record in records:
        if await session.get(PointOfInterest, record["id"]) is not None:
            continue
        session.add(
            build_point_of_interest(
                poi_id=record["id"],
                name=record["name"],
                lat=float(record["lat"]),
                lng=float(record["lng"]),
                state_code=record["state_code"],
                district_code=record["district_code"],
                state_name=record.get("state_name"),
                district_name=record.get("district_name"),
                address=record.get("address"),
                checkin_radius_m=record.get("checkin_radius_m"),
                is_verified=bool(record.get("is_verified", False)),
            )
        )
        created += 1
    await session.commit()
    logger.info("Imported %s points of interest from %s", created, path)
    return created


async def seed_data(pois_path: Path | None = None) -> None:
    async with AsyncSessionLocal() as session:
        await seed_achievements(session)
        if pois_path is not None:
            await import_pois(session, pois_path)
    logger.info("Seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the achievement catalog and masjid directory")
    parser.add_argument("--pois", type=Path, help="JSON file of masjids to import")
    args = parser.parse_args()
    asyncio.run(seed_data(args.pois))
