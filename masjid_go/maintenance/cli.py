"""Leaderboard maintenance jobs for cron or manual runs.

    python -m masjid_go.maintenance.cli ranks
    python -m masjid_go.maintenance.cli snapshot --month 2026-09
    python -m masjid_go.maintenance.cli reset
    python -m masjid_go.maintenance.cli monthly [--force]
"""
import argparse
import asyncio
import logging

from masjid_go.database import AsyncSessionLocal
from masjid_go.services import leaderboard_service
from masjid_go.services.maintenance_service import LeaderboardMaintenanceService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def run_command(args: argparse.Namespace) -> None:
    async with AsyncSessionLocal() as db:
        if args.command == "ranks":
            count = await leaderboard_service.recalculate_ranks(db)
            logger.info("Recalculated ranks for %s profiles", count)
        elif args.command == "snapshot":
            rows = await leaderboard_service.create_monthly_snapshot(db, month=args.month)
            await db.commit()
            logger.info("Snapshot written with %s rows", rows)
        elif args.command == "reset":
            count = await leaderboard_service.reset_monthly_points(db)
            await db.commit()
            logger.info("Reset monthly points for %s profiles", count)
        elif args.command == "monthly":
            summary = await LeaderboardMaintenanceService.run(
                db, force_rollover=args.force, reason="cli"
            )
            logger.info("Maintenance summary: %s", summary)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Leaderboard maintenance")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("ranks", help="Recompute cached global and monthly ranks")
    snapshot = subparsers.add_parser("snapshot", help="Freeze the monthly leaderboard")
    snapshot.add_argument("--month", help="Label as YYYY-MM (defaults to the current month)")
    subparsers.add_parser("reset", help="Zero every profile's monthly points")
    monthly = subparsers.add_parser("monthly", help="Daily job: rollover on the 1st, then rank")
    monthly.add_argument("--force", action="store_true", help="Roll over even if today is not the 1st")
    return parser


if __name__ == "__main__":
    asyncio.run(run_command(build_parser().parse_args()))
