from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from masjid_go.services import leaderboard_service
from masjid_go.services.timezone_service import ensure_utc, get_app_timezone, previous_month_label

logger = logging.getLogger(__name__)


@dataclass
class MaintenanceRunSummary:
    started_at: str
    finished_at: str
    duration_seconds: float
    monthly_rollover: bool
    snapshot_month: str | None
    snapshot_rows: int
    profiles_reset: int
    profiles_ranked: int
    reason: str


class LeaderboardMaintenanceService:
    """Exclusive batch pass over all profiles: month rollover then rank recomputation."""

    @staticmethod
    def is_rollover_day(now_utc: datetime) -> bool:
        return ensure_utc(now_utc).astimezone(get_app_timezone()).day == 1

    @staticmethod
    async def run_monthly_rollover(db: AsyncSession, *, month: str) -> tuple[int, int]:
        # Snapshot and reset commit together; a failed reset leaves no snapshot behind.
        try:
            snapshot_rows = await leaderboard_service.create_monthly_snapshot(db, month)
            profiles_reset = await leaderboard_service.reset_monthly_points(db)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Monthly rollover for %s failed; rolled back", month)
            raise
        return snapshot_rows, profiles_reset

    @staticmethod
    async def run(
        db: AsyncSession,
        *,
        now_utc: datetime | None = None,
        force_rollover: bool = False,
        reason: str = "manual",
    ) -> dict:
        started = datetime.now(timezone.utc)
        now_utc = now_utc or started

        rollover = force_rollover or LeaderboardMaintenanceService.is_rollover_day(now_utc)
        snapshot_month = None
        snapshot_rows = 0
        profiles_reset = 0
        if rollover:
            snapshot_month = previous_month_label(now_utc)
            # Monthly points are already reset once the month has been snapshotted.
            if not force_rollover and await leaderboard_service.snapshot_exists(db, snapshot_month):
                logger.info("Snapshot for %s already taken; skipping rollover", snapshot_month)
                rollover = False
        if rollover:
            snapshot_rows, profiles_reset = await LeaderboardMaintenanceService.run_monthly_rollover(
                db, month=snapshot_month
            )

        profiles_ranked = await leaderboard_service.recalculate_ranks(db)

        finished = datetime.now(timezone.utc)
        summary = MaintenanceRunSummary(
            started_at=started.isoformat(),
            finished_at=finished.isoformat(),
            duration_seconds=round((finished - started).total_seconds(), 3),
            monthly_rollover=rollover,
            snapshot_month=snapshot_month,
            snapshot_rows=snapshot_rows,
            profiles_reset=profiles_reset,
            profiles_ranked=profiles_ranked,
            reason=reason,
        )
        return summary.__dict__

