import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from masjid_go.config import settings
from masjid_go.core import exceptions
from masjid_go.database import AsyncSessionLocal
from masjid_go.routers.achievements import router as achievements_router
from masjid_go.routers.checkins import router as checkins_router
from masjid_go.routers.leaderboard import router as leaderboard_router
from masjid_go.routers.pois import router as pois_router
from masjid_go.routers.profile import router as profile_router
from masjid_go.routers.regions import router as regions_router
from masjid_go.services.maintenance_service import LeaderboardMaintenanceService
from masjid_go.services.timezone_service import get_app_timezone

logger = logging.getLogger(__name__)
LEADERBOARD_SCHEDULER_LOCK_KEY = 771204519
leaderboard_scheduler_task: asyncio.Task | None = None

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# CORS must be added before other middleware
configured_origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]
default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]
allow_origins = configured_origins if settings.APP_ENV == "production" else list(dict.fromkeys([*default_origins, *configured_origins]))
allow_methods = ["*"] if settings.CORS_ALLOW_ALL_METHODS else settings.CORS_ALLOW_METHODS
allow_headers = ["*"] if settings.CORS_ALLOW_ALL_HEADERS else settings.CORS_ALLOW_HEADERS

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=allow_methods,
    allow_headers=allow_headers,
)


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response

# Exception Handlers
app.add_exception_handler(RequestValidationError, exceptions.validation_exception_handler)  # type: ignore
app.add_exception_handler(IntegrityError, exceptions.integrity_exception_handler)  # type: ignore

# Routers
app.include_router(pois_router, prefix=f"{settings.API_V1_STR}/pois", tags=["POIs"])
app.include_router(regions_router, prefix=f"{settings.API_V1_STR}/states", tags=["POIs"])
app.include_router(checkins_router, prefix=f"{settings.API_V1_STR}/checkins", tags=["Check-ins"])
app.include_router(achievements_router, prefix=f"{settings.API_V1_STR}/achievements", tags=["Achievements"])
app.include_router(leaderboard_router, prefix=f"{settings.API_V1_STR}/leaderboard", tags=["Leaderboard"])
app.include_router(profile_router, prefix=f"{settings.API_V1_STR}/profile", tags=["Profile"])


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/healthz")
async def healthz():
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.exception("Health check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="database unavailable",
        ) from exc
    return {"status": "ok", "database": "ok"}


@app.get("/")
async def root():
    return {"message": "Welcome to the Masjid Go API", "docs": "/docs"}


def _seconds_until_next_run(now_utc: datetime) -> float:
    now_local = now_utc.astimezone(get_app_timezone())
    target_local = now_local.replace(
        hour=settings.LEADERBOARD_AUTO_HOUR_LOCAL,
        minute=settings.LEADERBOARD_AUTO_MINUTE_LOCAL,
        second=0,
        microsecond=0,
    )
    if now_local >= target_local:
        target_local += timedelta(days=1)
    return max((target_local.astimezone(timezone.utc) - now_utc).total_seconds(), 1.0)


async def _run_leaderboard_scheduler_once() -> None:
    async with AsyncSessionLocal() as db:
        # Advisory locks only exist on PostgreSQL; other backends run single-instance.
        use_lock = db.get_bind().dialect.name == "postgresql"
        if use_lock:
            locked = bool(
                (await db.execute(text("SELECT pg_try_advisory_lock(:key)"), {"key": LEADERBOARD_SCHEDULER_LOCK_KEY})).scalar()
            )
            if not locked:
                logger.info("Leaderboard scheduler lock busy; skipping this cycle")
                return
        try:
            summary = await LeaderboardMaintenanceService.run(db, reason="scheduled_daily")
            logger.info(
                "Leaderboard scheduler run complete: rollover=%s snapshot_month=%s snapshot_rows=%s reset=%s ranked=%s",
                summary["monthly_rollover"],
                summary["snapshot_month"],
                summary["snapshot_rows"],
                summary["profiles_reset"],
                summary["profiles_ranked"],
            )
        finally:
            if use_lock:
                await db.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": LEADERBOARD_SCHEDULER_LOCK_KEY})
                await db.commit()


async def _leaderboard_scheduler_loop() -> None:
    while True:
        delay = _seconds_until_next_run(datetime.now(timezone.utc))
        await asyncio.sleep(delay)
        try:
            await _run_leaderboard_scheduler_once()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Leaderboard scheduler iteration failed")


@app.on_event("startup")
async def startup_leaderboard_scheduler() -> None:
    global leaderboard_scheduler_task
    _validate_security_settings()
    if not settings.LEADERBOARD_AUTO_ENABLED:
        logger.info("Leaderboard auto scheduler disabled by config")
        return
    if leaderboard_scheduler_task and not leaderboard_scheduler_task.done():
        return
    leaderboard_scheduler_task = asyncio.create_task(_leaderboard_scheduler_loop())
    logger.info(
        "Leaderboard scheduler started (hour=%s minute=%s tz=%s)",
        settings.LEADERBOARD_AUTO_HOUR_LOCAL,
        settings.LEADERBOARD_AUTO_MINUTE_LOCAL,
        settings.APP_TIMEZONE,
    )


@app.on_event("shutdown")
async def shutdown_leaderboard_scheduler() -> None:
    global leaderboard_scheduler_task
    if leaderboard_scheduler_task and not leaderboard_scheduler_task.done():
        leaderboard_scheduler_task.cancel()
        try:
            await leaderboard_scheduler_task
        except asyncio.CancelledError:
            pass
    leaderboard_scheduler_task = None


def _validate_security_settings() -> None:
    if settings.APP_ENV != "production":
        return

    errors: list[str] = []
    if len(settings.SECRET_KEY.strip()) < 24:
        errors.append("SECRET_KEY must be at least 24 characters in production.")
    if not settings.BACKEND_CORS_ORIGINS:
        errors.append("BACKEND_CORS_ORIGINS must be explicitly configured in production.")

    if errors:
        raise RuntimeError("; ".join(errors))
