import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-masjid-go-suite")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./masjid_go_test.db")
os.environ.setdefault("APP_TIMEZONE", "Asia/Kuala_Lumpur")

import uuid
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import masjid_go.models  # noqa: F401
from masjid_go.auth.security import create_access_token
from masjid_go.core.rate_limit import reset_rate_limiter_state
from masjid_go.database import Base, get_db
from masjid_go.main import app
from masjid_go.models.enums import AchievementCategory, BadgeTier
from masjid_go.models.gamification import AchievementDefinition
from masjid_go.models.user import User
from masjid_go.services.directory_service import SqlDirectoryStore, build_point_of_interest, get_directory_store

# Masjid Negara, Kuala Lumpur
BASE_LAT = 3.1420
BASE_LNG = 101.6918
METERS_PER_DEGREE_LAT = 111_194.93


def north_of(lat: float, meters: float) -> float:
    return lat + meters / METERS_PER_DEGREE_LAT


@pytest.fixture(scope="function")
async def db_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'masjid_go.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
def directory(session_factory) -> SqlDirectoryStore:
    return SqlDirectoryStore(session_factory)


@pytest.fixture(scope="function")
async def client(db_session, directory) -> AsyncGenerator[AsyncClient, None]:
    await reset_rate_limiter_state()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_directory_store] = lambda: directory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
    await reset_rate_limiter_state()


@pytest.fixture
def make_user(db_session):
    async def _make_user(full_name: str = "Ahmad Faiz", *, is_active: bool = True) -> User:
        user = User(
            email=f"user_{uuid.uuid4().hex[:8]}@masjidgo.test",
            full_name=full_name,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def add_poi(db_session):
    async def _add_poi(poi_id: str = "MSJ-KL-001", *, lat: float = BASE_LAT, lng: float = BASE_LNG, **kwargs):
        fields = {
            "name": "Masjid Negara",
            "state_code": "WPKL",
            "district_code": "KL",
            "state_name": "Wilayah Persekutuan Kuala Lumpur",
            "district_name": "Kuala Lumpur",
        }
        fields.update(kwargs)
        poi = build_point_of_interest(poi_id=poi_id, lat=lat, lng=lng, **fields)
        db_session.add(poi)
        await db_session.commit()
        return poi

    return _add_poi


@pytest.fixture
async def user(make_user) -> User:
    return await make_user()


@pytest.fixture
def user_token_headers(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.email)}"}


@pytest.fixture
async def explorer_catalog(db_session) -> list[AchievementDefinition]:
    definitions = [
        AchievementDefinition(
            code="EXPLORER_1", name="First Steps", description="Visit your first masjid",
            category=AchievementCategory.EXPLORER, badge_tier=BadgeTier.BRONZE,
            required_count=1, bonus_points=5, sort_order=1,
        ),
        AchievementDefinition(
            code="EXPLORER_2", name="Wanderer", description="Visit 2 different masjids",
            category=AchievementCategory.EXPLORER, badge_tier=BadgeTier.SILVER,
            required_count=2, bonus_points=10, sort_order=2,
        ),
        AchievementDefinition(
            code="STREAK_1", name="Day One", description="Visit a masjid on one day",
            category=AchievementCategory.STREAK, badge_tier=BadgeTier.BRONZE,
            required_count=1, bonus_points=50, sort_order=3,
        ),
    ]
    db_session.add_all(definitions)
    await db_session.commit()
    return definitions
