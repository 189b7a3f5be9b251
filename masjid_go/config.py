from typing import List
from pydantic import AnyHttpUrl, computed_field
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "Masjid Go API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    APP_ENV: str = "development"
    APP_TIMEZONE: str = "Asia/Kuala_Lumpur"

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []
    CORS_ALLOW_ALL_METHODS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["GET", "POST", "PATCH", "OPTIONS"]
    CORS_ALLOW_ALL_HEADERS: bool = True
    CORS_ALLOW_HEADERS: List[str] = ["Authorization", "Content-Type", "X-Request-ID"]

    # Geo index
    GEO_INDEX_PRECISION: int = 5
    GEO_NEAR_PRECISION: int = 6
    NEARBY_MAX_RADIUS_KM: float = 5.0
    DEFAULT_CHECKIN_RADIUS_M: float = 100.0

    # Check-in rate limits (per client, per window)
    CHECKIN_RATE_LIMIT: int = 10
    CHECKIN_RATE_WINDOW_SECONDS: int = 60

    # Leaderboard maintenance
    LEADERBOARD_AUTO_ENABLED: bool = False
    LEADERBOARD_AUTO_HOUR_LOCAL: int = 0
    LEADERBOARD_AUTO_MINUTE_LOCAL: int = 5

    # Database
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "masjid_go"

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(MultiHostUrl.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        ))

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

settings = Settings()  # type: ignore
