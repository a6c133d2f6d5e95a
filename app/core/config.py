"""Application configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings exposed via dependency injection throughout the app."""

    # Read .env with BOM tolerance; case-sensitive keys
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=True,
    )

    APP_NAME: str = "Store Review Dashboard API"
    ENV: str = "dev"  # dev | staging | prod
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    # Dashboard login (single shared password, cookie based)
    SITE_PASSWORD: str = "changeme"
    AUTH_COOKIE_NAME: str = "review-dashboard-auth"
    AUTH_COOKIE_MAX_AGE_SEC: int = 60 * 60 * 24 * 30
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"  # lax/strict/none
    # Bearer token expected from the daily scheduler; unset disables the check.
    CRON_SECRET: str | None = None

    # DB
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_USER: str = "appadmin"
    DB_PASSWORD: str = ""  # set via env/.env
    DB_NAME: str = "reviews"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ECHO: bool = False
    # Full SQLAlchemy URL; takes precedence over the DB_* parts when set.
    DB_URL: str | None = None

    # Google Places
    GOOGLE_PLACES_API_KEY: str | None = Field(default=None, description="Places API key")
    PLACES_LANGUAGE: str = "ja"
    PLACES_HTTP_TIMEOUT_SEC: float = 10.0
    # Brand -> chain name prepended to the store name for the last-resort text search.
    FALLBACK_SEARCH_PREFIXES: dict[str, str] = Field(
        default_factory=lambda: {"AMEMOBA": "アメモバ買取", "SAKUMOBA": "サクモバ"}
    )
    REVIEW_URL_MAX_DRIFT_DAYS: int = 30
    # Upper bound on period columns in one dashboard response.
    DASHBOARD_MAX_PERIODS: int = 3700

    # Rate limit for the manual ingestion endpoint (each run spends upstream quota).
    # See app.core.rate_limit.limiter for syntax.
    FETCH_REVIEWS_RATE: str = "5/minute"
    REVIEWS_PAGE_LIMIT_MAX: int = 200

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )


settings = Settings()
