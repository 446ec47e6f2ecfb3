"""
LeftoverSaver — Configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "leftoversaver"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ── PostgreSQL ────────────────────────────────────────────
    POSTGRES_HOST: str = "offers-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "leftoversaver"
    POSTGRES_USER: str = "leftover_user"
    POSTGRES_PASSWORD: str = "leftover_pass"
    DATABASE_URL: str | None = None  # full override, e.g. sqlite+aiosqlite:///./dev.db

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Auth (tokens are issued by the identity provider) ─────
    JWT_SECRET_KEY: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"

    # ── Optimistic Locking Retry ──────────────────────────────
    OPT_LOCK_MAX_RETRIES: int = 5
    OPT_LOCK_BASE_DELAY_MS: int = 50      # base exponential backoff delay in ms
    OPT_LOCK_MAX_DELAY_MS: int = 1000     # max backoff cap in ms
    OPT_LOCK_JITTER_MS: int = 50          # random jitter range in ms

    # ── Booking / Payment ─────────────────────────────────────
    PAYMENT_TIMEOUT_SECONDS: float = 120.0
    PAYMENT_RESULT_RETENTION_SECONDS: float = 600.0  # uncollected outcomes + consumed refs
    STOCK_CACHE_TTL_SECONDS: int = 10
    IDEMPOTENCY_KEY_TTL_SECONDS: int = 86400
    IDEMPOTENCY_IN_FLIGHT_TTL_SECONDS: int = 300  # must outlive PAYMENT_TIMEOUT_SECONDS

    # ── Display ───────────────────────────────────────────────
    DEFAULT_CURRENCY: str = "EUR"
    DISPLAY_LOCALE: str = "en-US"

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
