"""
Storefront — Configuration
All settings are read from environment variables (or .env file).
"""
from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "storefront"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ── PostgreSQL ────────────────────────────────────────────
    POSTGRES_HOST: str = "storefront-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "storefront_db"
    POSTGRES_USER: str = "storefront_user"
    POSTGRES_PASSWORD: str = "storefront_pass"
    DATABASE_URL: str | None = None  # overrides the POSTGRES_* settings when set

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
    REDIS_KEY_PREFIX: str = "storefront"
    REDIS_MAX_CONNECTIONS: int = 20
    REDIS_SOCKET_TIMEOUT: float = 2.0
    REDIS_HEALTH_CHECK_INTERVAL: int = 30   # seconds between pool connection pings

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── JWT (decode only, tokens are issued elsewhere) ───────
    JWT_SECRET_KEY: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    ADMIN_ROLE: str = "admin"

    # ── Pricing ───────────────────────────────────────────────
    TAX_RATE: Decimal = Decimal("0.085")
    FREE_SHIPPING_THRESHOLD: Decimal = Decimal("50")
    FLAT_SHIPPING_RATE: Decimal = Decimal("5.99")

    # ── Stock Conflict Retry ──────────────────────────────────
    OPT_LOCK_MAX_RETRIES: int = 5
    OPT_LOCK_BASE_DELAY_MS: int = 50      # base exponential backoff delay in ms
    OPT_LOCK_MAX_DELAY_MS: int = 1000     # max backoff cap in ms
    OPT_LOCK_JITTER_MS: int = 50          # random jitter range in ms

    # ── Idempotency ───────────────────────────────────────────
    IDEMPOTENCY_KEY_TTL_SECONDS: int = 86400

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0      # database probe
    REDIS_PING_TIMEOUT: float = 1.0        # redis probe


@lru_cache()
def get_settings() -> Settings:
    return Settings()
