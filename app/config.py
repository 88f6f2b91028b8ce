"""Runtime settings, read from the environment and an optional .env file."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Booking backend settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "FeelME Town Booking API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    SITE_URL: str = "http://localhost:3000"
    BUSINESS_NAME: str = "FeelME Town"
    BUSINESS_TIMEZONE: str = "Asia/Kolkata"

    # MySQL; DATABASE_URL wins when set
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "feelme_booking"
    DATABASE_URL: str | None = None

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str | None = None
    REDIS_DB: int = 0
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 5.0

    # Booking sequence and order item locks
    LOCK_TIMEOUT_SECONDS: int = 30
    LOCK_RETRY_DELAY_MS: int = 100
    LOCK_MAX_RETRIES: int = 50

    ADMIN_API_TOKEN: str = "change-me"

    # Resend; email is skipped when no key is set
    RESEND_API_KEY: str | None = None
    EMAIL_FROM: str = "FeelME Town <bookings@feelmetown.com>"

    # Chat assistant; USE_LOCAL_AI forces the rule-based responder
    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_MODEL: str = "meituan/longcat-flash-chat:free"
    OPENROUTER_TIMEOUT_SECONDS: float = 20.0
    USE_LOCAL_AI: bool = False
    AI_MEMORY_DIR: str = "ai_memory"

    INCOMPLETE_BOOKING_TTL_HOURS: int = 12
    CLEANUP_INTERVAL_SECONDS: int = 300
    AUTO_COMPLETE_EXPIRED_BOOKINGS: bool = False

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


@lru_cache
def get_settings() -> Settings:
    """Settings are built once per process."""
    return Settings()
