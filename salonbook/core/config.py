# salonbook/core/config.py

from datetime import time
import urllib.parse

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Read env from .env; ignore unknown keys so extra lines don't crash startup
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Database ---
    # DATABASE_URL wins when set (tests use sqlite+aiosqlite)
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "salonbook"
    POSTGRES_USER: str = "salonbook"
    POSTGRES_PASSWORD: str = ""

    # --- Security ---
    SALON_API_KEY: str | None = None

    # --- Salon schedule ---
    SALON_TIMEZONE: str = "Europe/Paris"
    OPENING_TIME: time = time(9, 0)
    CLOSING_TIME: time = time(18, 0)
    CLOSED_WEEKDAYS: list[int] = [7]  # ISO weekdays, 7 = Sunday

    # Alternative slot suggestions
    SAME_DAY_ALTERNATIVES: int = 3
    NEXT_DAY_FIRST_HOUR: int = 10
    NEXT_DAY_ALTERNATIVES: int = 4

    # --- Reminders ---
    REMINDERS_ENABLED: bool = True
    REMINDER_DAILY_HOUR: int = 10
    REMINDER_LOOKAHEAD_START_MINUTES: int = 120
    REMINDER_LOOKAHEAD_END_MINUTES: int = 180

    # --- Notifications ---
    NOTIFICATION_WEBHOOK_URL: str | None = None
    NOTIFICATION_TIMEOUT: float = 10.0
    EVENT_QUEUE_SIZE: int = 1000

    # --- Monitoring & Logging ---
    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"
    LOG_REQUESTS: bool = False
    LOG_RESPONSES: bool = False
    MAX_LOG_LENGTH: int = 200
    ERROR_AGGREGATION_THRESHOLD: int = 10

    ALLOWED_CORS_ORIGINS: str = "*"  # comma-separated list, e.g. "http://localhost:3000,https://your.app"

    # Sync URI (Alembic)
    @property
    def sync_db_uri(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL.replace("+asyncpg", "").replace("+aiosqlite", "")
        pwd = urllib.parse.quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql://{self.POSTGRES_USER}:{pwd}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Async URI (SQLAlchemy engine)
    @property
    def async_db_uri(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        pwd = urllib.parse.quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{pwd}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("development", "dev", "local")

# Singleton
settings = Settings()
