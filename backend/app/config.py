"""Engine configuration, read from the environment and an optional .env file."""

from pydantic_settings import BaseSettings
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Accepted DATE_FORMAT values for the {{date}} placeholder
DATE_FORMAT_CHOICES = ("DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD")
LOG_FORMAT_CHOICES = ("json", "text", "plain")


class Settings(BaseSettings):
    """Settings for the API process and the background engine."""

    APP_NAME: str = "Scheduled Email Engine"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, testing, production
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Schedule store
    DATABASE_URL: str = "sqlite+aiosqlite:///./scheduled_emails.db"
    SQLALCHEMY_ECHO: bool = False
    SQLITE_BUSY_TIMEOUT: int = 5000  # ms a writer waits on a locked database

    # Clock and refresh loop
    TIMEZONE: str = ""  # IANA zone for send times; empty = host local time
    REFRESH_INTERVAL_SECONDS: int = 60
    DEFAULT_ACTOR: str = "system"  # actor recorded when X-User-ID is absent

    # Placeholder fallbacks when app_settings has no row
    DEPARTMENT_NAME: str = ""
    DEPARTMENT_NAME_ARABIC: str = ""
    DATE_FORMAT: str = "DD/MM/YYYY"

    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def refresh_interval(self) -> int:
        """REFRESH_INTERVAL_SECONDS clamped to 5 seconds .. 1 hour."""
        return max(5, min(self.REFRESH_INTERVAL_SECONDS, 3600))

    def validate_engine_settings(self) -> None:
        """Fail fast on values the engine cannot run with.

        Raises:
            RuntimeError: listing every invalid setting.
        """
        problems = []
        if self.TIMEZONE:
            try:
                ZoneInfo(self.TIMEZONE)
            except (ZoneInfoNotFoundError, ValueError):
                problems.append(f"TIMEZONE {self.TIMEZONE!r} is not a known IANA zone")
        if self.DATE_FORMAT not in DATE_FORMAT_CHOICES:
            problems.append(f"DATE_FORMAT must be one of {', '.join(DATE_FORMAT_CHOICES)}")
        if self.LOG_FORMAT.lower() not in LOG_FORMAT_CHOICES:
            problems.append(f"LOG_FORMAT must be one of {', '.join(LOG_FORMAT_CHOICES)}")
        if self.SQLITE_BUSY_TIMEOUT < 0:
            problems.append("SQLITE_BUSY_TIMEOUT must not be negative")
        if problems:
            raise RuntimeError("Invalid configuration: " + "; ".join(problems))

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings()
