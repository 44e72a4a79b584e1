"""Application configuration."""
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "NEPP Portal"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Database
    database_url: str = "sqlite:///./nepp.db"

    # Due-date scheduler
    scheduler_autostart: bool = True
    scheduler_autostart_delay_seconds: float = 5.0
    scheduler_check_interval_seconds: float = 60 * 60
    reminder_days: int = 1

    # Unread badge
    badge_poll_interval_seconds: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("scheduler_check_interval_seconds", "badge_poll_interval_seconds")
    @classmethod
    def validate_interval(cls, value: float) -> float:
        """Timers need a positive period."""
        if value <= 0:
            raise ValueError("Polling intervals must be greater than zero.")
        return value

    @field_validator("scheduler_autostart_delay_seconds", "reminder_days")
    @classmethod
    def validate_non_negative(cls, value):
        if value < 0:
            raise ValueError("Autostart delay and reminder days must not be negative.")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL {value!r}.")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
