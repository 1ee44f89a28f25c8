"""
Application configuration using Pydantic Settings.
"""
from functools import lru_cache

import pytz
from pydantic import field_validator
from pydantic_settings import BaseSettings


LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Pantry POS"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Storage
    DATABASE_URL: str = "sqlite:///./pantry_pos.db"
    STORAGE_KEY_PREFIX: str = "tp_"
    SEED_DEFAULTS: bool = True

    # Store / receipt display
    STORE_NAME: str = "Terry & Perry POS"
    CURRENCY_SYMBOL: str = "₱"
    STORE_TIMEZONE: str = "Asia/Manila"

    # Product images are kept inline as data URLs, so keep them small
    MAX_IMAGE_BYTES: int = 2 * 1024 * 1024

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(LOG_LEVELS)} (got {v!r})")
        return level

    @field_validator("STORE_TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject time zone names pytz does not know about."""
        if v not in pytz.all_timezones_set:
            raise ValueError(f"STORE_TIMEZONE is not a valid IANA time zone: {v!r}")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
