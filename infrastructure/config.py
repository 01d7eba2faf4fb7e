"""Application settings, read from the environment (prefix BOOKING_) or .env"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Room Booking API"
    log_level: str = "INFO"

    # Auth
    secret_key: str = "your-secret-key-keep-it-secret"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=30, ge=1)

    # Booking lifecycle
    scheduler_enabled: bool = True
    lifecycle_interval_seconds: float = Field(default=60.0, gt=0)
    check_in_grace_minutes: int = Field(default=15, ge=0)
    buffer_minutes: int = Field(default=0, ge=0)

    # Daily availability window
    business_day_start_hour: int = Field(default=8, ge=0, le=23)
    business_day_end_hour: int = Field(default=18, ge=1, le=24)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
