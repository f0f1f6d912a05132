"""Configuration management for ob_billing."""

from datetime import date
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 13.99JA scheduling
    ja_slot_cap: int = Field(
        default=12,
        description="Maximum 13.99JA lines per patient",
    )
    ja_value: int = Field(
        default=55,
        description="Dollar value of one 13.99JA line, used against callback value",
    )
    delivery_buffer_minutes: int = Field(
        default=30,
        description="No 13.99JA is billed this many minutes before delivery",
    )

    # Induction caps
    induction_daily_limit: int = Field(
        default=2,
        description="Inductions billable within any rolling 24 hours",
    )
    induction_total_limit: int = Field(
        default=4,
        description="Inductions billable per patient",
    )

    # Holiday calendars for the 03.01AA premium
    stat_holidays: list[date] = Field(default_factory=list)
    designated_stat_holidays: list[date] = Field(default_factory=list)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
