"""Centralised configuration handling for PocketLedger."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_START_DAY = 1
DEFAULT_MATCH_THRESHOLD = 0.7


class Settings(BaseSettings):
    """Engine settings sourced from ``POCKETLEDGER_*`` environment variables."""

    financial_month_start_day: int = Field(default=DEFAULT_START_DAY, ge=1, le=31)
    merchant_match_threshold: float = Field(default=DEFAULT_MATCH_THRESHOLD, ge=0.0, le=1.0)
    subscription_min_transactions: int = Field(default=3, ge=2)
    subscription_min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    subscription_lookback_months: int = Field(default=12, ge=1)
    forecast_history_months: int = Field(default=3, ge=1)
    upcoming_days_ahead: int = Field(default=30, ge=0)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="POCKETLEDGER_", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unsupported log level {value!r}")
        return level

    @property
    def uses_financial_month(self) -> bool:
        return self.financial_month_start_day != 1


@lru_cache
def get_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()
