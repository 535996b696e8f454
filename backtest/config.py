"""Backtest-specific configuration.

Independent of app/config.py. Every setting can be overridden with a
``BACKTEST_``-prefixed environment variable or a ``.env`` entry.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BacktestSettings(BaseSettings):
    """Backtest configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BACKTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Market data API
    binance_base_url: str = "https://api.binance.com"
    binance_api_key: str = ""
    interval: str = "1h"
    page_size: int = Field(default=1000, gt=0, le=1000)
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    # Pagination pacing / hardening
    page_delay_seconds: float = Field(default=0.25, ge=0)
    rate_limit_per_minute: int | None = Field(default=None, gt=0)
    max_retries: int = Field(default=0, ge=0)
    fetch_deadline_seconds: float | None = None

    # Simulation
    force_close_at_end: bool = False


_settings: BacktestSettings | None = None


def get_backtest_settings() -> BacktestSettings:
    """Get cached backtest settings instance."""
    global _settings
    if _settings is None:
        _settings = BacktestSettings()
    return _settings


def reset_backtest_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
