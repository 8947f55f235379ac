"""Centralised configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` or ``AnchorConfig(...)``
directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/anchorlight/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_HIGHLIGHT_COLOR = "#FFEB3B"


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class AnchorConfig(BaseModel):
    """Anchor resolution, retry and restoration timings.

    All durations are in seconds.
    """

    min_text_length: int = 3
    default_color: str = DEFAULT_HIGHLIGHT_COLOR
    retry_ceiling: int = 3
    retry_base_seconds: float = 1.0
    debounce_seconds: float = 0.5
    observer_cap_seconds: float = 30.0
    settle_seconds: float = 0.6
    pulse_seconds: float = 2.5
    navigation_delay_seconds: float = 0.5

    @model_validator(mode="after")
    def timings_are_sane(self) -> AnchorConfig:
        if self.retry_ceiling < 1:
            msg = "ANCHOR__RETRY_CEILING must be at least 1"
            raise ValueError(msg)
        if self.min_text_length < 1:
            msg = "ANCHOR__MIN_TEXT_LENGTH must be at least 1"
            raise ValueError(msg)
        for name in (
            "retry_base_seconds",
            "debounce_seconds",
            "observer_cap_seconds",
            "pulse_seconds",
        ):
            if getattr(self, name) <= 0:
                msg = f"ANCHOR__{name.upper()} must be positive"
                raise ValueError(msg)
        if self.settle_seconds < 0 or self.navigation_delay_seconds < 0:
            msg = "Settle and navigation delays cannot be negative"
            raise ValueError(msg)
        return self


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``ANCHOR__RETRY_CEILING``, ``ANCHOR__DEBOUNCE_SECONDS``,
    ``APP__LOG_DIR``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    anchor: AnchorConfig = AnchorConfig()
    app: AppConfig = AppConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
