"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
value has a default, so the service starts without any ``.env`` file.

Usage::

    from webharvest.config.settings import get_settings

    settings = get_settings()
    timeout_ms = settings.default_timeout_ms
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from webharvest.scraper.models import ScrapeMode

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """Application-wide configuration backed by environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "webharvest"
    """Human-readable application name shown in the OpenAPI docs."""

    debug: bool = False
    """FastAPI debug mode (tracebacks in error responses)."""

    log_level: str = "INFO"
    """Root log level.  ``DEBUG`` also switches to the console renderer."""

    # ------------------------------------------------------------------
    # Scrape defaults
    # ------------------------------------------------------------------

    default_scrape_mode: ScrapeMode = ScrapeMode.AUTO
    """Fetch strategy used when a request does not name one."""

    default_timeout_ms: int = Field(default=30_000, gt=0)
    """Per-fetch timeout in milliseconds applied when a request omits ``timeout``."""

    # ------------------------------------------------------------------
    # Bulk job queue
    # ------------------------------------------------------------------

    default_concurrency: int = Field(default=3, ge=1)
    """Parallel scrape units per job when a request omits ``concurrency``."""

    default_delay_ms: int = Field(default=1_000, ge=0)
    """Pacing delay between queued units when a request omits ``delay``."""

    max_concurrency: int = Field(default=20, ge=1)
    """Upper bound accepted for a job's ``concurrency``.  Each dynamic unit
    launches its own Chromium process, so this caps browser fan-out."""

    max_urls_per_job: int = Field(default=1_000, ge=1)
    """Largest URL list accepted by a single bulk submission."""

    # ------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------

    allowed_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    """Origins the CORS middleware accepts."""

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide :class:`Settings`, built on first call.

    The environment and ``.env`` are read once; tests that change the
    environment must call ``get_settings.cache_clear()`` first.
    """
    return Settings()
