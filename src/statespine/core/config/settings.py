"""
Centralized settings for statespine.

Manifesto:
    One validated, cached settings object holds every limit the core
    imposes on its collaborators: execution/event/log caps, the log
    window padding, the listing cache TTL and the size of the log query
    worker pool. Values come from ``STATESPINE_*`` environment variables
    or a ``.env`` file.

Tags:
    statespine, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

import os

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StateSpineSettings(BaseSettings):
    """statespine configuration.

    All fields can be set via ``STATESPINE_*`` environment variables (e.g.
    ``STATESPINE_LOG_LIMIT_MAX=1000``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="STATESPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Provider ─────────────────────────────────────────────────
    region: str | None = Field(default=None, description="Cloud region; falls back to AWS_REGION")
    default_provider: str = Field(default="aws_stepfunctions")

    # ── Request limits (default / ceiling) ───────────────────────
    execution_limit_default: int = Field(default=15, ge=1)
    execution_limit_max: int = Field(default=50, ge=1)
    event_limit_default: int = Field(default=500, ge=1)
    event_limit_max: int = Field(default=1000, ge=1)
    log_limit_default: int = Field(default=200, ge=1)
    log_limit_max: int = Field(default=500, ge=1)
    history_page_size: int = Field(default=1000, ge=1, le=1000)

    # ── Log correlation ──────────────────────────────────────────
    log_window_padding_seconds: int = Field(default=120, ge=0)
    log_query_workers: int = Field(default=4, ge=1)

    # ── Cache ────────────────────────────────────────────────────
    cache_ttl_seconds: int = Field(default=60, ge=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="WARNING")
    log_format: str = Field(default="console", description="json, console or auto (JSON when not attached to a terminal)")

    @model_validator(mode="after")
    def _check_limits(self) -> StateSpineSettings:
        for name in ("execution", "event", "log"):
            default = getattr(self, f"{name}_limit_default")
            ceiling = getattr(self, f"{name}_limit_max")
            if default > ceiling:
                raise ValueError(f"{name}_limit_default ({default}) exceeds {name}_limit_max ({ceiling})")
        return self

    @property
    def log_json(self) -> bool | None:
        """``json_format`` for :func:`configure_logging`; ``None`` means auto."""
        return {"json": True, "console": False}.get(self.log_format.lower())

    @property
    def resolved_region(self) -> str | None:
        """Configured region, else the standard AWS environment variables."""
        return self.region or os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")


_settings_cache: dict[str, StateSpineSettings] = {}


def get_settings(*, _force_reload: bool = False) -> StateSpineSettings:
    """Load, validate, and cache a :class:`StateSpineSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = StateSpineSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
