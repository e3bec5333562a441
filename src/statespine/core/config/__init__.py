"""Configuration for statespine (pydantic-settings, ``STATESPINE_`` env prefix)."""

from .settings import StateSpineSettings, clear_settings_cache, get_settings

__all__ = ["StateSpineSettings", "clear_settings_cache", "get_settings"]
