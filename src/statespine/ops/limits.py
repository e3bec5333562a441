"""
Request limit normalization.

Callers pass optional, unvalidated limits.  Every limit is clamped into
``[1, maximum]`` and ``None`` means the configured default.
"""

from __future__ import annotations

from dataclasses import dataclass

from statespine.core.config import StateSpineSettings


def normalize_limit(value: int | None, default: int, maximum: int) -> int:
    """Clamp ``value`` into ``[1, maximum]``; ``None`` gives ``default``.

    Example:
        >>> normalize_limit(0, 15, 50)
        1
        >>> normalize_limit(None, 15, 50)
        15
        >>> normalize_limit(99, 15, 50)
        50
    """
    if value is None:
        return default
    if value < 1:
        return 1
    if value > maximum:
        return maximum
    return value


@dataclass(frozen=True)
class RequestLimits:
    """Defaults and ceilings for the three request limits."""

    execution_default: int = 15
    execution_max: int = 50
    event_default: int = 500
    event_max: int = 1000
    log_default: int = 200
    log_max: int = 500

    @classmethod
    def from_settings(cls, settings: StateSpineSettings) -> RequestLimits:
        return cls(
            execution_default=settings.execution_limit_default,
            execution_max=settings.execution_limit_max,
            event_default=settings.event_limit_default,
            event_max=settings.event_limit_max,
            log_default=settings.log_limit_default,
            log_max=settings.log_limit_max,
        )

    def executions(self, value: int | None) -> int:
        return normalize_limit(value, self.execution_default, self.execution_max)

    def events(self, value: int | None) -> int:
        return normalize_limit(value, self.event_default, self.event_max)

    def logs(self, value: int | None) -> int:
        return normalize_limit(value, self.log_default, self.log_max)


__all__ = ["RequestLimits", "normalize_limit"]
