"""
Response cache for whole workflow-listing responses.

Listing every state machine together with its recent executions costs
one upstream call per workflow, so the operations layer keeps whole
responses for a short TTL keyed by ``(provider, limit)``.

Manifesto:
    - **Protocol-based:** ``ResponseCache`` defines the contract; callers
      inject an instance instead of reaching for process-wide state
    - **Immutable entries:** A ``CachedResponse`` is never mutated in
      place. ``put`` swaps the entry for a key wholesale, so readers see
      either the old or the new response, never a mix
    - **TTL policy:** Expiry is decided at read time against the entry's
      ``generated_at``

Architecture:
    ::

        ResponseCache (Protocol)
        └── InMemoryResponseCache  - single-process, lock-guarded swaps

        API: get(key) → CachedResponse | None
             put(key, value, generated_at)
             invalidate(key)
             clear()

Examples:
    >>> cache = InMemoryResponseCache(ttl_seconds=60)
    >>> key = cache_key("aws_stepfunctions", 15)
    >>> cache.put(key, response, generated_at=utc_now())
    >>> cache.get(key).value is response
    True

Tags:
    cache, ttl, in-memory, statespine
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol

from statespine.core.timestamps import utc_now


def cache_key(provider: str, limit: int) -> str:
    """Build the cache key for a listing response."""
    return f"{provider}:{limit}"


@dataclass(frozen=True)
class CachedResponse:
    """An immutable cached value and the moment it was generated."""

    generated_at: datetime
    value: Any


class ResponseCache(Protocol):
    """Protocol for response cache implementations."""

    def get(self, key: str) -> CachedResponse | None:
        """Return the entry for ``key`` or ``None`` when missing or expired."""
        ...

    def put(self, key: str, value: Any, generated_at: datetime) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        ...

    def invalidate(self, key: str) -> None:
        """Drop the entry for ``key``. No-op when absent."""
        ...

    def clear(self) -> None:
        """Drop all entries."""
        ...


class InMemoryResponseCache:
    """In-process TTL cache of whole responses.

    Attributes:
        ttl: How long an entry stays fresh after ``generated_at``.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CachedResponse] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CachedResponse | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.generated_at >= self.ttl:
            return None
        return entry

    def put(self, key: str, value: Any, generated_at: datetime) -> None:
        entry = CachedResponse(generated_at=generated_at, value=value)
        with self._lock:
            self._entries[key] = entry

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def size(self) -> int:
        """Return current number of stored entries (fresh or not)."""
        return len(self._entries)


__all__ = [
    "CachedResponse",
    "InMemoryResponseCache",
    "ResponseCache",
    "cache_key",
]
