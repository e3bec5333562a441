"""
UTC timestamp utilities.

Workflow history and log backends speak different time dialects:
history events arrive as ``datetime`` objects or ISO strings, while log
query APIs and console deep links want epoch milliseconds. Everything
inside statespine is a timezone-aware ``datetime``; conversion happens
at the edges through these helpers.

STDLIB ONLY - NO PYDANTIC.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_epoch_ms(dt: datetime | None) -> int | None:
    """Convert a datetime to epoch milliseconds."""
    if dt is None:
        return None
    return int(ensure_utc(dt).timestamp() * 1000)


def from_epoch_ms(value: int | float | None) -> datetime | None:
    """Convert epoch milliseconds to a UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return dt.isoformat()


def coerce_timestamp(value: object) -> datetime | None:
    """Best-effort conversion of a provider timestamp.

    Accepts ``datetime``, ISO-8601 strings (``Z`` suffix allowed) and
    epoch milliseconds. Anything else yields ``None``.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return from_epoch_ms(value)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


EPOCH = datetime.fromtimestamp(0, tz=UTC)
