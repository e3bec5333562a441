"""
Value objects for log correlation.

LogLine        ── one log event (timestamp + message)
LogLocator     ── where a resource writes its logs (group, stream prefix, region)
LogWindow      ── time range to search, optionally padded
LogQuery       ── one bounded request to the log backend
TaskLogBundle  ── per-task-state result: locator, deep link, entries or error
ExecutionLogs  ── execution-level log result
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from statespine.core.timestamps import EPOCH, ensure_utc, to_iso8601


@dataclass(frozen=True)
class LogLine:
    timestamp: datetime | None
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": to_iso8601(self.timestamp), "message": self.message}


@dataclass(frozen=True)
class LogLocator:
    """Log group (and optional stream prefix / region) for one resource."""

    group: str
    stream_prefix: str | None = None
    region: str | None = None


@dataclass(frozen=True)
class LogWindow:
    """Time range of a log search; either bound may be open."""

    start: datetime | None = None
    end: datetime | None = None

    def padded(self, padding: timedelta) -> LogWindow:
        """Widen both bounds by ``padding``; the start never precedes the epoch.

        Naive bounds are taken as UTC.
        """
        start = ensure_utc(self.start)
        end = ensure_utc(self.end)
        return LogWindow(
            start=max(EPOCH, start - padding) if start is not None else None,
            end=end + padding if end is not None else None,
        )


@dataclass(frozen=True)
class LogQuery:
    """One bounded filter request against a log group."""

    group: str
    start: datetime | None = None
    end: datetime | None = None
    limit: int = 100
    stream_prefix: str | None = None
    filter_pattern: str | None = None


@dataclass(frozen=True)
class TaskLogBundle:
    """
    Logs of one task state.

    ``entries`` is empty and ``error`` set when the location could not be
    resolved or the query failed; ``log_link`` is set whenever a locator
    was resolved, even if the query then failed.
    """

    state_name: str
    status: str | None = None
    resource_kind: str | None = None
    resource: str | None = None
    resource_link: str | None = None
    locator: LogLocator | None = None
    log_link: str | None = None
    entries: tuple[LogLine, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "state_name": self.state_name,
            "status": self.status,
            "resource_kind": self.resource_kind,
            "resource": self.resource,
            "resource_link": self.resource_link,
            "log_group": self.locator.group if self.locator else None,
            "log_stream_prefix": self.locator.stream_prefix if self.locator else None,
            "log_link": self.log_link,
            "entries": [entry.to_dict() for entry in self.entries],
            "error": self.error,
        }


@dataclass(frozen=True)
class ExecutionLogs:
    """Execution-level logs from the workflow's own log group."""

    entries: tuple[LogLine, ...] = field(default_factory=tuple)
    log_group: str | None = None
    log_link: str | None = None
    error: str | None = None


__all__ = [
    "ExecutionLogs",
    "LogLine",
    "LogLocator",
    "LogQuery",
    "LogWindow",
    "TaskLogBundle",
]
