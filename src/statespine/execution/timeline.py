"""
Timeline reconstruction - replay history events into per-state status.

Manifesto:
The history stream is the only record of what actually ran.  Replaying it
in order gives each state a status and a time window; one extra rule
covers the gap the stream leaves open: when the execution failed, timed
out or was aborted while a state was still in flight, that state is the
one that failed.

Rules (in event order):

    <Kind>StateEntered   → RUNNING; start_time on first entry only
    SucceedStateEntered  → SUCCEEDED
    FailStateEntered     → FAILED
    <Kind>StateExited    → RUNNING / unset becomes SUCCEEDED; end_time
    end of stream        → failure-class execution marks the state that
                           was entered last and never exited as FAILED

Events with unknown types or without a state name are ignored.  A
truncated stream leaves every state at its last known status.

Tags:
    statespine, execution, timeline, history, failure-attribution
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from statespine.core.logging import get_logger
from statespine.core.timestamps import to_iso8601
from statespine.execution.history import (
    ENTERED_EVENT_TYPES,
    EXITED_EVENT_TYPES,
    HistoryEvent,
    HistoryEventType,
)

logger = get_logger(__name__)

FAILURE_STATUSES = frozenset({"FAILED", "TIMED_OUT", "ABORTED"})


def is_failure_status(status: str | None) -> bool:
    """True for execution statuses that mean the run did not succeed."""
    return status in FAILURE_STATUSES


class StateStatusValue(str, Enum):
    """Status of one state within an execution."""

    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass
class StateStatus:
    """Status and time window of one state."""

    state_name: str
    status: StateStatusValue | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    last_updated: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "state_name": self.state_name,
            "status": self.status.value if self.status else None,
            "start_time": to_iso8601(self.start_time),
            "end_time": to_iso8601(self.end_time),
            "last_updated": to_iso8601(self.last_updated),
        }


class TimelineReconstructor:
    """
    Replays history events into ``{state name: StateStatus}``.

    The result preserves the order in which states were first referenced.

    Example:
        >>> statuses = TimelineReconstructor().reconstruct(events, "FAILED")
        >>> statuses["Load"].status
        <StateStatusValue.FAILED: 'FAILED'>
    """

    def reconstruct(
        self,
        events: Iterable[HistoryEvent],
        execution_status: str | None = None,
    ) -> dict[str, StateStatus]:
        statuses: dict[str, StateStatus] = {}
        last_entered: str | None = None

        for event in events:
            name = event.state_name
            if event.event_type is None or not name or not name.strip():
                continue

            match event.event_type:
                case HistoryEventType.SUCCEED_STATE_ENTERED:
                    last_entered = name
                    self._enter(statuses, name, StateStatusValue.SUCCEEDED, event.timestamp)
                case HistoryEventType.FAIL_STATE_ENTERED:
                    last_entered = name
                    self._enter(statuses, name, StateStatusValue.FAILED, event.timestamp)
                case kind if kind in ENTERED_EVENT_TYPES:
                    last_entered = name
                    self._enter(statuses, name, StateStatusValue.RUNNING, event.timestamp)
                case kind if kind in EXITED_EVENT_TYPES:
                    if name == last_entered:
                        last_entered = None
                    self._exit(statuses, name, event.timestamp)

        if is_failure_status(execution_status) and last_entered:
            statuses.setdefault(last_entered, StateStatus(state_name=last_entered))
            statuses[last_entered].status = StateStatusValue.FAILED
            logger.debug(
                "timeline.failure_attributed",
                state=last_entered,
                execution_status=execution_status,
            )

        return statuses

    @staticmethod
    def _enter(
        statuses: dict[str, StateStatus],
        name: str,
        status: StateStatusValue,
        timestamp: datetime | None,
    ) -> None:
        record = statuses.setdefault(name, StateStatus(state_name=name))
        record.status = status
        if timestamp is not None:
            record.last_updated = timestamp
            if record.start_time is None:
                record.start_time = timestamp

    @staticmethod
    def _exit(statuses: dict[str, StateStatus], name: str, timestamp: datetime | None) -> None:
        record = statuses.setdefault(name, StateStatus(state_name=name))
        if record.status in (None, StateStatusValue.RUNNING):
            record.status = StateStatusValue.SUCCEEDED
        if timestamp is not None:
            record.end_time = timestamp
            record.last_updated = timestamp


def reconstruct_timeline(
    events: Iterable[HistoryEvent],
    execution_status: str | None = None,
) -> dict[str, StateStatus]:
    """Shortcut for ``TimelineReconstructor().reconstruct(...)``."""
    return TimelineReconstructor().reconstruct(events, execution_status)


__all__ = [
    "FAILURE_STATUSES",
    "StateStatus",
    "StateStatusValue",
    "TimelineReconstructor",
    "is_failure_status",
    "reconstruct_timeline",
]
