"""
Execution history events.

The provider records an execution as an ordered stream of events; only
the state entered / exited events matter for the per-state timeline.
This module decodes provider-shaped event dicts into :class:`HistoryEvent`
records and drains the paginated history API up to an event cap.

Event shape (already JSON-decoded)::

    {
        "id": 3,
        "type": "TaskStateEntered",
        "timestamp": datetime | "2024-05-01T12:00:00Z" | 1714564800000,
        "stateEnteredEventDetails": {"name": "Extract"},
    }
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from statespine.core.logging import get_logger
from statespine.core.timestamps import coerce_timestamp

logger = get_logger(__name__)

MAX_HISTORY_PAGE_SIZE = 1000


class HistoryEventType(str, Enum):
    """History event tags that affect state status."""

    TASK_STATE_ENTERED = "TaskStateEntered"
    TASK_STATE_EXITED = "TaskStateExited"
    CHOICE_STATE_ENTERED = "ChoiceStateEntered"
    CHOICE_STATE_EXITED = "ChoiceStateExited"
    PARALLEL_STATE_ENTERED = "ParallelStateEntered"
    PARALLEL_STATE_EXITED = "ParallelStateExited"
    MAP_STATE_ENTERED = "MapStateEntered"
    MAP_STATE_EXITED = "MapStateExited"
    PASS_STATE_ENTERED = "PassStateEntered"
    PASS_STATE_EXITED = "PassStateExited"
    WAIT_STATE_ENTERED = "WaitStateEntered"
    WAIT_STATE_EXITED = "WaitStateExited"
    SUCCEED_STATE_ENTERED = "SucceedStateEntered"
    FAIL_STATE_ENTERED = "FailStateEntered"

    @classmethod
    def from_tag(cls, value: object) -> HistoryEventType | None:
        """Known event type for ``value``, ``None`` for anything else."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


ENTERED_EVENT_TYPES = frozenset({
    HistoryEventType.TASK_STATE_ENTERED,
    HistoryEventType.CHOICE_STATE_ENTERED,
    HistoryEventType.PARALLEL_STATE_ENTERED,
    HistoryEventType.MAP_STATE_ENTERED,
    HistoryEventType.PASS_STATE_ENTERED,
    HistoryEventType.WAIT_STATE_ENTERED,
})

EXITED_EVENT_TYPES = frozenset({
    HistoryEventType.TASK_STATE_EXITED,
    HistoryEventType.CHOICE_STATE_EXITED,
    HistoryEventType.PARALLEL_STATE_EXITED,
    HistoryEventType.MAP_STATE_EXITED,
    HistoryEventType.PASS_STATE_EXITED,
    HistoryEventType.WAIT_STATE_EXITED,
})


@dataclass(frozen=True)
class HistoryEvent:
    """
    One execution history event.

    Attributes:
        event_type: Known event type, ``None`` for tags the timeline ignores
        state_name: Name of the state entered or exited
        timestamp: When the event happened (UTC)
        event_id: Provider sequence number
        raw_type: The tag as the provider sent it
    """

    event_type: HistoryEventType | None
    state_name: str | None = None
    timestamp: datetime | None = None
    event_id: int | None = None
    raw_type: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HistoryEvent:
        raw_type = data.get("type")
        event_id = data.get("id")
        return cls(
            event_type=HistoryEventType.from_tag(raw_type),
            state_name=_state_name(data),
            timestamp=coerce_timestamp(data.get("timestamp")),
            event_id=event_id if isinstance(event_id, int) and not isinstance(event_id, bool) else None,
            raw_type=raw_type if isinstance(raw_type, str) else None,
        )


def _state_name(data: Mapping[str, Any]) -> str | None:
    for key in ("stateEnteredEventDetails", "stateExitedEventDetails"):
        details = data.get(key)
        if isinstance(details, Mapping):
            name = details.get("name")
            return name if isinstance(name, str) else None
    return None


def parse_history(items: Iterable[Any]) -> list[HistoryEvent]:
    """Decode a list of event dicts; already-decoded events pass through, anything else is dropped."""
    events = []
    for item in items:
        if isinstance(item, HistoryEvent):
            events.append(item)
        elif isinstance(item, Mapping):
            events.append(HistoryEvent.from_dict(item))
    return events


@dataclass
class HistoryPage:
    """One page of execution history."""

    events: list[HistoryEvent] = field(default_factory=list)
    next_token: str | None = None


@dataclass
class CollectedHistory:
    """Events drained from the history API.

    ``error`` is set when a page request failed; ``events`` then holds
    everything fetched before the failure, in provider order.
    """

    events: list[HistoryEvent] = field(default_factory=list)
    truncated: bool = False
    error: Exception | None = None


HistoryFetcher = Callable[[str | None, int], HistoryPage]


def collect_history(
    fetch: HistoryFetcher,
    max_events: int,
    page_size: int = MAX_HISTORY_PAGE_SIZE,
) -> CollectedHistory:
    """Drain a paginated history API.

    A failing page ends the walk; the events of earlier pages are kept so
    the timeline can still be rebuilt from the prefix.

    Args:
        fetch: ``fetch(next_token, max_results) -> HistoryPage``
        max_events: Stop after this many events
        page_size: Largest page to request; capped at 1000

    Returns:
        At most ``max_events`` events in provider order, plus whether the
        stream was cut short by the cap or by a failed request.
    """
    page_size = max(1, min(page_size, MAX_HISTORY_PAGE_SIZE))
    result = CollectedHistory()
    next_token: str | None = None
    pages = 0
    while True:
        remaining = max_events - len(result.events)
        if remaining <= 0:
            break
        try:
            page = fetch(next_token, min(remaining, page_size))
        except Exception as e:
            logger.warning("history.page_failed", page=pages + 1, events=len(result.events), exc_info=True)
            result.error = e
            break
        pages += 1
        result.events.extend(parse_history(page.events)[:remaining])
        next_token = page.next_token
        if not next_token:
            break
    result.truncated = result.error is None and bool(next_token)
    logger.debug(
        "history.collected",
        events=len(result.events),
        pages=pages,
        truncated=result.truncated,
        failed=result.error is not None,
    )
    return result


__all__ = [
    "ENTERED_EVENT_TYPES",
    "EXITED_EVENT_TYPES",
    "MAX_HISTORY_PAGE_SIZE",
    "CollectedHistory",
    "HistoryEvent",
    "HistoryEventType",
    "HistoryFetcher",
    "HistoryPage",
    "collect_history",
    "parse_history",
]
