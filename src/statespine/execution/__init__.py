"""
statespine Execution - what actually ran.

history.py   ─ HistoryEvent decoding and paginated history collection
timeline.py  ─ TimelineReconstructor: events → per-state StateStatus
"""

from statespine.execution.history import (
    CollectedHistory,
    HistoryEvent,
    HistoryEventType,
    HistoryPage,
    collect_history,
    parse_history,
)
from statespine.execution.timeline import (
    StateStatus,
    StateStatusValue,
    TimelineReconstructor,
    is_failure_status,
    reconstruct_timeline,
)

__all__ = [
    "CollectedHistory",
    "HistoryEvent",
    "HistoryEventType",
    "HistoryPage",
    "StateStatus",
    "StateStatusValue",
    "TimelineReconstructor",
    "collect_history",
    "is_failure_status",
    "parse_history",
    "reconstruct_timeline",
]
