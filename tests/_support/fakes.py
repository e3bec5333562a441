"""
Fake collaborators with deterministic fault injection.

Usage in test code::

    from tests._support.fakes import FakeLogBackend

    logs = FakeLogBackend(lines={"/aws/lambda/extract": ["hello"]})
    logs.fail_group("/aws/lambda/load")
    # ... run the correlator ...
    assert [q.group for q in logs.queries] == [...]
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

from statespine.execution.history import HistoryEvent, HistoryPage, parse_history
from statespine.logs.models import LogLine, LogLocator, LogQuery
from statespine.ops.backends import (
    ExecutionDescription,
    ExecutionSummary,
    StateMachineDescription,
    StateMachineSummary,
)


class InjectedFault(RuntimeError):
    """Raised by fakes where a fault was installed."""


class FakeLogBackend:
    """Returns canned lines per log group and records every query."""

    def __init__(self, lines: dict[str, list[str]] | None = None, default_count: int = 0):
        self.lines = lines or {}
        self.default_count = default_count
        self.queries: list[LogQuery] = []
        self._faults: set[str] = set()
        self._lock = threading.Lock()

    def fail_group(self, group: str) -> None:
        self._faults.add(group)

    def filter_log_events(self, query: LogQuery) -> list[LogLine]:
        with self._lock:
            self.queries.append(query)
        if query.group in self._faults:
            raise InjectedFault(f"log query failed for {query.group}")
        messages = self.lines.get(query.group)
        if messages is None:
            messages = [f"{query.group} line {i}" for i in range(self.default_count)]
        return [LogLine(timestamp=query.start, message=m) for m in messages[: query.limit]]


class FakeContainerLookup:
    """Maps task definitions to locators; unknown ones resolve to ``None``."""

    def __init__(self, locators: dict[str, LogLocator] | None = None, fail: bool = False):
        self.locators = locators or {}
        self.fail = fail
        self.calls: list[str] = []

    def describe_log_configuration(self, task_definition: str) -> LogLocator | None:
        self.calls.append(task_definition)
        if self.fail:
            raise InjectedFault("describe task definition failed")
        return self.locators.get(task_definition)


@dataclass
class FakeWorkflowBackend:
    """In-memory workflow control plane.

    ``faults`` names methods (or ``"<method>:<arn>"``) that should raise;
    ``"get_execution_history@<token>"`` fails only the page at that token.
    """

    state_machines: list[StateMachineDescription] = field(default_factory=list)
    executions: dict[str, list[ExecutionSummary]] = field(default_factory=dict)
    descriptions: dict[str, ExecutionDescription] = field(default_factory=dict)
    history: dict[str, list[HistoryEvent]] = field(default_factory=dict)
    page_size: int = 2
    faults: set[str] = field(default_factory=set)
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    def _check(self, method: str, arn: str | None = None) -> None:
        self.calls.append((method, arn))
        if method in self.faults or f"{method}:{arn}" in self.faults:
            raise InjectedFault(f"{method} failed for {arn}")

    def list_state_machines(self) -> list[StateMachineSummary]:
        self._check("list_state_machines")
        return [
            StateMachineSummary(arn=sm.arn, name=sm.name, type=sm.type, created_at=sm.created_at)
            for sm in self.state_machines
        ]

    def describe_state_machine(self, state_machine_arn: str) -> StateMachineDescription:
        self._check("describe_state_machine", state_machine_arn)
        for sm in self.state_machines:
            if sm.arn == state_machine_arn:
                return sm
        raise KeyError(state_machine_arn)

    def list_executions(self, state_machine_arn: str, limit: int) -> list[ExecutionSummary]:
        self._check("list_executions", state_machine_arn)
        return self.executions.get(state_machine_arn, [])[:limit]

    def describe_execution(self, execution_arn: str) -> ExecutionDescription:
        self._check("describe_execution", execution_arn)
        return self.descriptions[execution_arn]

    def get_execution_history(
        self, execution_arn: str, next_token: str | None, max_results: int
    ) -> HistoryPage:
        self._check("get_execution_history", execution_arn)
        if f"get_execution_history@{next_token}" in self.faults:
            raise InjectedFault(f"history page {next_token} failed for {execution_arn}")
        events = self.history.get(execution_arn, [])
        start = int(next_token) if next_token else 0
        size = min(max_results, self.page_size)
        end = start + size
        return HistoryPage(
            events=events[start:end],
            next_token=str(end) if end < len(events) else None,
        )


def history_events(*raw: dict) -> list[HistoryEvent]:
    return parse_history(raw)


def fixed_clock(value: datetime):
    """Clock callable whose time can be moved with ``.advance``."""

    class _Clock:
        def __init__(self):
            self.now = value

        def __call__(self) -> datetime:
            return self.now

        def advance(self, delta) -> None:
            self.now = self.now + delta

    return _Clock()
