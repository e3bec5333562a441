"""
Collaborator protocols for the operations layer.

statespine never talks to a cloud SDK directly.  A deployment provides
objects satisfying these protocols (typically thin adapters over the
provider's client) and the inspector works purely in terms of the
already-decoded shapes below.

    WorkflowBackend           ── state machines, executions, history pages
    LogBackend                ── bounded log queries          (statespine.logs)
    ContainerLogConfigLookup  ── container task log settings  (statespine.logs)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from statespine.execution.history import HistoryPage
from statespine.logs.correlator import LogBackend
from statespine.logs.locators import ContainerLogConfigLookup


@dataclass(frozen=True)
class StateMachineSummary:
    arn: str
    name: str | None = None
    type: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class StateMachineDescription:
    """
    Full description of one state machine.

    ``logging_destinations`` holds the log group ARNs of its logging
    configuration, in declaration order.
    """

    arn: str
    name: str | None = None
    type: str | None = None
    status: str | None = None
    created_at: datetime | None = None
    definition: str | None = None
    logging_destinations: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ExecutionSummary:
    arn: str
    name: str | None = None
    status: str | None = None
    start_date: datetime | None = None
    stop_date: datetime | None = None
    state_machine_arn: str | None = None


@dataclass(frozen=True)
class ExecutionDescription:
    arn: str
    state_machine_arn: str | None = None
    name: str | None = None
    status: str | None = None
    start_date: datetime | None = None
    stop_date: datetime | None = None
    error: str | None = None
    cause: str | None = None


@runtime_checkable
class WorkflowBackend(Protocol):
    """Read-only access to a workflow provider's control plane.

    Every method may raise; the inspector contains the failure to the
    smallest result it affects.
    """

    def list_state_machines(self) -> list[StateMachineSummary]: ...

    def describe_state_machine(self, state_machine_arn: str) -> StateMachineDescription: ...

    def list_executions(self, state_machine_arn: str, limit: int) -> list[ExecutionSummary]: ...

    def describe_execution(self, execution_arn: str) -> ExecutionDescription: ...

    def get_execution_history(
        self,
        execution_arn: str,
        next_token: str | None,
        max_results: int,
    ) -> HistoryPage: ...


__all__ = [
    "ContainerLogConfigLookup",
    "ExecutionDescription",
    "ExecutionSummary",
    "HistoryPage",
    "LogBackend",
    "StateMachineDescription",
    "StateMachineSummary",
    "WorkflowBackend",
]
