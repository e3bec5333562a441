"""Response models for the statespine operations layer.

Pydantic v2 models returned by :class:`~statespine.ops.inspector.WorkflowInspector`.
They are structurally complete on every path: a failed upstream call sets
``error`` on the smallest enclosing model and leaves every collection empty
rather than missing, so serialising a response never needs a special case.

Composition::

    WorkflowOverviewResponse
    └── WorkflowOverview[]            (error: "Failed to load executions")
        └── ExecutionOverview[]

    WorkflowDetailResponse            (error: "Failed to load workflow detail")
    ├── WorkflowGraphModel            (error: definition unusable)
    └── ExecutionOverview[]           (error / cause for failed runs)

    ExecutionDetailResponse           (error: "Failed to load workflow execution detail")
    ├── StateStatusModel[]            (history_error)
    ├── LogLineModel[]                (logs_error, logs_url)
    └── TaskLogModel[]                (error per task state)

Related Modules:
    - :mod:`statespine.ops.inspector` - produces these responses
    - :mod:`statespine.cli.app` - prints graph and timeline models as JSON

Tags:
    responses, models, pydantic, partial-failure
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from statespine.core.timestamps import utc_now
from statespine.execution.timeline import StateStatus
from statespine.logs.models import ExecutionLogs, LogLine, TaskLogBundle
from statespine.ops.backends import ExecutionDescription, ExecutionSummary
from statespine.orchestration.graph import WorkflowEdge, WorkflowGraph, WorkflowNode


def _duration_ms(start: datetime | None, stop: datetime | None) -> int | None:
    if start is None or stop is None:
        return None
    return int((stop - start).total_seconds() * 1000)


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


class GraphNodeModel(BaseModel):
    id: str
    label: str
    type: str
    resource: str | None = None
    resource_kind: str | None = None
    resource_link: str | None = None

    @classmethod
    def from_node(cls, node: WorkflowNode) -> GraphNodeModel:
        return cls(**node.to_dict())


class GraphEdgeModel(BaseModel):
    source: str
    target: str
    kind: str

    @classmethod
    def from_edge(cls, edge: WorkflowEdge) -> GraphEdgeModel:
        return cls(**edge.to_dict())


class WorkflowGraphModel(BaseModel):
    start_at: str | None = None
    nodes: list[GraphNodeModel] = Field(default_factory=list)
    edges: list[GraphEdgeModel] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_graph(cls, graph: WorkflowGraph) -> WorkflowGraphModel:
        return cls(
            start_at=graph.start_at,
            nodes=[GraphNodeModel.from_node(node) for node in graph.nodes],
            edges=[GraphEdgeModel.from_edge(edge) for edge in graph.edges],
            error=graph.error,
        )


# ---------------------------------------------------------------------------
# Executions / timeline / logs
# ---------------------------------------------------------------------------


class ExecutionOverview(BaseModel):
    """One execution in a listing; ``error`` / ``cause`` only for failed runs."""

    arn: str
    name: str | None = None
    status: str | None = None
    start_time: datetime | None = None
    stop_time: datetime | None = None
    duration_ms: int | None = None
    error: str | None = None
    cause: str | None = None

    @classmethod
    def from_summary(cls, summary: ExecutionSummary) -> ExecutionOverview:
        return cls(
            arn=summary.arn,
            name=summary.name,
            status=summary.status,
            start_time=summary.start_date,
            stop_time=summary.stop_date,
            duration_ms=_duration_ms(summary.start_date, summary.stop_date),
        )


class StateStatusModel(BaseModel):
    state_name: str
    status: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    last_updated: datetime | None = None

    @classmethod
    def from_status(cls, status: StateStatus) -> StateStatusModel:
        return cls(
            state_name=status.state_name,
            status=status.status.value if status.status else None,
            start_time=status.start_time,
            end_time=status.end_time,
            last_updated=status.last_updated,
        )


class LogLineModel(BaseModel):
    timestamp: datetime | None = None
    message: str

    @classmethod
    def from_line(cls, line: LogLine) -> LogLineModel:
        return cls(timestamp=line.timestamp, message=line.message)


class TaskLogModel(BaseModel):
    state_name: str
    status: str | None = None
    resource_kind: str | None = None
    resource: str | None = None
    resource_link: str | None = None
    log_group: str | None = None
    log_stream_prefix: str | None = None
    log_link: str | None = None
    logs: list[LogLineModel] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_bundle(cls, bundle: TaskLogBundle) -> TaskLogModel:
        return cls(
            state_name=bundle.state_name,
            status=bundle.status,
            resource_kind=bundle.resource_kind,
            resource=bundle.resource,
            resource_link=bundle.resource_link,
            log_group=bundle.locator.group if bundle.locator else None,
            log_stream_prefix=bundle.locator.stream_prefix if bundle.locator else None,
            log_link=bundle.log_link,
            logs=[LogLineModel.from_line(line) for line in bundle.entries],
            error=bundle.error,
        )


# ---------------------------------------------------------------------------
# Top-level responses
# ---------------------------------------------------------------------------


class WorkflowOverview(BaseModel):
    provider: str
    id: str
    name: str | None = None
    type: str | None = None
    status: str | None = None
    created_at: datetime | None = None
    executions: list[ExecutionOverview] = Field(default_factory=list)
    error: str | None = None


class WorkflowOverviewResponse(BaseModel):
    provider: str | None = None
    region: str | None = None
    generated_at: datetime = Field(default_factory=utc_now)
    execution_limit: int = 0
    total_workflows: int = 0
    workflows: list[WorkflowOverview] = Field(default_factory=list)
    error: str | None = None


class WorkflowDetailResponse(BaseModel):
    provider: str | None = None
    id: str | None = None
    name: str | None = None
    type: str | None = None
    status: str | None = None
    created_at: datetime | None = None
    definition: str | None = None
    graph: WorkflowGraphModel | None = None
    executions: list[ExecutionOverview] = Field(default_factory=list)
    error: str | None = None


class ExecutionDetailResponse(BaseModel):
    """Status, timeline and (optionally) logs of one execution.

    ``execution_error`` / ``cause`` describe why the execution itself failed;
    ``error`` is reserved for failures loading this response.
    """

    provider: str | None = None
    execution_arn: str | None = None
    state_machine_arn: str | None = None
    status: str | None = None
    start_time: datetime | None = None
    stop_time: datetime | None = None
    duration_ms: int | None = None
    execution_error: str | None = None
    cause: str | None = None
    state_statuses: list[StateStatusModel] = Field(default_factory=list)
    history_error: str | None = None
    logs: list[LogLineModel] = Field(default_factory=list)
    logs_error: str | None = None
    logs_url: str | None = None
    task_logs: list[TaskLogModel] = Field(default_factory=list)
    error: str | None = None

    def apply_description(self, describe: ExecutionDescription) -> None:
        self.state_machine_arn = describe.state_machine_arn
        self.status = describe.status
        self.start_time = describe.start_date
        self.stop_time = describe.stop_date
        self.duration_ms = _duration_ms(describe.start_date, describe.stop_date)
        self.execution_error = describe.error
        self.cause = describe.cause

    def apply_execution_logs(self, result: ExecutionLogs) -> None:
        self.logs = [LogLineModel.from_line(line) for line in result.entries]
        self.logs_error = result.error
        self.logs_url = result.log_link


__all__ = [
    "ExecutionDetailResponse",
    "ExecutionOverview",
    "GraphEdgeModel",
    "GraphNodeModel",
    "LogLineModel",
    "StateStatusModel",
    "TaskLogModel",
    "WorkflowDetailResponse",
    "WorkflowGraphModel",
    "WorkflowOverview",
    "WorkflowOverviewResponse",
]
