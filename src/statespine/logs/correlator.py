"""
Log correlation - attach external log lines to the task states of one execution.

Manifesto:
    A task state's logs live wherever its resource writes them, and the
    only link between the two is time.  The correlator windows every task
    state by its timeline entry (falling back to the execution bounds),
    resolves where the resource logs, and issues one bounded query per
    task state.  A single failing lookup or query never costs the other
    task states their logs.

Architecture:
    ::

        WorkflowGraph.task_nodes()  +  {state: StateStatus}
                 │
                 ▼  per task node
        LogWindow(start, end).padded(120s)
        resolve_locator(kind, resource, container_lookup)
                 │                        │
                 │ resolved               │ UnresolvedLogLocationError
                 ▼                        ▼
        LogQuery(limit=per_node_budget)   TaskLogBundle(error=reason)
                 │
                 ▼  ThreadPoolExecutor (bounded)
        LogBackend.filter_log_events(query)
                 │                        │
                 ▼                        ▼ raises
        TaskLogBundle(entries)            TaskLogBundle(error="Failed to fetch logs")

    Bundle order follows graph node order, whatever order queries finish in.

Tags:
    statespine, logs, correlation, budget, partial-failure
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable

from statespine.core.errors import UnresolvedLogLocationError
from statespine.core.logging import get_logger
from statespine.core.timestamps import ensure_utc
from statespine.execution.timeline import StateStatus
from statespine.logs.locators import (
    ContainerLogConfigLookup,
    cloudwatch_console_url,
    log_group_from_arn,
    resolve_locator,
)
from statespine.logs.models import ExecutionLogs, LogLine, LogQuery, LogWindow, TaskLogBundle
from statespine.orchestration.graph import WorkflowGraph, WorkflowNode

logger = get_logger(__name__)

DEFAULT_PADDING = timedelta(seconds=120)
DEFAULT_MAX_WORKERS = 4

FAILED_TO_FETCH_LOGS = "Failed to fetch logs"
NO_LOG_GROUP_CONFIGURED = "No log group configured"
FAILED_TO_FETCH_EXECUTION_LOGS = "Failed to fetch execution logs"


@runtime_checkable
class LogBackend(Protocol):
    """Log query collaborator (e.g. a CloudWatch Logs client adapter)."""

    def filter_log_events(self, query: LogQuery) -> list[LogLine]: ...


def per_node_budget(total: int, count: int) -> int:
    """Share of a total log line budget for each of ``count`` task states.

    Always at least 1 and never more than ``total``.
    """
    return max(1, min(total, total // max(1, count)))


class LogCorrelator:
    """
    Correlates task states with their log lines.

    Args:
        log_backend: Executes bounded log queries
        container_lookup: Resolves container task log configuration
        padding: Added before the start and after the end of every window
        max_workers: Upper bound on concurrent log queries
        region: Region for deep links when the locator has none
    """

    def __init__(
        self,
        log_backend: LogBackend,
        container_lookup: ContainerLogConfigLookup | None = None,
        *,
        padding: timedelta = DEFAULT_PADDING,
        max_workers: int = DEFAULT_MAX_WORKERS,
        region: str | None = None,
    ):
        self.log_backend = log_backend
        self.container_lookup = container_lookup
        self.padding = padding
        self.max_workers = max(1, max_workers)
        self.region = region

    def correlate(
        self,
        graph: WorkflowGraph,
        statuses: Mapping[str, StateStatus],
        execution_start: datetime | None = None,
        execution_stop: datetime | None = None,
        budget: int = 200,
    ) -> list[TaskLogBundle]:
        """Return one bundle per task node, in graph node order."""
        nodes = graph.task_nodes()
        if not nodes:
            return []

        limit = per_node_budget(budget, len(nodes))
        bundles: list[TaskLogBundle] = []
        queries: dict[int, LogQuery] = {}
        for index, node in enumerate(nodes):
            bundle, query = self._prepare(
                node, statuses.get(node.id), execution_start, execution_stop, limit
            )
            bundles.append(bundle)
            if query is not None:
                queries[index] = query

        if queries:
            self._run_queries(bundles, queries)
        return bundles

    def _prepare(
        self,
        node: WorkflowNode,
        status: StateStatus | None,
        execution_start: datetime | None,
        execution_stop: datetime | None,
        limit: int,
    ) -> tuple[TaskLogBundle, LogQuery | None]:
        bundle = TaskLogBundle(
            state_name=node.id,
            status=status.status.value if status and status.status else None,
            resource_kind=node.resource_kind,
            resource=node.resource,
            resource_link=node.resource_link,
        )

        start = status.start_time if status and status.start_time else execution_start
        end = status.end_time if status and status.end_time else execution_stop
        window = LogWindow(start=start, end=end).padded(self.padding)

        try:
            locator = resolve_locator(node.resource_kind, node.resource, self.container_lookup)
        except UnresolvedLogLocationError as e:
            logger.debug("task_logs.location_unresolved", state=node.id, reason=e.message)
            return replace(bundle, error=e.message), None

        bundle = replace(
            bundle,
            locator=locator,
            log_link=cloudwatch_console_url(
                locator.group,
                locator.region or self.region,
                window.start,
                window.end,
                stream_prefix=locator.stream_prefix,
            ),
        )
        query = LogQuery(
            group=locator.group,
            start=window.start,
            end=window.end,
            limit=limit,
            stream_prefix=locator.stream_prefix,
        )
        return bundle, query

    def _run_queries(self, bundles: list[TaskLogBundle], queries: dict[int, LogQuery]) -> None:
        max_workers = min(self.max_workers, len(queries))
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {
                pool.submit(self.log_backend.filter_log_events, query): index
                for index, query in queries.items()
            }
            for future in as_completed(futures):
                index = futures[future]
                query = queries[index]
                try:
                    entries = future.result()
                except Exception:
                    logger.warning(
                        "task_logs.query_failed",
                        state=bundles[index].state_name,
                        log_group=query.group,
                        exc_info=True,
                    )
                    bundles[index] = replace(bundles[index], error=FAILED_TO_FETCH_LOGS)
                    continue
                bundles[index] = replace(bundles[index], entries=tuple(entries[: query.limit]))


def fetch_execution_logs(
    log_backend: LogBackend,
    logging_destinations: Sequence[str] | None,
    execution_id: str,
    start: datetime | None = None,
    stop: datetime | None = None,
    limit: int = 200,
    region: str | None = None,
) -> ExecutionLogs:
    """Logs the workflow engine itself wrote for one execution.

    Args:
        log_backend: Executes the log query
        logging_destinations: Log group ARNs from the workflow's logging configuration
        execution_id: Execution identifier, used as the filter pattern
        start: Execution start
        stop: Execution stop
        limit: Maximum number of lines
        region: Region for the deep link
    """
    group = None
    for destination in logging_destinations or ():
        group = log_group_from_arn(destination)
        if group:
            break
    if not group:
        return ExecutionLogs(error=NO_LOG_GROUP_CONFIGURED)

    start, stop = ensure_utc(start), ensure_utc(stop)
    query = LogQuery(group=group, start=start, end=stop, limit=limit, filter_pattern=execution_id)
    try:
        entries = log_backend.filter_log_events(query)
    except Exception:
        logger.warning("execution_logs.query_failed", execution=execution_id, log_group=group, exc_info=True)
        return ExecutionLogs(log_group=group, error=FAILED_TO_FETCH_EXECUTION_LOGS)

    return ExecutionLogs(
        entries=tuple(entries[:limit]),
        log_group=group,
        log_link=cloudwatch_console_url(group, region, start, stop, filter_pattern=execution_id),
    )


__all__ = [
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_PADDING",
    "FAILED_TO_FETCH_EXECUTION_LOGS",
    "FAILED_TO_FETCH_LOGS",
    "NO_LOG_GROUP_CONFIGURED",
    "LogBackend",
    "LogCorrelator",
    "fetch_execution_logs",
    "per_node_budget",
]
