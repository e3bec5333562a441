"""
Workflow inspector - the operations layer over one workflow provider.

Manifesto:
    The three core components (graph builder, timeline reconstructor, log
    correlator) each answer one question.  ``WorkflowInspector`` asks them
    in the right order for a request and turns every partial failure into
    an ``error`` string on the smallest result it affects.  Only failing
    to describe the requested state machine or execution fails the whole
    response.

Architecture:
    ::

        resolve_inspector(provider)
          ├── WorkflowInspector(backend, log_backend, container_lookup)
          │     list_workflows(limit, refresh)      ── cached per (provider, limit)
          │     get_workflow_detail(id, limit)      ── graph + recent executions
          │     get_execution_detail(arn, ...)      ── timeline (+ logs)
          └── UnsupportedInspector(provider, message)
                same operations, error envelopes only

        get_execution_detail:
            describe_execution ──► collect_history ──► TimelineReconstructor
                 (mandatory)                                 │
                                     include_logs ──► describe_state_machine
                                                      ├── fetch_execution_logs
                                                      └── build_workflow_graph ──► LogCorrelator

Tags:
    statespine, operations, inspector, provider, partial-failure
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from statespine.core.cache import InMemoryResponseCache, ResponseCache, cache_key
from statespine.core.config import StateSpineSettings, get_settings
from statespine.core.errors import ExternalCallError, UnsupportedProviderError
from statespine.core.logging import LogContext, get_logger
from statespine.core.timestamps import utc_now
from statespine.execution.history import collect_history
from statespine.execution.timeline import TimelineReconstructor, is_failure_status
from statespine.logs.correlator import LogCorrelator, fetch_execution_logs
from statespine.ops.backends import (
    ContainerLogConfigLookup,
    LogBackend,
    StateMachineSummary,
    WorkflowBackend,
)
from statespine.ops.limits import RequestLimits
from statespine.ops.providers import WorkflowProvider, unsupported_message
from statespine.ops.responses import (
    ExecutionDetailResponse,
    ExecutionOverview,
    StateStatusModel,
    TaskLogModel,
    WorkflowDetailResponse,
    WorkflowGraphModel,
    WorkflowOverview,
    WorkflowOverviewResponse,
)
from statespine.orchestration.graph import build_workflow_graph
from statespine.orchestration.resources import ResourceResolver, default_resolver

logger = get_logger(__name__)

FAILED_TO_LOAD_OVERVIEW = "Failed to load workflow overview"
FAILED_TO_LOAD_EXECUTIONS = "Failed to load executions"
FAILED_TO_LOAD_DETAIL = "Failed to load workflow detail"
FAILED_TO_LOAD_EXECUTION_DETAIL = "Failed to load workflow execution detail"
FAILED_TO_LOAD_HISTORY = "Failed to load execution history"
FAILED_TO_LOAD_DEFINITION = "Failed to load workflow definition"
NO_LOG_BACKEND = "No log backend configured"


class WorkflowInspector:
    """
    Inspects workflows and executions of one supported provider.

    Args:
        backend: Provider control-plane collaborator
        log_backend: Log query collaborator; without it logs are reported
            as unavailable
        container_lookup: Container task log configuration collaborator
        cache: Listing response cache; a private in-memory cache by default
        settings: Limits, padding, workers and region
        resolver: Task resource resolution; defaults to function and
            container-task resolution for the configured region
        clock: Source of ``generated_at`` timestamps
    """

    provider = WorkflowProvider.AWS_STEP_FUNCTIONS
    supported = True

    def __init__(
        self,
        backend: WorkflowBackend,
        log_backend: LogBackend | None = None,
        container_lookup: ContainerLogConfigLookup | None = None,
        *,
        cache: ResponseCache | None = None,
        settings: StateSpineSettings | None = None,
        resolver: ResourceResolver | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or get_settings()
        self.backend = backend
        self.log_backend = log_backend
        self.container_lookup = container_lookup
        self.cache = cache or InMemoryResponseCache(ttl_seconds=self.settings.cache_ttl_seconds, clock=clock)
        self.limits = RequestLimits.from_settings(self.settings)
        self.region = self.settings.resolved_region
        self.resolver = resolver or default_resolver(self.region)
        self._clock = clock

    def _call(self, method: str, *args):
        """Invoke a backend method; any failure surfaces as ExternalCallError."""
        try:
            return getattr(self.backend, method)(*args)
        except Exception as e:
            raise ExternalCallError(f"{method} failed", cause=e).with_context(
                provider=self.provider.value, operation=method
            ) from e

    # ── Listing ─────────────────────────────────────────────────

    def list_workflows(self, limit: int | None = None, refresh: bool = False) -> WorkflowOverviewResponse:
        """All workflows with their most recent executions.

        Responses are cached per ``(provider, limit)``; ``refresh`` skips
        the cached copy and replaces it. Callers always get their own copy,
        so the cached entry never changes after it is stored.
        """
        execution_limit = self.limits.executions(limit)
        key = cache_key(self.provider.value, execution_limit)
        if not refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("workflows.cache_hit", key=key)
                return cached.value.model_copy(deep=True)

        generated_at = self._clock()
        response = WorkflowOverviewResponse(
            provider=self.provider.value,
            region=self.region,
            generated_at=generated_at,
            execution_limit=execution_limit,
        )
        try:
            summaries = self._call("list_state_machines")
        except ExternalCallError:
            logger.warning("workflows.overview_failed", provider=self.provider.value, exc_info=True)
            response.error = FAILED_TO_LOAD_OVERVIEW
            return response

        response.workflows = [self._workflow_overview(summary, execution_limit) for summary in summaries]
        response.total_workflows = len(response.workflows)
        self.cache.put(key, response.model_copy(deep=True), generated_at=generated_at)
        return response

    def _workflow_overview(self, summary: StateMachineSummary, execution_limit: int) -> WorkflowOverview:
        overview = WorkflowOverview(
            provider=self.provider.value,
            id=summary.arn,
            name=summary.name,
            type=summary.type,
            created_at=summary.created_at,
        )
        try:
            executions = self._call("list_executions", summary.arn, execution_limit)
        except ExternalCallError:
            logger.warning("workflows.executions_failed", workflow=summary.arn, exc_info=True)
            overview.error = FAILED_TO_LOAD_EXECUTIONS
            return overview
        overview.executions = [ExecutionOverview.from_summary(execution) for execution in executions]
        return overview

    # ── Workflow detail ─────────────────────────────────────────

    def get_workflow_detail(self, workflow_id: str, limit: int | None = None) -> WorkflowDetailResponse:
        """Definition, graph and recent executions of one workflow."""
        response = WorkflowDetailResponse(provider=self.provider.value, id=workflow_id)
        if not workflow_id or not workflow_id.strip():
            response.error = "workflow_id is required"
            return response

        execution_limit = self.limits.executions(limit)
        with LogContext(workflow=workflow_id):
            try:
                describe = self._call("describe_state_machine", workflow_id)
                response.name = describe.name
                response.type = describe.type
                response.status = describe.status
                response.created_at = describe.created_at
                response.definition = describe.definition
                response.graph = WorkflowGraphModel.from_graph(
                    build_workflow_graph(describe.definition, self.resolver)
                )
                executions = self._call("list_executions", workflow_id, execution_limit)
            except ExternalCallError:
                logger.warning("workflow_detail.failed", exc_info=True)
                response.error = FAILED_TO_LOAD_DETAIL
                return response

            response.executions = [self._execution_overview(execution) for execution in executions]
        return response

    def _execution_overview(self, summary) -> ExecutionOverview:
        overview = ExecutionOverview.from_summary(summary)
        if not is_failure_status(overview.status):
            return overview
        try:
            detail = self._call("describe_execution", summary.arn)
        except ExternalCallError:
            logger.warning("workflow_detail.describe_execution_failed", execution=summary.arn, exc_info=True)
            return overview
        overview.error = detail.error
        overview.cause = detail.cause
        return overview

    # ── Execution detail ────────────────────────────────────────

    def get_execution_detail(
        self,
        execution_arn: str,
        max_events: int | None = None,
        include_logs: bool = False,
        log_limit: int | None = None,
    ) -> ExecutionDetailResponse:
        """Status, per-state timeline and, optionally, logs of one execution."""
        response = ExecutionDetailResponse(provider=self.provider.value, execution_arn=execution_arn)
        if not execution_arn or not execution_arn.strip():
            response.error = "execution_arn is required"
            return response

        event_limit = self.limits.events(max_events)
        with LogContext(execution=execution_arn):
            try:
                describe = self._call("describe_execution", execution_arn)
            except ExternalCallError:
                logger.warning("execution_detail.describe_failed", exc_info=True)
                response.error = FAILED_TO_LOAD_EXECUTION_DETAIL
                return response
            response.apply_description(describe)

            history = collect_history(
                lambda token, size: self._call("get_execution_history", execution_arn, token, size),
                event_limit,
                page_size=self.settings.history_page_size,
            )
            if history.error is not None:
                logger.warning("execution_detail.history_failed", events=len(history.events))
                response.history_error = FAILED_TO_LOAD_HISTORY
            statuses = TimelineReconstructor().reconstruct(history.events, describe.status)
            response.state_statuses = [StateStatusModel.from_status(status) for status in statuses.values()]

            if include_logs:
                self._attach_logs(response, describe, statuses, self.limits.logs(log_limit))
        return response

    def _attach_logs(self, response, describe, statuses, log_limit: int) -> None:
        if self.log_backend is None:
            response.logs_error = NO_LOG_BACKEND
            return
        if not describe.state_machine_arn:
            response.logs_error = FAILED_TO_LOAD_DEFINITION
            return
        try:
            state_machine = self._call("describe_state_machine", describe.state_machine_arn)
        except ExternalCallError:
            logger.warning(
                "execution_detail.state_machine_failed",
                workflow=describe.state_machine_arn,
                exc_info=True,
            )
            response.logs_error = FAILED_TO_LOAD_DEFINITION
            return

        response.apply_execution_logs(
            fetch_execution_logs(
                self.log_backend,
                state_machine.logging_destinations,
                describe.arn,
                describe.start_date,
                describe.stop_date,
                log_limit,
                region=self.region,
            )
        )

        graph = build_workflow_graph(state_machine.definition, self.resolver)
        correlator = LogCorrelator(
            self.log_backend,
            self.container_lookup,
            padding=timedelta(seconds=self.settings.log_window_padding_seconds),
            max_workers=self.settings.log_query_workers,
            region=self.region,
        )
        bundles = correlator.correlate(graph, statuses, describe.start_date, describe.stop_date, log_limit)
        response.task_logs = [TaskLogModel.from_bundle(bundle) for bundle in bundles]


class UnsupportedInspector:
    """Stands in for a provider that cannot be served; every operation returns an error envelope."""

    supported = False

    def __init__(
        self,
        provider: WorkflowProvider | None,
        message: str,
        *,
        settings: StateSpineSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.provider = provider
        self.message = message
        self.limits = RequestLimits.from_settings(settings or get_settings())
        self._clock = clock

    @property
    def _provider_id(self) -> str | None:
        return self.provider.value if self.provider else None

    def list_workflows(self, limit: int | None = None, refresh: bool = False) -> WorkflowOverviewResponse:
        return WorkflowOverviewResponse(
            provider=self._provider_id,
            generated_at=self._clock(),
            execution_limit=self.limits.executions(limit),
            error=self.message,
        )

    def get_workflow_detail(self, workflow_id: str, limit: int | None = None) -> WorkflowDetailResponse:
        return WorkflowDetailResponse(provider=self._provider_id, id=workflow_id, error=self.message)

    def get_execution_detail(
        self,
        execution_arn: str,
        max_events: int | None = None,
        include_logs: bool = False,
        log_limit: int | None = None,
    ) -> ExecutionDetailResponse:
        return ExecutionDetailResponse(
            provider=self._provider_id,
            execution_arn=execution_arn,
            error=self.message,
        )


def resolve_inspector(
    provider: str | None = None,
    backend: WorkflowBackend | None = None,
    log_backend: LogBackend | None = None,
    container_lookup: ContainerLogConfigLookup | None = None,
    *,
    cache: ResponseCache | None = None,
    settings: StateSpineSettings | None = None,
    resolver: ResourceResolver | None = None,
) -> WorkflowInspector | UnsupportedInspector:
    """Pick the inspector for a provider alias.

    ``None`` means the configured default provider.  GCP workflows and
    unknown aliases get an :class:`UnsupportedInspector`, as does AWS Step
    Functions when no backend was supplied.
    """
    settings = settings or get_settings()
    if provider is None:
        provider = settings.default_provider
    resolved = WorkflowProvider.from_value(provider)

    if resolved is not WorkflowProvider.AWS_STEP_FUNCTIONS:
        error = UnsupportedProviderError(unsupported_message(resolved)).with_context(provider=provider)
    elif backend is None:
        error = UnsupportedProviderError("AWS Step Functions backend is not configured").with_context(
            provider=provider
        )
    else:
        return WorkflowInspector(
            backend,
            log_backend,
            container_lookup,
            cache=cache,
            settings=settings,
            resolver=resolver,
        )

    logger.info("inspector.unsupported_provider", **error.to_dict())
    return UnsupportedInspector(resolved, error.message, settings=settings)


__all__ = [
    "FAILED_TO_LOAD_DETAIL",
    "FAILED_TO_LOAD_EXECUTION_DETAIL",
    "FAILED_TO_LOAD_EXECUTIONS",
    "FAILED_TO_LOAD_HISTORY",
    "FAILED_TO_LOAD_OVERVIEW",
    "UnsupportedInspector",
    "WorkflowInspector",
    "resolve_inspector",
]
