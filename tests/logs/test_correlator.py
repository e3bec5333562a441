"""
Tests for statespine.logs.correlator.

Covers:
- per-node budget arithmetic and conservation
- windows from the timeline, falling back to execution bounds, padded
- one bundle per task node in graph order
- a failing query or lookup only affects its own bundle
- execution-level logs from logging destinations
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from statespine.core.timestamps import EPOCH
from statespine.execution.timeline import StateStatus, StateStatusValue
from statespine.logs.correlator import (
    FAILED_TO_FETCH_EXECUTION_LOGS,
    FAILED_TO_FETCH_LOGS,
    NO_LOG_GROUP_CONFIGURED,
    LogCorrelator,
    fetch_execution_logs,
    per_node_budget,
)
from statespine.logs.locators import NO_CONTAINER_LOG_CONFIGURATION
from statespine.logs.models import LogLine, LogLocator, LogWindow
from statespine.orchestration.graph import WorkflowGraph, build_workflow_graph
from tests._support import at
from tests._support.fakes import FakeContainerLookup, FakeLogBackend

TASK_DEFINITION_ARN = "arn:aws:ecs:eu-west-1:123456789012:task-definition/transform:7"
PADDING = timedelta(seconds=120)


@pytest.fixture
def etl_graph(etl_definition):
    return build_workflow_graph(etl_definition)


@pytest.fixture
def lookup():
    return FakeContainerLookup({
        TASK_DEFINITION_ARN: LogLocator(group="/ecs/transform", stream_prefix="etl", region="eu-west-1"),
    })


class TestBudget:
    @pytest.mark.parametrize(
        ("total", "count", "expected"),
        [(200, 3, 66), (200, 1, 200), (200, 0, 200), (5, 10, 1), (0, 3, 1)],
    )
    def test_per_node_budget(self, total, count, expected):
        assert per_node_budget(total, count) == expected

    @pytest.mark.parametrize("total", [0, 1, 7, 200, 500])
    @pytest.mark.parametrize("count", [1, 2, 3, 7])
    def test_share_bounds(self, total, count):
        share = per_node_budget(total, count)
        assert share * count == count * max(1, min(total, total // count))
        assert 1 <= share <= max(total, 1)
        assert share * count <= max(total, count)

    def test_queries_use_the_share(self, etl_graph, lookup):
        backend = FakeLogBackend(default_count=500)
        bundles = LogCorrelator(backend, lookup).correlate(etl_graph, {}, at(0), at(600), budget=200)

        assert {query.limit for query in backend.queries} == {66}
        assert all(len(bundle.entries) == 66 for bundle in bundles)


class TestWindows:
    def test_padded_state_window(self, etl_graph, lookup):
        backend = FakeLogBackend()
        statuses = {"Extract": StateStatus("Extract", StateStatusValue.SUCCEEDED, at(10), at(20))}
        LogCorrelator(backend, lookup).correlate(etl_graph, statuses, at(0), at(600))

        by_group = {query.group: query for query in backend.queries}
        extract = by_group["/aws/lambda/extract"]
        assert (extract.start, extract.end) == (at(10) - PADDING, at(20) + PADDING)

        load = by_group["/aws/lambda/load"]
        assert (load.start, load.end) == (at(0) - PADDING, at(600) + PADDING)

    def test_running_state_uses_execution_stop(self, etl_graph, lookup):
        backend = FakeLogBackend()
        statuses = {"Extract": StateStatus("Extract", StateStatusValue.RUNNING, at(10))}
        LogCorrelator(backend, lookup).correlate(etl_graph, statuses, at(0), None)

        extract = next(q for q in backend.queries if q.group == "/aws/lambda/extract")
        assert extract.start == at(10) - PADDING
        assert extract.end is None

    def test_start_never_precedes_epoch(self):
        window = LogWindow(start=EPOCH + timedelta(seconds=10), end=None).padded(PADDING)
        assert window.start == EPOCH

    def test_naive_execution_bounds_are_utc(self, etl_graph, lookup):
        backend = FakeLogBackend()
        bundles = LogCorrelator(backend, lookup).correlate(
            etl_graph, {}, datetime(2024, 5, 1, 12, 0), datetime(2024, 5, 1, 12, 5)
        )

        assert [b.error for b in bundles] == [None, None, None]
        extract = next(q for q in backend.queries if q.group == "/aws/lambda/extract")
        assert (extract.start, extract.end) == (at(0) - PADDING, at(300) + PADDING)

    def test_naive_window_is_padded(self):
        window = LogWindow(start=datetime(1970, 1, 1, 0, 1), end=datetime(1970, 1, 1, 0, 2)).padded(PADDING)
        assert window.start == EPOCH
        assert window.end == EPOCH + timedelta(seconds=240)

    def test_stream_prefix_passed_through(self, etl_graph, lookup):
        backend = FakeLogBackend()
        LogCorrelator(backend, lookup).correlate(etl_graph, {}, at(0), at(60))
        transform = next(q for q in backend.queries if q.group == "/ecs/transform")
        assert transform.stream_prefix == "etl"


class TestBundles:
    def test_one_bundle_per_task_in_graph_order(self, etl_graph, lookup):
        backend = FakeLogBackend(lines={"/aws/lambda/extract": ["a", "b"]})
        statuses = {"Extract": StateStatus("Extract", StateStatusValue.SUCCEEDED, at(1), at(2))}
        bundles = LogCorrelator(backend, lookup, max_workers=3).correlate(
            etl_graph, statuses, at(0), at(60)
        )

        assert [b.state_name for b in bundles] == ["Extract", "Transform", "Load"]
        extract = bundles[0]
        assert extract.status == "SUCCEEDED"
        assert extract.resource_kind == "function"
        assert [line.message for line in extract.entries] == ["a", "b"]
        assert extract.locator.group == "/aws/lambda/extract"
        assert extract.log_link.startswith(
            "https://console.aws.amazon.com/cloudwatch/home?region=us-east-1#logsV2:log-groups/log-group/"
        )
        assert extract.error is None

    def test_locator_region_wins_for_link(self, etl_graph, lookup):
        bundles = LogCorrelator(FakeLogBackend(), lookup, region="us-west-2").correlate(etl_graph, {})
        transform = bundles[1]
        assert "region=eu-west-1" in transform.log_link
        assert "region=us-west-2" in bundles[0].log_link

    def test_failed_query_is_isolated(self, etl_graph, lookup):
        backend = FakeLogBackend(default_count=2)
        backend.fail_group("/aws/lambda/extract")
        bundles = LogCorrelator(backend, lookup).correlate(etl_graph, {}, at(0), at(60))

        extract, transform, load = bundles
        assert extract.error == FAILED_TO_FETCH_LOGS
        assert extract.entries == ()
        assert extract.log_link is not None
        assert transform.error is None and len(transform.entries) == 2
        assert load.error is None and len(load.entries) == 2

    def test_unresolved_location_skips_query(self, etl_graph):
        backend = FakeLogBackend(default_count=1)
        bundles = LogCorrelator(backend).correlate(etl_graph, {}, at(0), at(60))

        transform = bundles[1]
        assert transform.error == NO_CONTAINER_LOG_CONFIGURATION
        assert transform.log_link is None
        assert transform.locator is None
        assert sorted(q.group for q in backend.queries) == ["/aws/lambda/extract", "/aws/lambda/load"]

    def test_lookup_failure_is_isolated(self, etl_graph):
        backend = FakeLogBackend(default_count=1)
        bundles = LogCorrelator(backend, FakeContainerLookup(fail=True)).correlate(etl_graph, {})
        assert bundles[1].error == NO_CONTAINER_LOG_CONFIGURATION
        assert bundles[0].error is None

    def test_oversized_results_are_truncated(self, etl_graph, lookup):
        class Chatty:
            def filter_log_events(self, query):
                return [LogLine(timestamp=None, message=str(i)) for i in range(1000)]

        bundles = LogCorrelator(Chatty(), lookup).correlate(etl_graph, {}, budget=30)
        assert [len(b.entries) for b in bundles] == [10, 10, 10]

    def test_no_task_nodes(self, choice_definition):
        backend = FakeLogBackend()
        assert LogCorrelator(backend).correlate(build_workflow_graph(choice_definition), {}) == []
        assert LogCorrelator(backend).correlate(WorkflowGraph(), {}) == []
        assert backend.queries == []

    def test_to_dict(self, etl_graph, lookup):
        bundle = LogCorrelator(FakeLogBackend(lines={"/ecs/transform": ["x"]}), lookup).correlate(
            etl_graph, {}
        )[1]
        data = bundle.to_dict()
        assert data["log_group"] == "/ecs/transform"
        assert data["log_stream_prefix"] == "etl"
        assert data["entries"] == [{"timestamp": None, "message": "x"}]


class TestExecutionLogs:
    DESTINATION = "arn:aws:logs:us-east-1:123:log-group:/aws/states/etl:*"
    EXECUTION = "arn:aws:states:us-east-1:123:execution:etl:run-1"

    def test_no_destination(self):
        result = fetch_execution_logs(FakeLogBackend(), [], self.EXECUTION)
        assert result.error == NO_LOG_GROUP_CONFIGURED
        assert result.entries == ()
        assert result.log_group is None

    def test_fetches_with_execution_filter(self):
        backend = FakeLogBackend(lines={"/aws/states/etl": ["started", "finished"]})
        result = fetch_execution_logs(
            backend, ["garbage", self.DESTINATION], self.EXECUTION, at(0), at(60), limit=1
        )

        query = backend.queries[0]
        assert query.group == "/aws/states/etl"
        assert query.filter_pattern == self.EXECUTION
        assert (query.start, query.end, query.limit) == (at(0), at(60), 1)
        assert [line.message for line in result.entries] == ["started"]
        assert result.log_group == "/aws/states/etl"
        assert "filterPattern$3Darn$3Aaws$3Astates" in result.log_link
        assert result.error is None

    def test_failure(self):
        backend = FakeLogBackend()
        backend.fail_group("/aws/states/etl")
        result = fetch_execution_logs(backend, [self.DESTINATION], self.EXECUTION)
        assert result.error == FAILED_TO_FETCH_EXECUTION_LOGS
        assert result.log_group == "/aws/states/etl"
        assert result.log_link is None
