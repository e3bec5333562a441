"""
Tests for statespine.core.logging.

Tests verify:
- configure_logging picks JSON or console rendering
- ECS field renaming and service metadata
- bound context appears on every log entry and LogContext unbinds it
"""

from __future__ import annotations

import pytest
import structlog

from statespine.core.logging import (
    LogContext,
    _add_service_metadata,
    _elasticsearch_compatible,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


@pytest.fixture
def restore_logging():
    yield
    configure_logging(level="WARNING", json_format=False)


class TestConfigureLogging:
    def test_json_renderer(self, restore_logging):
        configure_logging(level="INFO", json_format=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert _elasticsearch_compatible in processors

    def test_console_renderer(self, restore_logging):
        configure_logging(level="DEBUG", json_format=False, add_timestamp=False)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert _elasticsearch_compatible not in processors
        assert not any(isinstance(p, structlog.processors.TimeStamper) for p in processors)

    def test_service_name(self, restore_logging):
        configure_logging(json_format=True, service="inspector-api")
        assert _add_service_metadata(None, "info", {})["service.name"] == "inspector-api"


class TestProcessors:
    def test_elasticsearch_field_names(self):
        event = _elasticsearch_compatible(
            None, "info", {"timestamp": "2024-05-01T12:00:00Z", "level": "info", "event": "x"}
        )
        assert event == {"@timestamp": "2024-05-01T12:00:00Z", "log.level": "info", "event": "x"}

    def test_service_metadata_does_not_override(self):
        event = _add_service_metadata(None, "info", {"service.name": "custom"})
        assert event["service.name"] == "custom"


class TestContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bound_context_is_merged(self):
        bind_context(execution="run-1")
        event = structlog.contextvars.merge_contextvars(None, "warning", {"event": "timeline.reconstructed"})
        assert event == {"execution": "run-1", "event": "timeline.reconstructed"}
        assert get_logger("test.context") is not None

    def test_unbind(self):
        bind_context(execution="run-1", workflow="etl")
        unbind_context("execution")
        assert structlog.contextvars.get_contextvars() == {"workflow": "etl"}

    def test_log_context_is_scoped(self):
        bind_context(workflow="etl")
        with LogContext(execution="run-1") as scope:
            assert isinstance(scope, LogContext)
            assert structlog.contextvars.get_contextvars() == {"workflow": "etl", "execution": "run-1"}
        assert structlog.contextvars.get_contextvars() == {"workflow": "etl"}

    def test_log_context_unbinds_on_error(self):
        with pytest.raises(RuntimeError), LogContext(execution="run-1"):
            raise RuntimeError("boom")
        assert structlog.contextvars.get_contextvars() == {}
