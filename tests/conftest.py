"""
Shared pytest fixtures and configuration for statespine tests.

This module provides:
- Quiet, deterministic logging for the whole session
- Settings cache and environment isolation
- Sample workflow definitions (linear, choice, parallel, map, mixed)
- Deterministic timestamps (see ``tests._support.at``)

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments (pytest injects them automatically).

    def test_something(linear_definition):
        ...
"""

from __future__ import annotations

import os
from typing import Any

import pytest

from statespine.core.config import clear_settings_cache
from statespine.core.logging import clear_context, configure_logging

# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: fast, isolated tests")
    config.addinivalue_line("markers", "integration: tests that wire several components together")


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def _quiet_logging() -> None:
    """Route structlog through stdlib logging at WARNING, away from stdout."""
    configure_logging(level="WARNING", json_format=False)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Drop cached settings and region/STATESPINE_* environment for each test."""
    for name in list(os.environ):
        if name.startswith("STATESPINE_") or name in ("AWS_REGION", "AWS_DEFAULT_REGION"):
            monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    clear_context()
    yield
    clear_settings_cache()
    clear_context()


# =============================================================================
# Sample Definitions
# =============================================================================

EXTRACT_ARN = "arn:aws:lambda:us-east-1:123456789012:function:extract"
LOAD_ARN = "arn:aws:lambda:us-east-1:123456789012:function:load"
TASK_DEFINITION_ARN = "arn:aws:ecs:eu-west-1:123456789012:task-definition/transform:7"


@pytest.fixture
def linear_definition() -> dict[str, Any]:
    """Extract → Load, both functions."""
    return {
        "StartAt": "Extract",
        "States": {
            "Extract": {"Type": "Task", "Resource": EXTRACT_ARN, "Next": "Load"},
            "Load": {"Type": "Task", "Resource": LOAD_ARN, "End": True},
        },
    }


@pytest.fixture
def choice_definition() -> dict[str, Any]:
    """Route chooses between X and Y, defaulting to Z."""
    return {
        "StartAt": "Route",
        "States": {
            "Route": {
                "Type": "Choice",
                "Choices": [
                    {"Variable": "$.kind", "StringEquals": "x", "Next": "X"},
                    {"Variable": "$.kind", "StringEquals": "y", "Next": "Y"},
                ],
                "Default": "Z",
            },
            "X": {"Type": "Pass", "End": True},
            "Y": {"Type": "Pass", "End": True},
            "Z": {"Type": "Fail"},
        },
    }


@pytest.fixture
def parallel_definition() -> dict[str, Any]:
    """P fans out to A and B, then joins on Z."""
    return {
        "StartAt": "P",
        "States": {
            "P": {
                "Type": "Parallel",
                "Branches": [
                    {"StartAt": "A", "States": {"A": {"Type": "Pass", "End": True}}},
                    {"StartAt": "B", "States": {"B": {"Type": "Pass", "End": True}}},
                ],
                "Next": "Z",
            },
            "Z": {"Type": "Succeed"},
        },
    }


@pytest.fixture
def map_definition() -> dict[str, Any]:
    """Fan iterates Work (ItemProcessor form), then Done."""
    return {
        "StartAt": "Fan",
        "States": {
            "Fan": {
                "Type": "Map",
                "ItemProcessor": {
                    "StartAt": "Work",
                    "States": {"Work": {"Type": "Task", "Resource": EXTRACT_ARN, "End": True}},
                },
                "Next": "Done",
            },
            "Done": {"Type": "Succeed"},
        },
    }


@pytest.fixture
def etl_definition() -> dict[str, Any]:
    """Function extract, container transform (Fargate), function load via integration."""
    return {
        "StartAt": "Extract",
        "States": {
            "Extract": {"Type": "Task", "Resource": EXTRACT_ARN, "Next": "Transform"},
            "Transform": {
                "Type": "Task",
                "Resource": "arn:aws:states:::ecs:runTask.sync",
                "Parameters": {
                    "LaunchType": "FARGATE",
                    "Cluster": "arn:aws:ecs:eu-west-1:123456789012:cluster/etl",
                    "TaskDefinition": TASK_DEFINITION_ARN,
                },
                "Next": "Load",
            },
            "Load": {
                "Type": "Task",
                "Resource": "arn:aws:states:::lambda:invoke",
                "Parameters": {"FunctionName": LOAD_ARN + ":live", "Payload.$": "$"},
                "End": True,
            },
        },
    }
