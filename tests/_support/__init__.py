"""
Test support utilities for statespine tests.

This module provides helper functions that don't fit as pytest fixtures
but are useful across multiple test files.  Fake collaborators live in
``tests._support.fakes``.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


def at(seconds: float) -> datetime:
    """Deterministic UTC timestamp ``seconds`` after ``BASE_TIME``."""
    return BASE_TIME + timedelta(seconds=seconds)


def entered(name: str, seconds: float, kind: str = "Task") -> dict[str, Any]:
    """Provider-shaped ``<kind>StateEntered`` event."""
    return {
        "type": f"{kind}StateEntered",
        "timestamp": at(seconds),
        "stateEnteredEventDetails": {"name": name},
    }


def exited(name: str, seconds: float, kind: str = "Task") -> dict[str, Any]:
    """Provider-shaped ``<kind>StateExited`` event."""
    return {
        "type": f"{kind}StateExited",
        "timestamp": at(seconds),
        "stateExitedEventDetails": {"name": name},
    }


def write_temp_json(temp_dir: Path, name: str, content: Any) -> Path:
    """
    Write content to a temporary JSON file.

    Args:
        temp_dir: Temporary directory path
        name: Filename (without extension)
        content: JSON-serializable value; datetimes become ISO strings

    Returns:
        Path to created file
    """
    file_path = temp_dir / f"{name}.json"
    file_path.write_text(json.dumps(content, default=_json_default), encoding="utf-8")
    return file_path


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Not JSON serializable: {value!r}")


def assert_dict_subset(actual: dict, expected: dict, path: str = "") -> None:
    """
    Assert that expected is a subset of actual (recursive).

    Args:
        actual: The full dictionary
        expected: The expected subset
        path: Current path (for error messages)
    """
    for key, expected_value in expected.items():
        current_path = f"{path}.{key}" if path else key

        assert key in actual, f"Missing key at {current_path}"
        actual_value = actual[key]

        if isinstance(expected_value, dict) and isinstance(actual_value, dict):
            assert_dict_subset(actual_value, expected_value, current_path)
        else:
            assert actual_value == expected_value, (
                f"Mismatch at {current_path}: "
                f"expected {expected_value!r}, got {actual_value!r}"
            )
