"""
statespine Ops - provider adapters and response assembly.

backends.py   ─ collaborator protocols and decoded provider shapes
limits.py     ─ request limit normalization
providers.py  ─ WorkflowProvider aliases
responses.py  ─ pydantic response envelopes
inspector.py  ─ WorkflowInspector, UnsupportedInspector, resolve_inspector
"""

from statespine.ops.backends import (
    ExecutionDescription,
    ExecutionSummary,
    StateMachineDescription,
    StateMachineSummary,
    WorkflowBackend,
)
from statespine.ops.inspector import UnsupportedInspector, WorkflowInspector, resolve_inspector
from statespine.ops.limits import RequestLimits, normalize_limit
from statespine.ops.providers import WorkflowProvider

__all__ = [
    "ExecutionDescription",
    "ExecutionSummary",
    "RequestLimits",
    "StateMachineDescription",
    "StateMachineSummary",
    "UnsupportedInspector",
    "WorkflowBackend",
    "WorkflowInspector",
    "WorkflowProvider",
    "normalize_limit",
    "resolve_inspector",
]
