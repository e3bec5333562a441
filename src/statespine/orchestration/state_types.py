"""State Types - typed records for the states of a workflow definition.

Manifesto:
A workflow definition is a mapping of state name to state body, and the
body comes in a handful of flavours: task (invoke an external resource),
choice (conditional branch), parallel (fan-out / fan-in over nested
branches), map (iterate a nested sub-workflow), and the simple states
(pass, wait, succeed, fail).  This module defines one frozen dataclass
per flavour so that the graph builder can match over a closed set of
variants instead of poking at raw JSON.

ARCHITECTURE
────────────
::

    WorkflowDefinition(start_at, states)
      └── states: name → StateSpec

    StateSpec = TaskState | ChoiceState | ParallelState | MapState | PassState

      TaskState      ── resource + parameters
      ChoiceState    ── ordered ChoiceRules + default
      ParallelState  ── nested WorkflowDefinition per branch
      MapState       ── one nested WorkflowDefinition (iterator)
      PassState      ── Pass / Wait / Succeed / Fail / unknown Type

    StateKind      ── enum over the ``Type`` tag

Related modules:
    parser.py   - builds these records from JSON
    graph.py    - turns them into nodes and edges

Tags:
    statespine, orchestration, state-types, definition
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class StateKind(str, Enum):
    """Kind of workflow state (the definition's ``Type`` tag)."""

    TASK = "Task"
    CHOICE = "Choice"
    PARALLEL = "Parallel"
    MAP = "Map"
    PASS = "Pass"
    WAIT = "Wait"
    SUCCEED = "Succeed"
    FAIL = "Fail"
    UNKNOWN = "Unknown"  # Missing or unrecognised Type, treated like Pass

    @classmethod
    def from_type(cls, value: object) -> StateKind:
        """Map a raw ``Type`` value to a kind, ``UNKNOWN`` when unrecognised."""
        if isinstance(value, str):
            for kind in cls:
                if kind.value == value and kind is not cls.UNKNOWN:
                    return kind
        return cls.UNKNOWN


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    A parsed workflow (or nested scope).

    Attributes:
        start_at: Name of the first state, ``None`` when absent
        states: Read-only mapping of state name to body, in declaration order
    """

    start_at: str | None
    states: Mapping[str, StateSpec] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.states, MappingProxyType):
            object.__setattr__(self, "states", MappingProxyType(dict(self.states)))

    @property
    def is_empty(self) -> bool:
        return not self.states

    def state_names(self) -> list[str]:
        return list(self.states)


@dataclass(frozen=True)
class _BaseState:
    name: str
    kind: StateKind
    next: str | None = None
    end: bool = False

    @property
    def is_scope_exit(self) -> bool:
        """End-marked or successor-less (before kind-specific rules)."""
        return self.end or self.next is None


@dataclass(frozen=True)
class TaskState(_BaseState):
    """A state that invokes an external resource."""

    kind: StateKind = StateKind.TASK
    resource: str | None = None
    parameters: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChoiceRule:
    """One branch of a Choice state; the condition itself is opaque."""

    condition: Mapping[str, Any]
    next: str | None


@dataclass(frozen=True)
class ChoiceState(_BaseState):
    """Conditional branching; never terminal itself."""

    kind: StateKind = StateKind.CHOICE
    choices: tuple[ChoiceRule, ...] = ()
    default: str | None = None


@dataclass(frozen=True)
class ParallelState(_BaseState):
    """Fan-out over nested branches. ``None`` entries are malformed branches."""

    kind: StateKind = StateKind.PARALLEL
    branches: tuple[WorkflowDefinition | None, ...] = ()


@dataclass(frozen=True)
class MapState(_BaseState):
    """Iteration over one nested sub-workflow."""

    kind: StateKind = StateKind.MAP
    iterator: WorkflowDefinition | None = None


@dataclass(frozen=True)
class PassState(_BaseState):
    """Pass, Wait, Succeed, Fail, or an unrecognised state."""

    kind: StateKind = StateKind.PASS


StateSpec = TaskState | ChoiceState | ParallelState | MapState | PassState


__all__ = [
    "StateKind",
    "WorkflowDefinition",
    "TaskState",
    "ChoiceRule",
    "ChoiceState",
    "ParallelState",
    "MapState",
    "PassState",
    "StateSpec",
]
