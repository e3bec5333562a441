"""
Workflow Graph - compile a workflow definition into nodes and typed edges.

Manifesto:
The static definition says which states exist and how control may flow
between them, but nested scopes hide the real wiring: a Parallel state's
successor is reached from the *last* states of every branch, not from the
Parallel state itself.  ``GraphBuilder`` resolves that wiring recursively
so that consumers (visualizer, log correlator, API responses) see one flat
graph.

ARCHITECTURE
────────────
::

    WorkflowDefinition
      │
      ▼  GraphBuilder.build_scope(definition)
    GraphFragment(nodes, edges, terminals)
      │     ▲
      │     └── recursive build_scope() per Parallel branch / Map iterator,
      │         merged by node id and (source, target, kind) identity
      ▼  GraphBuilder.build(definition)
    WorkflowGraph(start_at, nodes, edges, error)

    Edge kinds:
      next      ── plain successor
      choice    ── one per Choice rule with a target
      default   ── Choice default
      branch    ── Parallel → branch start
      iterator  ── Map → iterator start
      join      ── nested terminal → Parallel successor
      next      ── nested terminal → Map successor

Terminal states:
    End-marked or successor-less states are terminal in their scope.
    Choice never is.  A terminal Parallel / Map state delegates to the
    terminals of its nested scopes when there are any.

Related modules:
    parser.py      - JSON → WorkflowDefinition
    resources.py   - Task resource resolution strategies
    visualizer.py  - Mermaid / ASCII rendering of WorkflowGraph

Tags:
    statespine, orchestration, graph, nested-scopes, parallel, map
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from statespine.core.errors import UnresolvedResourceError
from statespine.core.logging import get_logger
from statespine.orchestration.parser import try_parse_definition
from statespine.orchestration.resources import ResourceResolver, default_resolver
from statespine.orchestration.state_types import (
    ChoiceState,
    MapState,
    ParallelState,
    StateKind,
    StateSpec,
    TaskState,
    WorkflowDefinition,
)

logger = get_logger(__name__)


class EdgeKind(str, Enum):
    """Kind of transition between two states."""

    NEXT = "next"
    CHOICE = "choice"
    DEFAULT = "default"
    BRANCH = "branch"
    JOIN = "join"
    ITERATOR = "iterator"


@dataclass(frozen=True)
class WorkflowNode:
    """
    One state of the workflow.

    ``resource``, ``resource_kind`` and ``resource_link`` are only set for
    Task states whose resource could be resolved.
    """

    id: str
    label: str
    state_kind: StateKind
    resource: str | None = None
    resource_kind: str | None = None
    resource_link: str | None = None

    @property
    def is_task_node(self) -> bool:
        """True when the node carries a resolved external resource."""
        return bool(self.resource) and bool(self.resource_kind)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.state_kind.value,
            "resource": self.resource,
            "resource_kind": self.resource_kind,
            "resource_link": self.resource_link,
        }


@dataclass(frozen=True)
class WorkflowEdge:
    """A transition; identity is ``(source, target, kind)``."""

    source: str
    target: str
    kind: EdgeKind

    @property
    def key(self) -> tuple[str, str, EdgeKind]:
        return (self.source, self.target, self.kind)

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "target": self.target, "kind": self.kind.value}


@dataclass(frozen=True)
class GraphFragment:
    """Nodes, edges and terminal state names of one scope."""

    nodes: tuple[WorkflowNode, ...] = ()
    edges: tuple[WorkflowEdge, ...] = ()
    terminals: tuple[str, ...] = ()


@dataclass(frozen=True)
class WorkflowGraph:
    """
    The navigable graph of a workflow.

    Attributes:
        start_at: Name of the first state
        nodes: Nodes in first-declaration order, unique ids
        edges: Edges in emission order, unique ``(source, target, kind)``
        error: Why the graph is empty, when the definition was unusable
    """

    start_at: str | None = None
    nodes: tuple[WorkflowNode, ...] = ()
    edges: tuple[WorkflowEdge, ...] = ()
    error: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def get_node(self, node_id: str) -> WorkflowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def task_nodes(self) -> list[WorkflowNode]:
        return [node for node in self.nodes if node.is_task_node]

    def edges_from(self, node_id: str) -> list[WorkflowEdge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def edges_to(self, node_id: str) -> list[WorkflowEdge]:
        return [edge for edge in self.edges if edge.target == node_id]

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_at": self.start_at,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "error": self.error,
        }


class _FragmentAccumulator:
    """Mutable builder for one scope; frozen into a GraphFragment at the end."""

    def __init__(self):
        self.nodes: dict[str, WorkflowNode] = {}
        self.edges: dict[tuple[str, str, EdgeKind], WorkflowEdge] = {}
        self.terminals: dict[str, None] = {}

    def add_node(self, node: WorkflowNode) -> None:
        self.nodes.setdefault(node.id, node)

    def add_edge(self, source: str | None, target: str | None, kind: EdgeKind) -> None:
        if not source or not target:
            return
        edge = WorkflowEdge(source=source, target=target, kind=kind)
        self.edges.setdefault(edge.key, edge)

    def add_terminals(self, names: Iterable[str]) -> None:
        for name in names:
            self.terminals.setdefault(name, None)

    def merge(self, fragment: GraphFragment) -> None:
        for node in fragment.nodes:
            self.add_node(node)
        for edge in fragment.edges:
            self.edges.setdefault(edge.key, edge)

    def freeze(self) -> GraphFragment:
        return GraphFragment(
            nodes=tuple(self.nodes.values()),
            edges=tuple(self.edges.values()),
            terminals=tuple(self.terminals),
        )


class GraphBuilder:
    """
    Recursive builder from WorkflowDefinition to WorkflowGraph.

    Args:
        resolver: Task resource resolution strategy
        max_workers: Build the branches of a Parallel state on a thread pool
            of this size when greater than 1

    Example:
        >>> graph = GraphBuilder(default_resolver("us-east-1")).build(definition)
        >>> [edge.kind for edge in graph.edges_from("Route")]
        [<EdgeKind.CHOICE: 'choice'>, <EdgeKind.DEFAULT: 'default'>]
    """

    def __init__(self, resolver: ResourceResolver | None = None, max_workers: int = 1):
        self.resolver = resolver or default_resolver()
        self.max_workers = max(1, max_workers)

    def build(self, definition: WorkflowDefinition) -> WorkflowGraph:
        """Build the full graph of a top-level definition."""
        fragment = self.build_scope(definition)
        node_ids = {node.id for node in fragment.nodes}
        edges = []
        for edge in fragment.edges:
            if edge.source in node_ids and edge.target in node_ids:
                edges.append(edge)
            else:
                logger.debug(
                    "graph.dangling_edge_dropped",
                    source=edge.source,
                    target=edge.target,
                    kind=edge.kind.value,
                )
        return WorkflowGraph(start_at=definition.start_at, nodes=fragment.nodes, edges=tuple(edges))

    def build_scope(self, definition: WorkflowDefinition) -> GraphFragment:
        """Build one scope and, recursively, every scope nested in it."""
        acc = _FragmentAccumulator()

        for name, state in definition.states.items():
            if name.strip():
                acc.add_node(self._node_for(state))

        for name, state in definition.states.items():
            if not name.strip():
                continue
            nested_terminals = self._add_edges(acc, state)
            if self._is_terminal(state):
                acc.add_terminals(nested_terminals or [name])

        return acc.freeze()

    # ── Node pass ───────────────────────────────────────────────

    def _node_for(self, state: StateSpec) -> WorkflowNode:
        if isinstance(state, TaskState):
            resolved = None
            try:
                resolved = self.resolver.resolve(state)
            except UnresolvedResourceError as e:
                logger.debug("graph.resource_unresolved", state=state.name, reason=e.message)
            if resolved is not None:
                return WorkflowNode(
                    id=state.name,
                    label=state.name,
                    state_kind=state.kind,
                    resource=resolved.resource,
                    resource_kind=resolved.resource_kind,
                    resource_link=resolved.resource_link,
                )
        return WorkflowNode(id=state.name, label=state.name, state_kind=state.kind)

    # ── Edge pass ───────────────────────────────────────────────

    def _add_edges(self, acc: _FragmentAccumulator, state: StateSpec) -> list[str]:
        """Emit the state's outgoing edges; returns terminals of nested scopes."""
        match state:
            case ChoiceState():
                for rule in state.choices:
                    acc.add_edge(state.name, rule.next, EdgeKind.CHOICE)
                acc.add_edge(state.name, state.default, EdgeKind.DEFAULT)
                return []
            case ParallelState():
                scopes = [branch for branch in state.branches if branch is not None]
                return self._add_nested(acc, state, scopes, EdgeKind.BRANCH, EdgeKind.JOIN)
            case MapState():
                scopes = [state.iterator] if state.iterator is not None else []
                return self._add_nested(acc, state, scopes, EdgeKind.ITERATOR, EdgeKind.NEXT)
            case _:
                acc.add_edge(state.name, state.next, EdgeKind.NEXT)
                return []

    def _add_nested(
        self,
        acc: _FragmentAccumulator,
        state: StateSpec,
        scopes: list[WorkflowDefinition],
        entry_kind: EdgeKind,
        exit_kind: EdgeKind,
    ) -> list[str]:
        terminals: dict[str, None] = {}
        for scope, fragment in zip(scopes, self._build_scopes(scopes)):
            acc.add_edge(state.name, scope.start_at, entry_kind)
            acc.merge(fragment)
            for name in fragment.terminals:
                terminals.setdefault(name, None)

        if state.next is not None:
            for name in terminals:
                acc.add_edge(name, state.next, exit_kind)
        return list(terminals)

    def _build_scopes(self, scopes: list[WorkflowDefinition]) -> list[GraphFragment]:
        if self.max_workers > 1 and len(scopes) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(scopes))) as pool:
                return list(pool.map(self.build_scope, scopes))
        return [self.build_scope(scope) for scope in scopes]

    @staticmethod
    def _is_terminal(state: StateSpec) -> bool:
        if isinstance(state, ChoiceState):
            return False
        return state.is_scope_exit


def build_workflow_graph(
    payload: str | bytes | Mapping[str, Any] | None,
    resolver: ResourceResolver | None = None,
    max_workers: int = 1,
) -> WorkflowGraph:
    """Parse and build in one step; an unusable definition yields an empty graph with ``error``."""
    definition, error = try_parse_definition(payload)
    if definition is None:
        return WorkflowGraph(error=error)
    return GraphBuilder(resolver, max_workers=max_workers).build(definition)


__all__ = [
    "EdgeKind",
    "GraphBuilder",
    "GraphFragment",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
    "build_workflow_graph",
]
