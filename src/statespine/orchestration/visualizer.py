"""Workflow Visualizer - render workflow graphs as Mermaid diagrams or ASCII.

Generates visual representations of a compiled ``WorkflowGraph`` for
documentation, debugging, and CLI output.  When a timeline is supplied the
per-state status is overlaid (Mermaid class styles, ASCII markers).

Architecture::

    WorkflowGraph
    ├── .nodes
    └── .edges
        │
        ▼
    visualize_mermaid(graph, statuses=None)  → str (Mermaid graph TD)
    visualize_ascii(graph, statuses=None)    → str (one line per state)
    visualize_summary(graph)                 → dict (metadata)

    Mermaid state shapes:
    - Task      → ("name")      (rounded)
    - Choice    → {"name"}      (diamond)
    - Parallel  → [["name"]]    (subroutine)
    - Map       → [/"name"/]    (parallelogram)
    - Succeed   → (["name"])    (stadium)
    - Fail      → (["name"])    (stadium)
    - others    → ["name"]      (rectangle)

    Mermaid edge styles:
    - next      → -->
    - choice    → -->|choice|
    - default   → -.->|default|
    - branch    → ==>|branch|
    - iterator  → ==>|iterator|
    - join      → -->|join|

Example::

    from statespine.orchestration import build_workflow_graph
    from statespine.orchestration.visualizer import visualize_mermaid

    graph = build_workflow_graph(definition_json)
    print(visualize_mermaid(graph))
    # graph TD
    #     Extract("Extract<br/>function")
    #     Load["Load"]
    #
    #     Extract --> Load

See Also:
    statespine.orchestration.graph - graph construction
    statespine.cli.app - ``statespine render``
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from statespine.orchestration.graph import EdgeKind, WorkflowGraph, WorkflowNode
from statespine.orchestration.state_types import StateKind

if TYPE_CHECKING:
    from statespine.execution.timeline import StateStatus


# ---------------------------------------------------------------------------
# Mermaid rendering
# ---------------------------------------------------------------------------

_EDGE_ARROWS = {
    EdgeKind.NEXT: "-->",
    EdgeKind.CHOICE: "-->|choice|",
    EdgeKind.DEFAULT: "-.->|default|",
    EdgeKind.BRANCH: "==>|branch|",
    EdgeKind.ITERATOR: "==>|iterator|",
    EdgeKind.JOIN: "-->|join|",
}

_KIND_STYLES = {
    StateKind.TASK: "fill:#e3f2fd,stroke:#1565c0",
    StateKind.CHOICE: "fill:#fff3e0,stroke:#e65100",
    StateKind.PARALLEL: "fill:#f3e5f5,stroke:#7b1fa2",
    StateKind.MAP: "fill:#fce4ec,stroke:#c62828",
    StateKind.WAIT: "fill:#e8f5e9,stroke:#2e7d32",
}

_STATUS_CLASSES = {
    "RUNNING": "fill:#bbdefb,stroke:#0d47a1,stroke-width:2px",
    "SUCCEEDED": "fill:#c8e6c9,stroke:#1b5e20",
    "FAILED": "fill:#ffcdd2,stroke:#b71c1c,stroke-width:2px",
}


def _mermaid_ids(graph: WorkflowGraph) -> dict[str, str]:
    """Map state names to Mermaid-safe, unique identifiers."""
    ids: dict[str, str] = {}
    used: set[str] = set()
    for node in graph.nodes:
        base = re.sub(r"\W", "_", node.id) or "state"
        if base[0].isdigit():
            base = f"s_{base}"
        candidate = base
        suffix = 1
        while candidate in used:
            suffix += 1
            candidate = f"{base}_{suffix}"
        used.add(candidate)
        ids[node.id] = candidate
    return ids


def _escape(label: str) -> str:
    return label.replace('"', "#quot;")


def _mermaid_node(node: WorkflowNode, node_id: str) -> str:
    """Return a Mermaid node definition for a state."""
    label = _escape(node.label)
    if node.resource_kind:
        label = f"{label}<br/>{node.resource_kind}"

    match node.state_kind:
        case StateKind.TASK:
            return f'    {node_id}("{label}")'
        case StateKind.CHOICE:
            return f'    {node_id}{{"{label}"}}'
        case StateKind.PARALLEL:
            return f'    {node_id}[["{label}"]]'
        case StateKind.MAP:
            return f'    {node_id}[/"{label}"/]'
        case StateKind.SUCCEED | StateKind.FAIL:
            return f'    {node_id}(["{label}"])'
        case _:
            return f'    {node_id}["{label}"]'


def _status_value(status: Any) -> str | None:
    value = getattr(status, "status", status)
    return getattr(value, "value", value)


def visualize_mermaid(
    graph: WorkflowGraph,
    statuses: Mapping[str, StateStatus] | None = None,
    *,
    direction: str = "TD",
    include_styles: bool = True,
    title: str | None = None,
) -> str:
    """Render a workflow graph as Mermaid.

    Parameters
    ----------
    graph
        The compiled workflow graph.
    statuses
        Optional per-state timeline; states get a status class
        (``running``, ``succeeded``, ``failed``).
    direction
        Graph direction: ``"TD"`` (top-down), ``"LR"`` (left-right).
    include_styles
        If True, include color styles for state kinds.
    title
        Optional title displayed above the graph.

    Returns
    -------
    str
        Complete Mermaid graph definition.
    """
    lines: list[str] = []

    if title:
        lines.append("---")
        lines.append(f"title: {title}")
        lines.append("---")

    lines.append(f"graph {direction}")

    ids = _mermaid_ids(graph)
    for node in graph.nodes:
        lines.append(_mermaid_node(node, ids[node.id]))

    lines.append("")  # blank line before edges

    for edge in graph.edges:
        source = ids.get(edge.source)
        target = ids.get(edge.target)
        if source is None or target is None:
            continue
        lines.append(f"    {source} {_EDGE_ARROWS[edge.kind]} {target}")

    if include_styles:
        styles = []
        for node in graph.nodes:
            style = _KIND_STYLES.get(node.state_kind)
            if style and not (statuses and node.id in statuses):
                styles.append(f"    style {ids[node.id]} {style}")
        if styles:
            lines.append("")
            lines.extend(styles)

    if statuses:
        assigned: list[str] = []
        for node in graph.nodes:
            value = _status_value(statuses.get(node.id))
            if value in _STATUS_CLASSES:
                assigned.append(f"    class {ids[node.id]} {value.lower()}")
        if assigned:
            lines.append("")
            for value, style in _STATUS_CLASSES.items():
                lines.append(f"    classDef {value.lower()} {style}")
            lines.extend(assigned)

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# ASCII rendering
# ---------------------------------------------------------------------------

_KIND_INDICATORS = {
    StateKind.TASK: "T",
    StateKind.CHOICE: "?",
    StateKind.PARALLEL: "‖",
    StateKind.MAP: "⇶",
    StateKind.WAIT: "⏳",
    StateKind.SUCCEED: "✓",
    StateKind.FAIL: "✗",
}

_STATUS_MARKERS = {
    "RUNNING": "…",
    "SUCCEEDED": "ok",
    "FAILED": "FAILED",
}


def visualize_ascii(
    graph: WorkflowGraph,
    statuses: Mapping[str, StateStatus] | None = None,
) -> str:
    """Render a workflow graph as an indented ASCII listing.

    Parameters
    ----------
    graph
        The compiled workflow graph.
    statuses
        Optional per-state timeline shown next to each state.

    Returns
    -------
    str
        Multi-line ASCII listing, one block per state.

    Note
    ----
    Nested scopes are flattened; branch and join edges show where they
    start and end.  Use the Mermaid output for a real picture.
    """
    if graph.is_empty:
        if graph.error:
            return f"(empty workflow: {graph.error})"
        return "(empty workflow)"

    lines: list[str] = []
    lines.append(f"Workflow (start: {graph.start_at or '?'})")
    lines.append("")

    for node in graph.nodes:
        ind = _KIND_INDICATORS.get(node.state_kind, "·")
        detail = f" → {node.resource}" if node.resource else ""
        marker = ""
        if statuses:
            value = _status_value(statuses.get(node.id))
            if value:
                marker = f"  [{_STATUS_MARKERS.get(value, value)}]"
        lines.append(f"  [{ind}] {node.id}{detail}{marker}")

        outgoing = graph.edges_from(node.id)
        if not outgoing:
            lines.append("       (end)")
        for edge in outgoing:
            lines.append(f"       {edge.kind.value}: {edge.target}")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Summary / metadata
# ---------------------------------------------------------------------------

def visualize_summary(graph: WorkflowGraph) -> dict[str, Any]:
    """Return metadata about the graph's structure.

    Returns
    -------
    dict
        node_count, edge_count, state_kinds, edge_kinds, task_count,
        resource_kinds, has_branches, exit_states and error.
    """
    state_kinds: dict[str, int] = {}
    for node in graph.nodes:
        kind = node.state_kind.value
        state_kinds[kind] = state_kinds.get(kind, 0) + 1

    edge_kinds: dict[str, int] = {}
    for edge in graph.edges:
        edge_kinds[edge.kind.value] = edge_kinds.get(edge.kind.value, 0) + 1

    task_nodes = graph.task_nodes()
    resource_kinds = sorted({node.resource_kind for node in task_nodes if node.resource_kind})
    sources = {edge.source for edge in graph.edges}

    return {
        "start_at": graph.start_at,
        "node_count": len(graph.nodes),
        "edge_count": len(graph.edges),
        "state_kinds": state_kinds,
        "edge_kinds": edge_kinds,
        "task_count": len(task_nodes),
        "resource_kinds": resource_kinds,
        "has_branches": any(
            kind in edge_kinds for kind in (EdgeKind.CHOICE.value, EdgeKind.BRANCH.value)
        ),
        "exit_states": [node.id for node in graph.nodes if node.id not in sources],
        "error": graph.error,
    }
