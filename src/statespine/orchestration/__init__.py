"""
statespine Orchestration - workflow definitions as navigable graphs.

WHY
───
A workflow definition only names states and successors.  Consumers need
the wiring spelled out: which states a Choice can reach, where each
Parallel branch starts, and which branch states hand control back to the
Parallel state's successor.

ARCHITECTURE
────────────
::

    JSON definition
      │  parse_definition()
      ▼
    WorkflowDefinition ── StateSpec variants (state_types.py)
      │  GraphBuilder(resolver).build()
      ▼
    WorkflowGraph ── WorkflowNode / WorkflowEdge / EdgeKind
      │
      ├── visualize_mermaid() / visualize_ascii()
      └── LogCorrelator (statespine.logs)

MODULE MAP (recommended reading order)
──────────────────────────────────────
1. state_types.py   ─ StateKind + frozen state records
2. parser.py        ─ JSON → WorkflowDefinition
3. resources.py     ─ Task resource resolution strategies
4. graph.py         ─ recursive graph builder
5. visualizer.py    ─ Mermaid, ASCII, and summary renderers

Example:
    from statespine.orchestration import build_workflow_graph, default_resolver

    graph = build_workflow_graph(definition_json, default_resolver("eu-west-1"))
    for node in graph.task_nodes():
        print(node.id, node.resource_kind, node.resource)
"""

from statespine.orchestration.graph import (
    EdgeKind,
    GraphBuilder,
    GraphFragment,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
    build_workflow_graph,
)
from statespine.orchestration.parser import parse_definition, try_parse_definition
from statespine.orchestration.resources import (
    CompositeResourceResolver,
    ContainerTaskResourceResolver,
    FunctionResourceResolver,
    ResolvedResource,
    ResourceResolver,
    default_resolver,
)
from statespine.orchestration.state_types import (
    ChoiceRule,
    ChoiceState,
    MapState,
    ParallelState,
    PassState,
    StateKind,
    StateSpec,
    TaskState,
    WorkflowDefinition,
)

__all__ = [
    # state types
    "ChoiceRule",
    "ChoiceState",
    "MapState",
    "ParallelState",
    "PassState",
    "StateKind",
    "StateSpec",
    "TaskState",
    "WorkflowDefinition",
    # parsing
    "parse_definition",
    "try_parse_definition",
    # resources
    "CompositeResourceResolver",
    "ContainerTaskResourceResolver",
    "FunctionResourceResolver",
    "ResolvedResource",
    "ResourceResolver",
    "default_resolver",
    # graph
    "EdgeKind",
    "GraphBuilder",
    "GraphFragment",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
    "build_workflow_graph",
]
