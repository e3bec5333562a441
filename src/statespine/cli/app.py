"""
Root Typer application for the statespine CLI.

Runs the core over local JSON files: a workflow definition, and
optionally an execution history export (a JSON list of history events,
or an object with an ``events`` list).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import typer
from typer import Typer

from statespine import __version__
from statespine.cli.utils import (
    fail,
    load_json_file,
    output_json,
    output_table,
    output_text,
)
from statespine.core.config import get_settings
from statespine.core.logging import configure_logging
from statespine.execution.history import parse_history
from statespine.execution.timeline import StateStatus, TimelineReconstructor
from statespine.ops.responses import StateStatusModel, WorkflowGraphModel
from statespine.orchestration.graph import WorkflowGraph, build_workflow_graph
from statespine.orchestration.resources import default_resolver
from statespine.orchestration.visualizer import (
    visualize_ascii,
    visualize_mermaid,
    visualize_summary,
)

app = Typer(
    name="statespine",
    help="statespine - inspect state-machine workflow definitions and executions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


class RenderFormat(str, Enum):
    MERMAID = "mermaid"
    ASCII = "ascii"
    SUMMARY = "summary"


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"statespine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level for diagnostics on stderr (default: STATESPINE_LOG_LEVEL)."
    ),
) -> None:
    """statespine CLI - graphs, timelines and diagrams from workflow JSON."""
    settings = get_settings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.log_json)


# ── Helpers ──────────────────────────────────────────────────────────────


def _load_graph(definition: Path, region: str | None) -> WorkflowGraph:
    payload = load_json_file(definition)
    resolver = default_resolver(region or get_settings().resolved_region)
    graph = build_workflow_graph(payload, resolver)
    if graph.error:
        fail(graph.error)
    return graph


def _load_timeline(history: Path, status: str | None) -> dict[str, StateStatus]:
    payload: Any = load_json_file(history)
    if isinstance(payload, dict):
        payload = payload.get("events", [])
    if not isinstance(payload, list):
        fail(f"{history} must hold a list of history events")
    return TimelineReconstructor().reconstruct(parse_history(payload), status)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("graph")
def graph_command(
    definition: Path = typer.Argument(..., help="Workflow definition JSON file"),
    region: str | None = typer.Option(None, "--region", help="Region for console links"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Compile a definition and list its states and transitions."""
    graph = _load_graph(definition, region)
    if json_out:
        output_json(WorkflowGraphModel.from_graph(graph))
        return
    output_table(
        list(graph.nodes),
        title=f"States (start: {graph.start_at or '?'})",
        columns=["id", "type", "resource_kind", "resource"],
    )
    output_table(list(graph.edges), title="Transitions")


@app.command("timeline")
def timeline_command(
    history: Path = typer.Argument(..., help="Execution history JSON file"),
    status: str | None = typer.Option(None, "--status", help="Execution status, e.g. FAILED"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Replay an execution history into per-state status."""
    statuses = _load_timeline(history, status)
    models = [StateStatusModel.from_status(s) for s in statuses.values()]
    if json_out:
        output_json(models)
        return
    output_table(models, title="State statuses")


@app.command("render")
def render_command(
    definition: Path = typer.Argument(..., help="Workflow definition JSON file"),
    fmt: RenderFormat = typer.Option(RenderFormat.MERMAID, "--format", "-f"),
    history: Path | None = typer.Option(None, "--history", help="Overlay state status from this history"),
    status: str | None = typer.Option(None, "--status", help="Execution status for --history"),
    direction: str = typer.Option("TD", "--direction", help="Mermaid direction (TD, LR)"),
    region: str | None = typer.Option(None, "--region"),
) -> None:
    """Render a definition as Mermaid, ASCII, or a structural summary."""
    graph = _load_graph(definition, region)
    statuses = _load_timeline(history, status) if history is not None else None

    match fmt:
        case RenderFormat.MERMAID:
            output_text(visualize_mermaid(graph, statuses, direction=direction))
        case RenderFormat.ASCII:
            output_text(visualize_ascii(graph, statuses))
        case RenderFormat.SUMMARY:
            output_json(visualize_summary(graph))
