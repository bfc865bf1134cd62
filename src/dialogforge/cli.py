"""DialogForge CLI - typer application entry point."""

from __future__ import annotations

import atexit
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from dialogforge.codec import parse_scalar
from dialogforge.config import (
    CONFIG_FILE_NAME,
    GRAPH_FILE_NAME,
    DialogueConfig,
    ProjectConfigError,
    create_default_config,
    load_project_config,
    save_project_config,
)
from dialogforge.export import (
    Compiled,
    JsonExporter,
    Loaded,
    compile_graph,
    load_document,
    read_document,
)
from dialogforge.graph import (
    DialogueGraph,
    ExecutorType,
    GraphIntegrityError,
    JsonFileDraftStore,
    NodeKind,
    NodeNotFoundError,
    Port,
    autosave,
)
from dialogforge.graph.model import AnyNode  # noqa: TC001
from dialogforge.observability import (
    bind_project,
    close_file_logging,
    configure_logging,
    get_logger,
)

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="dlg",
    help="DialogForge: author NPC dialogue graphs and export them for the game runtime.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

# Default directory for projects
DEFAULT_PROJECTS_DIR = Path("projects")

# Where each kind sends its outbound edge, and where inbound edges land
_SOURCE_PORT = {
    NodeKind.ENTRY: Port.INITIAL_TARGET,
    NodeKind.ACTION: Port.ACTION_RESULT,
    NodeKind.RESULT: Port.RESULT_ACTIONS,
}
_TARGET_PORT = {
    NodeKind.ACTION: Port.ACTION_OWNER,
    NodeKind.RESULT: Port.NODE_TRIGGER,
    NodeKind.CONDITIONAL: Port.NODE_TRIGGER,
}

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False
_projects_dir: Path = DEFAULT_PROJECTS_DIR

ProjectOption = Annotated[
    Path | None,
    typer.Option(
        "--project",
        "-p",
        help="Project directory. Can be a path or name (looks in --projects-dir).",
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_to_file: Annotated[
        bool,
        typer.Option("--log", help="Enable file logging to {project}/logs/debug.jsonl."),
    ] = False,
    projects_dir: Annotated[
        Path,
        typer.Option(
            "--projects-dir",
            "-d",
            help="Base directory for projects (default: ./projects).",
            envvar="DLG_PROJECTS_DIR",
        ),
    ] = DEFAULT_PROJECTS_DIR,
) -> None:
    """DialogForge: author NPC dialogue graphs and export them for the game runtime."""
    global _verbose, _log_enabled, _projects_dir
    _verbose = verbose
    _log_enabled = log_to_file
    _projects_dir = projects_dir

    # File logging is configured later, once the project is known
    configure_logging(verbosity=verbose)


# -----------------------------------------------------------------------------
# Project helpers
# -----------------------------------------------------------------------------


def _configure_project_logging(project_path: Path) -> None:
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_to_file=True, project_path=project_path)
        atexit.register(close_file_logging)


def _resolve_project_path(project: Path | None) -> Path:
    """Resolve project path from argument.

    Resolution order:
    1. If project is None, use current directory
    2. If project exists as given, use it
    3. If project is a name (no path separators), look in _projects_dir
    """
    if project is None:
        return Path()

    if project.exists():
        return project

    if len(project.parts) == 1:
        projects_path = _projects_dir / project
        if projects_path.exists():
            return projects_path

    # Return as-is (fails in _require_project with a helpful error)
    return project


def _require_project(project: Path | None) -> tuple[Path, DialogueConfig]:
    """Resolve the project and load its config, exiting with an error if either fails."""
    project_path = _resolve_project_path(project)
    if not (project_path / CONFIG_FILE_NAME).exists():
        console.print(
            f"[red]Error:[/red] No {CONFIG_FILE_NAME} found. "
            "Run 'dlg init <name>' first, or use --project."
        )
        raise typer.Exit(1)
    try:
        config = load_project_config(project_path)
    except ProjectConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    _configure_project_logging(project_path)
    bind_project(config.name or project_path.name)
    return project_path, config


def _open_graph(project_path: Path) -> DialogueGraph:
    """Load the project's working graph and save it back after every edit."""
    store = JsonFileDraftStore(project_path / GRAPH_FILE_NAME)
    try:
        graph = DialogueGraph.from_store(store)
    except ValueError as e:
        console.print(f"[red]Error:[/red] Cannot read {store.path}: {e}")
        raise typer.Exit(1) from None
    autosave(graph, store)
    return graph


def _fail(error: Exception) -> typer.Exit:
    message = error.describe() if isinstance(error, GraphIntegrityError) else str(error)
    console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(1)


def _require_node(graph: DialogueGraph, node_id: str, context: str) -> AnyNode:
    node = graph.get_node(node_id)
    if node is None:
        available = [n.id for n in graph.nodes]
        raise _fail(NodeNotFoundError(node_id, available=available, context=context))
    return node


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


@app.command()
def version() -> None:
    """Show version information."""
    from dialogforge import __version__

    console.print(f"DialogForge v{__version__}")


def _init_project(name: str, parent_dir: Path, npc: str = "") -> Path:
    """Create a new project directory with config and an empty graph.

    Raises:
        typer.Exit: If the directory already exists.
    """
    parent_dir.mkdir(parents=True, exist_ok=True)

    project_path = parent_dir / name
    if project_path.exists():
        console.print(f"[red]Error:[/red] Directory '{project_path}' already exists")
        raise typer.Exit(1)

    project_path.mkdir(parents=True)
    save_project_config(project_path, create_default_config(name, npc=npc))
    JsonFileDraftStore(project_path / GRAPH_FILE_NAME).save(DialogueGraph.empty().to_dict())
    return project_path


@app.command()
def init(
    name: Annotated[str, typer.Argument(help="Dialogue name (also the exported file name)")],
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            help="Parent directory for the project (default: --projects-dir).",
        ),
    ] = None,
    npc: Annotated[str, typer.Option("--npc", help="NPC identifier in the game runtime.")] = "",
) -> None:
    """Initialize a new dialogue project.

    Creates a project directory with:
    - dialogue.yaml: Project configuration
    - graph.json: The editable dialogue graph
    """
    parent_dir = path if path is not None else _projects_dir
    project_path = _init_project(name, parent_dir, npc=npc)

    console.print(f"[green]✓[/green] Created project: [bold]{name}[/bold]")
    console.print(f"  Location: {project_path.absolute()}")
    console.print()
    console.print("Next steps:")
    console.print(f"  dlg add-node result -p {project_path} --text 'Hello, traveller!'")


@app.command("add-node")
def add_node(
    kind: Annotated[str, typer.Argument(help="Node kind: action, result or conditional")],
    project: ProjectOption = None,
    node_id: Annotated[
        str | None, typer.Option("--id", help="Node id (default: random UUID).")
    ] = None,
    x: Annotated[float, typer.Option("--x", help="Canvas x position.")] = 0.0,
    y: Annotated[float, typer.Option("--y", help="Canvas y position.")] = 0.0,
    text: Annotated[
        str | None,
        typer.Option("--text", help="Action label, result message or condition value."),
    ] = None,
) -> None:
    """Add a node to the graph and print its id."""
    project_path, _ = _require_project(project)
    graph = _open_graph(project_path)

    try:
        node_kind = NodeKind(kind)
        node = graph.create_node(node_kind, (x, y), node_id)
        if text is not None:
            text_field = {
                NodeKind.ACTION: "label",
                NodeKind.RESULT: "message",
                NodeKind.CONDITIONAL: "value",
            }[node_kind]
            node = graph.update_node_data(node.id, **{text_field: text})
    except (GraphIntegrityError, ValueError) as e:
        raise _fail(e) from None

    log.info("node_added", node=node.id, kind=node.type)
    console.print(f"[green]✓[/green] Added {node.type} node [bold]{node.id}[/bold]")


@app.command()
def connect(
    source: Annotated[str, typer.Argument(help="Source node id ('initial' for the entry)")],
    target: Annotated[str, typer.Argument(help="Target node id")],
    project: ProjectOption = None,
    branch: Annotated[
        bool | None,
        typer.Option(
            "--true/--false",
            help="Which branch of a conditional source to connect.",
            show_default=False,
        ),
    ] = None,
) -> None:
    """Connect two nodes, choosing ports from their kinds.

    Entry and actions lead to results or conditions, results offer actions,
    and conditions need --true or --false to pick a branch.
    """
    project_path, _ = _require_project(project)
    graph = _open_graph(project_path)

    source_node = _require_node(graph, source, "connect source")
    target_node = _require_node(graph, target, "connect target")
    source_kind = NodeKind(source_node.type)
    target_kind = NodeKind(target_node.type)

    if source_kind is NodeKind.CONDITIONAL:
        if branch is None:
            console.print("[red]Error:[/red] Conditional sources need --true or --false")
            raise typer.Exit(1)
        source_port = Port.CONDITION_TRUE if branch else Port.CONDITION_FALSE
    else:
        source_port = _SOURCE_PORT[source_kind]

    target_port = _TARGET_PORT.get(target_kind)
    if target_port is None:
        console.print("[red]Error:[/red] The entry node cannot be a connection target")
        raise typer.Exit(1)

    try:
        edge = graph.connect(source, source_port, target, target_port)
    except GraphIntegrityError as e:
        raise _fail(e) from None

    if source_kind is NodeKind.RESULT:
        graph.sync_preferred(source)

    log.info("nodes_connected", edge=edge.id)
    console.print(f"[green]✓[/green] Connected {source}.{source_port} → {target}.{target_port}")


@app.command()
def disconnect(
    source: Annotated[str, typer.Argument(help="Source node id")],
    target: Annotated[str, typer.Argument(help="Target node id")],
    project: ProjectOption = None,
) -> None:
    """Remove every edge from SOURCE to TARGET."""
    project_path, _ = _require_project(project)
    graph = _open_graph(project_path)

    removed = [e.id for e in graph.edges_from(source) if e.target == target]
    if not removed:
        console.print(f"[yellow]No edge from {source} to {target}[/yellow]")
        raise typer.Exit(1)
    for edge_id in removed:
        graph.disconnect(edge_id)
    console.print(f"[green]✓[/green] Removed {len(removed)} edge(s)")


@app.command("remove-node")
def remove_node(
    node_id: Annotated[str, typer.Argument(help="Node id")],
    project: ProjectOption = None,
) -> None:
    """Delete a node together with all of its edges."""
    project_path, _ = _require_project(project)
    graph = _open_graph(project_path)

    try:
        removed = graph.delete_node(node_id)
    except GraphIntegrityError as e:
        raise _fail(e) from None

    log.info("node_removed", node=node_id, edges=len(removed))
    console.print(f"[green]✓[/green] Removed {node_id} and {len(removed)} edge(s)")


def _field_update(node: Any, field_name: str, raw: str) -> dict[str, Any]:
    """Turn ``set`` arguments into update_node_data keyword arguments."""
    if field_name.startswith("handle."):
        handle = node.data.handle.model_dump()
        handle[field_name.removeprefix("handle.")] = raw
        return {"handle": handle}
    if field_name in ("close", "close.enabled"):
        return {"close": {**node.data.close.model_dump(), "enabled": parse_scalar(raw)}}
    if field_name == "close.delay":
        return {"close": {**node.data.close.model_dump(), "delay": parse_scalar(raw)}}
    if field_name == "objective":
        return {"objective": parse_scalar(raw)}
    if field_name == "preferred":
        return {"preferred": None if raw == "null" else raw}
    if field_name == "order":
        return {"order": [part.strip() for part in raw.split(",") if part.strip()]}
    return {field_name: raw}


@app.command("set")
def set_field(
    node_id: Annotated[str, typer.Argument(help="Node id")],
    field_name: Annotated[
        str,
        typer.Argument(
            metavar="FIELD",
            help=(
                "label, message, preferred, order (comma separated), close, close.delay, "
                "value, condition, objective, or handle.<port> (left/right)"
            ),
        ),
    ],
    value: Annotated[str, typer.Argument(help="New value")],
    project: ProjectOption = None,
) -> None:
    """Set a field of a node's data."""
    project_path, _ = _require_project(project)
    graph = _open_graph(project_path)
    node = _require_node(graph, node_id, "set")

    try:
        graph.update_node_data(node_id, **_field_update(node, field_name, value))
    except (GraphIntegrityError, ValueError) as e:
        raise _fail(e) from None

    console.print(f"[green]✓[/green] {node_id}.{field_name} = {value}")


@app.command("add-executor")
def add_executor(
    result_id: Annotated[str, typer.Argument(help="Result node id")],
    executor_type: Annotated[
        str,
        typer.Argument(
            metavar="TYPE", help="command, dialog_store, set_coins, set_gems or open_market"
        ),
    ],
    value: Annotated[str, typer.Argument(help="Executor value")] = "",
    key: Annotated[str | None, typer.Option("--key", help="Store key (dialog_store only).")] = None,
    project: ProjectOption = None,
) -> None:
    """Attach a side effect to a result node."""
    project_path, _ = _require_project(project)
    graph = _open_graph(project_path)

    try:
        kind = ExecutorType(executor_type)
        payload: Any
        if kind is ExecutorType.DIALOG_STORE:
            payload = {"key": key or "", "value": parse_scalar(value)}
        elif kind in (ExecutorType.SET_COINS, ExecutorType.SET_GEMS):
            payload = parse_scalar(value)
        else:
            payload = value
        graph.add_executor(result_id, kind, payload)
    except (GraphIntegrityError, ValueError) as e:
        raise _fail(e) from None

    console.print(f"[green]✓[/green] Added {kind} executor to {result_id}")


@app.command("export")
def export_dialogue(
    project: ProjectOption = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output directory (default: output_dir in config)."),
    ] = None,
) -> None:
    """Compile the graph and write the dialogue document."""
    project_path, config = _require_project(project)
    graph = _open_graph(project_path)

    if not config.name:
        console.print(f"[red]Error:[/red] Set 'name' in {CONFIG_FILE_NAME} before exporting")
        raise typer.Exit(1)

    outcome = compile_graph(
        graph.nodes,
        graph.edges,
        npc=config.npc,
        interaction=config.document_interaction(),
    )
    if not isinstance(outcome, Compiled):
        console.print(f"[red]Error:[/red] Nothing to export: {outcome.reason}")
        raise typer.Exit(1)

    for warning in outcome.warnings:
        console.print(f"[yellow]⚠[/yellow] {warning.message}")

    output_dir = output if output is not None else project_path / config.output_dir
    output_file = JsonExporter().export(outcome.document, output_dir, config.name)
    log.info("document_exported", path=str(output_file), warnings=len(outcome.warnings))

    document = outcome.document
    console.print(
        f"[green]✓[/green] Exported {len(document.results)} result(s), "
        f"{len(document.actions)} action(s), {len(document.conditions)} condition(s)"
    )
    console.print(f"  File: {output_file}")


@app.command("import")
def import_document(
    file: Annotated[Path, typer.Argument(help="Dialogue document (JSON)")],
    project: ProjectOption = None,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Replace a non-empty graph.")
    ] = False,
) -> None:
    """Replace the project graph with one loaded from a dialogue document."""
    project_path, config = _require_project(project)
    graph = _open_graph(project_path)

    if len(graph.nodes) > 1 and not force:
        console.print("[red]Error:[/red] The graph is not empty. Use --force to replace it.")
        raise typer.Exit(1)

    data = read_document(file)
    outcome = data if not isinstance(data, dict) else load_document(data)
    if not isinstance(outcome, Loaded):
        console.print(f"[red]Error:[/red] Cannot import {file}: {outcome.reason}")
        raise typer.Exit(1)

    store = JsonFileDraftStore(project_path / GRAPH_FILE_NAME)
    store.save(outcome.graph.to_dict())

    config.npc = outcome.npc
    config.apply_interaction(outcome.interaction)
    save_project_config(project_path, config)

    log.info("document_imported", path=str(file), schema_version=outcome.schema_version)
    console.print(
        f"[green]✓[/green] Imported {len(outcome.graph.nodes)} node(s) and "
        f"{len(outcome.graph.edges)} edge(s) (schema v{outcome.schema_version})"
    )


@app.command()
def check(project: ProjectOption = None) -> None:
    """Inspect the graph for problems before export."""
    from dialogforge.inspection import inspect_graph

    project_path, config = _require_project(project)
    graph = _open_graph(project_path)
    report = inspect_graph(graph)

    summary = report.summary
    console.print()
    console.print(f"[bold]{config.name or project_path.name}[/bold]")
    console.print(
        "  "
        + ", ".join(f"{count} {kind}" for kind, count in sorted(summary.node_counts.items()))
        + f", {summary.total_edges} edge(s)"
    )

    table = Table(title="Checks")
    table.add_column("Check", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Detail")

    status_icons = {
        "pass": "[green]✓[/green] pass",
        "warn": "[yellow]⚠[/yellow] warn",
        "fail": "[red]✗[/red] fail",
    }
    for item in report.validation.checks:
        table.add_row(item.name, status_icons[item.severity], item.message)

    console.print()
    console.print(table)
    console.print(report.validation.summary)

    if report.validation.has_failures:
        raise typer.Exit(1)
