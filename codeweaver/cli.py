"""Typer-based CLI for the CodeWeaver codebase intelligence engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config_manager
from .graph_export import EXPORT_VIEWS, export_dot
from .orchestrator import WeaverOrchestrator
from .queries import NO_CODE_MAPS, VIEWS, QueryResult
from .storage import WeaverStore

app = typer.Typer(
    help="CodeWeaver: structural maps of a source repository.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeWeaver v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log debug output to stderr."),
):
    """CodeWeaver: index a repository, build code maps, query them."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _orchestrator(workspace: Path) -> WeaverOrchestrator:
    return WeaverOrchestrator(WeaverStore(workspace.resolve()))


def _finish(outcome: QueryResult, as_json: bool = True) -> None:
    """Print a result, exiting non-zero for failures."""
    if not outcome.success:
        console.print(f"[red]{outcome.message}[/red]")
        raise typer.Exit(code=1)
    if as_json:
        console.print_json(data=outcome.to_dict())


@app.command("index")
def index_project(
    workspace: Path = typer.Argument(..., exists=True, file_okay=False, help="Project root (also holds .weaver/)."),
    as_json: bool = typer.Option(False, "--json", help="Print the full summary as JSON."),
):
    """Extract symbols from every source file into .weaver/index.json."""
    outcome = _orchestrator(workspace).index()
    if as_json:
        _finish(outcome)
        return

    summary = outcome.result
    typer.echo(outcome.message)
    typer.echo(
        f"Functions: {summary['totalFunctions']} | Classes: {summary['totalClasses']} | "
        f"Types: {summary['totalTypes']} | Variables: {summary['totalVariables']}"
    )
    typer.echo(f"Languages: {', '.join(summary['techStack']) or '-'}")

    table = Table(title="Top files")
    table.add_column("Path")
    table.add_column("Language")
    table.add_column("Symbols", justify="right")
    for entry in summary["topFiles"]:
        count = len(entry["functions"]) + len(entry["classes"]) + len(entry["types"])
        table.add_row(entry["path"], entry["language"], str(count))
    console.print(table)


@app.command("build")
def build_maps(
    workspace: Path = typer.Argument(..., exists=True, file_okay=False, help="Project root (also holds .weaver/)."),
    as_json: bool = typer.Option(False, "--json", help="Print the full summary as JSON."),
):
    """Build class, module, call and API maps from the stored index."""
    outcome = _orchestrator(workspace).build_maps()
    if as_json or not outcome.success:
        _finish(outcome)
        return

    summary = outcome.result
    typer.echo(outcome.message)
    typer.echo(
        f"Classes: {summary['classMap']['classes']} | Interfaces: {summary['classMap']['interfaces']} | "
        f"Relationships: {summary['classMap']['relationships']}"
    )
    typer.echo(
        f"Modules: {summary['moduleMap']['modules']} | Connections: {summary['moduleMap']['connections']}"
    )
    for layer in summary["moduleMap"]["layers"]:
        typer.echo(f"  {layer['name']}: {', '.join(layer['modules'])}")
    typer.echo(f"Functions: {summary['callGraph']['functions']} | Endpoints: {summary['apiMap']['endpoints']}")
    for route in summary["apiMap"]["routes"]:
        typer.echo(f"  {route}")


@app.command("deps")
def dependency_graph(
    workspace: Path = typer.Argument(..., exists=True, file_okay=False, help="Project root (also holds .weaver/)."),
):
    """Compute the file-level dependency graph and detect import cycles."""
    _finish(_orchestrator(workspace).dependency_graph())


@app.command("query")
def query(
    workspace: Path = typer.Argument(..., exists=True, file_okay=False, help="Project root (also holds .weaver/)."),
    view: str = typer.Argument(..., help=f"One of: {', '.join(VIEWS)}."),
    name: Optional[str] = typer.Option(None, "--query", "-q", help="Substring filter for classes/modules/calls."),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Repo-relative path (file view)."),
):
    """Query a view of the built code maps."""
    _finish(_orchestrator(workspace).query(view, query=name, file=file))


@app.command("search")
def search(
    workspace: Path = typer.Argument(..., exists=True, file_okay=False, help="Project root (also holds .weaver/)."),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Path substring filter."),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language filter, e.g. Python."),
    name: Optional[str] = typer.Option(None, "--query", "-q", help="Symbol-name substring."),
    imports: bool = typer.Option(False, "--imports", help="Include import lists."),
    variables: bool = typer.Option(False, "--variables", help="Include variables."),
):
    """Search the stored index by path, language and symbol name."""
    _finish(_orchestrator(workspace).search(
        file=file,
        language=language,
        query=name,
        include_imports=imports,
        include_variables=variables,
    ))


@app.command("export")
def export_graph(
    workspace: Path = typer.Argument(..., exists=True, file_okay=False, help="Project root (also holds .weaver/)."),
    output: Path = typer.Argument(..., help="Output .dot file."),
    view: str = typer.Option("classes", "--view", help=f"One of: {', '.join(EXPORT_VIEWS)}."),
    focus: str = typer.Option("", "--focus", help="Only nodes matching this text, plus neighbours."),
):
    """Export a code map as a Graphviz DOT file."""
    if view not in EXPORT_VIEWS:
        raise typer.BadParameter(f"view must be one of: {', '.join(EXPORT_VIEWS)}")
    bundle = WeaverStore(workspace.resolve()).read_code_maps()
    if bundle is None:
        console.print(f"[red]{NO_CODE_MAPS}[/red]")
        raise typer.Exit(code=1)
    written = export_dot(bundle, output, view=view, focus=focus)
    typer.echo(f"Exported {written} nodes to {output}")


@app.command("config")
def configure(
    workspace: Path = typer.Argument(..., exists=True, file_okay=False, help="Project root (also holds .weaver/)."),
    max_file_size: Optional[int] = typer.Option(None, "--max-file-size", min=1, help="Skip files above this size."),
    skip_dir: Optional[List[str]] = typer.Option(None, "--skip-dir", help="Extra directory name to skip."),
):
    """Show or update the workspace [index] settings."""
    if max_file_size is not None or skip_dir:
        path = config_manager.save_index_config(
            workspace.resolve(),
            max_file_size=max_file_size,
            skip_dirs=list(skip_dir) if skip_dir else None,
        )
        typer.echo(f"Saved {path}")
    console.print_json(data=config_manager.load_index_config(workspace.resolve()))
