"""Typer-based CLI for umlgraph: Java sources to UML class diagrams."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, config
from .config_manager import DEFAULT_CONFIG, load_config, render_config, save_config
from .models import DeclaredRef, Diagnostic, ExternalRef, UnresolvedRef
from .orchestrator import DiagramOrchestrator, RunReport
from .resolver import ResolutionContext
from .sources import SourceRootError

console = Console()
err_console = Console(stderr=True)

EXIT_USAGE = 1
EXIT_SOURCE_ROOTS = 2
EXIT_GENERATION = 3
EXIT_DIAGNOSTICS = 4

app = typer.Typer(
    help="📐 umlgraph: UML class diagrams from Java sources.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Configuration group ──────────────────────────────────────
config_app = typer.Typer(
    help="⚙️  Configuration: show or initialise settings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def setup_logging(level: str) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"umlgraph v{__version__}")
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
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    verbose: bool = typer.Option(False, "--verbose", help="Shortcut for --log-level DEBUG."),
):
    """umlgraph: resolve every type reference in a Java code base and draw the class diagram."""
    level = "DEBUG" if verbose else (log_level or load_config()["logging"].get("level", "WARNING"))
    setup_logging(level)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _print_diagnostics(diagnostics: Sequence[Diagnostic]) -> None:
    table = Table(title="⚠️  Diagnostics", title_style="bold yellow", show_lines=False)
    table.add_column("Code", style="yellow", no_wrap=True)
    table.add_column("Subject", style="cyan", overflow="fold")
    table.add_column("Message", style="dim", overflow="fold")
    for diagnostic in diagnostics:
        table.add_row(diagnostic.code, diagnostic.subject, diagnostic.message)
    console.print(table)


def _print_summary(report: RunReport) -> None:
    classified = report.result.classified
    counts = Counter(edge.edge_type.value for edge in classified.edges)
    flagged = sum(1 for edge in classified.edges if edge.review is not None)
    console.print(f"[green]✅ Wrote[/green] {report.output_file}")
    console.print(
        f"  [dim]Files[/dim] {report.files_parsed}  "
        f"[dim]Types[/dim] {len(classified.types)}  "
        f"[dim]Edges[/dim] {len(classified.edges)} "
        f"({', '.join(f'{k} {v}' for k, v in sorted(counts.items())) or 'none'})"
    )
    if flagged:
        console.print(f"  [yellow]{flagged} edge(s) flagged for review[/yellow]")


def _scan_index(orchestrator: DiagramOrchestrator, source_paths: Optional[List[Path]]):
    try:
        scan = orchestrator.scan(source_paths or None)
    except SourceRootError as exc:
        console.print(f"[red]❌ {exc}[/red]")
        raise typer.Exit(code=EXIT_SOURCE_ROOTS)
    return orchestrator.build_index(scan)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("generate")
def generate(
    source_paths: Optional[List[Path]] = typer.Option(
        None, "--source-path", "-s", help="Source root to scan (repeatable). Default: src/main/java, src or ."
    ),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-d", help="Directory for the diagram file."),
    fmt: str = typer.Option("puml", "--format", "-f", help="Output format: puml or dot."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Diagram name (and file stem)."),
    oracle: Optional[bool] = typer.Option(
        None, "--oracle/--no-oracle", help="Use imports to resolve names before the textual fallback."
    ),
    fail_on_diagnostics: bool = typer.Option(
        False, "--fail-on-diagnostics", help="Exit with status 4 when any diagnostic was recorded."
    ),
):
    """Generate the class diagram for a Java source tree."""
    if fmt not in config.OUTPUT_SUFFIXES:
        console.print(f"[red]❌ Unknown format '{fmt}'. Use one of: {', '.join(config.OUTPUT_SUFFIXES)}[/red]")
        raise typer.Exit(code=EXIT_USAGE)

    orchestrator = DiagramOrchestrator(load_config())
    try:
        report = orchestrator.run(source_paths or None, output_dir, fmt, oracle, name)
    except SourceRootError as exc:
        console.print(f"[red]❌ {exc}[/red]")
        raise typer.Exit(code=EXIT_SOURCE_ROOTS)
    except (OSError, ValueError) as exc:
        console.print(f"[red]❌ Diagram generation failed: {exc}[/red]")
        raise typer.Exit(code=EXIT_GENERATION)

    _print_summary(report)
    if report.diagnostics:
        _print_diagnostics(report.diagnostics)
        if fail_on_diagnostics:
            raise typer.Exit(code=EXIT_DIAGNOSTICS)


@app.command("types")
def list_types(
    source_paths: Optional[List[Path]] = typer.Option(None, "--source-path", "-s", help="Source root to scan (repeatable)."),
):
    """List declared types in index order."""
    index = _scan_index(DiagramOrchestrator(load_config()), source_paths)
    if not len(index):
        console.print("[yellow]No types declared.[/yellow]")
        return

    table = Table(title=f"📦 {len(index)} declared types", title_style="bold cyan")
    table.add_column("Key", style="cyan", overflow="fold")
    table.add_column("Kind", style="white", no_wrap=True)
    table.add_column("Package", style="dim", overflow="fold")
    table.add_column("Owner", style="dim", overflow="fold")
    for declared in index.types_in_index_order():
        table.add_row(declared.key, declared.kind.value, declared.package or "(default)", declared.owner_key or "")
    console.print(table)


@app.command("resolve")
def resolve(
    type_name: str = typer.Argument(..., help="Type name as it would be written in source."),
    package: str = typer.Option("", "--package", "-p", help="Package the name is used from."),
    owner: Optional[str] = typer.Option(None, "--owner", help="Canonical key of the enclosing type."),
    source_paths: Optional[List[Path]] = typer.Option(None, "--source-path", "-s", help="Source root to scan (repeatable)."),
    oracle: Optional[bool] = typer.Option(None, "--oracle/--no-oracle", help="Consult the import oracle first."),
):
    """Show how a type name resolves against the declared types."""
    orchestrator = DiagramOrchestrator(load_config())
    index = _scan_index(orchestrator, source_paths)
    resolver = orchestrator.resolver(index, oracle)

    imports = ()
    if owner and owner in index:
        imports = index.get(owner).imports
    ref = resolver.resolve_name(type_name, ResolutionContext(package, owner, imports))

    if isinstance(ref, DeclaredRef):
        typer.echo(f"declared {ref.key}")
    elif isinstance(ref, ExternalRef):
        typer.echo(f"external {ref.qualified_name}")
    elif isinstance(ref, UnresolvedRef):
        typer.echo(f"unresolved {ref.raw_name}")
    else:
        raise TypeError(f"Unknown type reference: {ref!r}")


@config_app.command("show")
def config_show():
    """Print the effective configuration as TOML."""
    typer.echo(render_config(load_config()))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing user configuration."),
    path: Optional[Path] = typer.Option(None, "--path", help="Write here instead of the user config file."),
):
    """Write the default configuration file."""
    target = path or config.CONFIG_FILE
    if target.exists() and not force:
        console.print(f"[yellow]Config already exists at {target}. Use --force to overwrite.[/yellow]")
        raise typer.Exit(code=EXIT_USAGE)
    if not save_config(DEFAULT_CONFIG, target):
        console.print(f"[red]❌ Could not write {target}[/red]")
        raise typer.Exit(code=EXIT_GENERATION)
    console.print(f"[green]✅ Wrote default configuration to[/green] {target}")


if __name__ == "__main__":
    app()
