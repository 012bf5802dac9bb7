"""Scan a suite and apply the run's filter chain."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from ...core.errors import RegsuiteError
from ...core.log import get_logger
from .common import build_run_context, console, fail, parse_pairs, print_errors

logger = get_logger(__name__)


def select(
    ctx: typer.Context,
    root: Path = typer.Argument(..., help="Test suite root (directory containing TEST.ROOT)"),
    paths: Optional[List[Path]] = typer.Argument(None, help="Files or directories to scan"),
    group: Optional[List[str]] = typer.Option(None, "--group", "-g", help="Restrict to a test group"),
    requires_prop: Optional[List[str]] = typer.Option(
        None, "--requires-prop", help="JDK property for @requires, as name=value"
    ),
    vm_option: Optional[List[str]] = typer.Option(None, "--vm-option", help="Effective VM option"),
    keywords: Optional[str] = typer.Option(None, "--keywords", "-k", help="Keyword expression"),
    time_limit: Optional[int] = typer.Option(None, "--time-limit", help="Maximum test timeout in seconds"),
    exclude_list: Optional[List[Path]] = typer.Option(None, "--exclude-list", help="Exclude list file"),
    show_rejected: bool = typer.Option(False, "--show-rejected", help="List rejected tests"),
) -> None:
    """Select the tests the filter chain accepts."""
    properties = parse_pairs(requires_prop, "--requires-prop")
    errors: List[str] = []
    try:
        run = build_run_context(
            ctx,
            root,
            errors,
            jdk_properties=properties,
            vm_options=vm_option,
            keywords=keywords,
            time_limit=time_limit,
            exclude_lists=exclude_list or None,
        )
        result = run.select(paths or (), group or ())
    except RegsuiteError as e:
        logger.error("Selection failed: %s", e.message)
        fail(e)

    table = Table(title="Selected Tests")
    table.add_column("Test", style="cyan")
    table.add_column("Title", style="green")
    for desc in result.selected:
        table.add_row(desc.url, desc.title)
    console.print(table)

    if show_rejected and result.rejected:
        rejected = Table(title="Rejected Tests")
        rejected.add_column("Test", style="cyan")
        rejected.add_column("Filter", style="yellow")
        for name, tests in result.rejected.items():
            for desc in tests:
                rejected.add_row(desc.url, name)
        console.print(rejected)

    summary = Table(title="Selection Summary")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Total", str(result.total))
    summary.add_row("Selected", f"{result.selected_count} ({result.selection_rate:.1f}%)")
    for name, tests in result.rejected.items():
        summary.add_row(f"Rejected by {name}", str(len(tests)))
    if result.ignored:
        summary.add_row("Ignored", str(len(result.ignored)))
    console.print(summary)

    for url, message in result.faults.items():
        console.print(f"[yellow]{url}: {message}[/yellow]")
    for url, message in result.errors.items():
        console.print(f"[red]{url}: {message}[/red]")
    print_errors(errors)
