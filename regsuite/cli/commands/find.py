"""Scan a suite and list the test descriptions found."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from ...core.errors import RegsuiteError
from ...core.log import get_logger
from ...utils.codec import to_json_string
from .common import build_run_context, console, fail, print_errors

logger = get_logger(__name__)


def find(
    ctx: typer.Context,
    root: Path = typer.Argument(..., help="Test suite root (directory containing TEST.ROOT)"),
    paths: Optional[List[Path]] = typer.Argument(None, help="Files or directories to scan"),
    output_format: str = typer.Option("rich", "--format", help="Output format: rich, json"),
) -> None:
    """Scan the suite and list test descriptions."""
    if output_format not in ("rich", "json"):
        console.print(f"[red]Unknown format: {output_format}[/red]")
        raise typer.Exit(1)

    errors: List[str] = []
    try:
        run = build_run_context(ctx, root, errors)
        descriptions = run.scan(paths or ())
    except RegsuiteError as e:
        logger.error("Scan failed: %s", e.message)
        fail(e)

    if output_format == "json":
        console.print_json(to_json_string([desc.to_dict() for desc in descriptions]))
    else:
        table = Table(title=f"Tests in {run.suite.root}")
        table.add_column("Test", style="cyan")
        table.add_column("Title", style="green")
        table.add_column("Keywords", style="magenta")
        table.add_column("Requires", style="yellow")
        for desc in descriptions:
            title = f"[red]{desc.error}[/red]" if desc.error else desc.title
            table.add_row(desc.url, title, " ".join(sorted(desc.keywords)), desc.requires or "")
        console.print(table)
        console.print(f"{len(descriptions)} tests found")
    print_errors(errors)
