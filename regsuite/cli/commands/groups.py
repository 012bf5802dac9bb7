"""Show test group definitions and the files they resolve to."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from ...core.errors import InvalidGroupError, RegsuiteError
from ...core.log import get_logger
from .common import build_run_context, console, fail, print_errors

logger = get_logger(__name__)


def groups(
    ctx: typer.Context,
    root: Path = typer.Argument(..., help="Test suite root (directory containing TEST.ROOT)"),
    names: Optional[List[str]] = typer.Argument(None, help="Groups to resolve"),
) -> None:
    """List the suite's groups, or the files making up the named groups."""
    errors: List[str] = []
    try:
        run = build_run_context(ctx, root, errors)
        manager = run.groups
    except RegsuiteError as e:
        logger.error("Loading groups failed: %s", e.message)
        fail(e)

    if not names:
        table = Table(title=f"Groups in {run.suite.root}")
        table.add_column("Group", style="cyan")
        table.add_column("Status", style="green")
        for name in sorted(manager.names()):
            group = manager.group(name)
            status = f"[red]invalid: {'; '.join(group.errors)}[/red]" if group.invalid else "ok"
            table.add_row(name, status)
        console.print(table)
        print_errors(errors)
        return

    exit_code = 0
    for name in names:
        try:
            files = manager.files_for(name)
        except InvalidGroupError as e:
            console.print(f"[red]{e.message}[/red]")
            exit_code = 1
            continue
        except RegsuiteError as e:
            fail(e)
        table = Table(title=f"Group {name}")
        table.add_column("Path", style="cyan")
        for path in sorted(files):
            table.add_row(path.relative_to(run.suite.root).as_posix() or ".")
        console.print(table)
    print_errors(errors)
    if exit_code:
        raise typer.Exit(exit_code)
