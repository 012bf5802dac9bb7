"""Main CLI entry point for regsuite."""

import sys
from pathlib import Path
from typing import Optional

import typer
from pydantic import BaseModel, Field
from rich.console import Console
from rich.table import Table

from ..core.errors import RegsuiteError
from ..core.log import configure_logging, get_logger
from .commands.eval import evaluate
from .commands.find import find
from .commands.groups import groups
from .commands.select import select


class GlobalCliOptions(BaseModel):
    """Global CLI options that can be used across all commands."""

    verbose: int = Field(0, description="Increase verbosity level")
    config_file: Optional[Path] = Field(None, description="Configuration file path")
    log_level: str = Field(
        "INFO", description="Harness logging level (DEBUG, INFO, WARNING, ERROR)"
    )


app = typer.Typer(
    name="regsuite",
    help="Regression test-suite metadata harness",
    no_args_is_help=True,
    rich_markup_mode="markdown",
)
app.command(name="find", help="Scan a suite for tests")(find)
app.command(name="groups", help="Show test groups")(groups)
app.command(name="select", help="Select tests for a run")(select)
app.command(name="eval", help="Evaluate a @requires expression")(evaluate)
console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase verbosity level"
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Harness logging level (DEBUG, INFO, WARNING, ERROR) - explicit level",
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
) -> None:
    """regsuite: find, filter and group regression tests."""
    if verbose > 0 and log_level is not None:
        console.print("[red]Error: Cannot specify both --verbose and --log-level[/red]")
        raise typer.Exit(1)

    if log_level is None:
        resolved_log_level = (
            "DEBUG" if verbose >= 2 else "INFO" if verbose == 1 else "WARNING"
        )
    else:
        resolved_log_level = log_level.upper()

    cli_options = GlobalCliOptions(
        verbose=verbose,
        config_file=config_file,
        log_level=resolved_log_level,
    )

    # Subcommands read the options back from the typer context
    ctx.ensure_object(dict)
    ctx.obj["cli_options"] = cli_options

    configure_logging(
        level=cli_options.log_level, enable_console=True, enable_json=False
    )


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__

    table = Table(title="regsuite Version Information")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_row("regsuite", __version__)
    for module_name in ("pydantic", "typer", "yaml", "psutil"):
        try:
            module = __import__(module_name)
            table.add_row(module_name, getattr(module, "__version__", "unknown"))
        except ImportError:
            table.add_row(module_name, "[red]Not installed[/red]")
    console.print(table)


@app.command()
def config(ctx: typer.Context) -> None:
    """Show current configuration."""
    from ..core.config import load_config

    cli_options = (ctx.obj or {}).get("cli_options")
    try:
        current_config = load_config(
            config_file=cli_options.config_file if cli_options else None
        )
    except RegsuiteError as e:
        console.print(f"[red]Error getting configuration: {e.message}[/red]")
        raise typer.Exit(1)

    table = Table(title="regsuite Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Suite Root", str(current_config.suite_root or "(auto-detect)"))
    table.add_row("Time Limit", f"{current_config.time_limit}s" if current_config.time_limit else "none")
    table.add_row("Check Bug Ids", str(current_config.check_bug_ids))
    table.add_row("Keywords", current_config.keywords or "")
    table.add_row("Allowed Extensions", ", ".join(current_config.allowed_extensions))
    table.add_row("Ignored Directories", ", ".join(current_config.ignored_dirs))
    if current_config.exclude_lists:
        table.add_row("Exclude Lists", ", ".join(str(p) for p in current_config.exclude_lists))
    if current_config.match_lists:
        table.add_row("Match Lists", ", ".join(str(p) for p in current_config.match_lists))
    if current_config.prior_status:
        table.add_row("Prior Status", ", ".join(s.value for s in current_config.prior_status))
    if current_config.jdk.vm_options:
        table.add_row("VM Options", " ".join(current_config.jdk.vm_options))
    if current_config.test_thread_factory:
        table.add_row("Test Thread Factory", current_config.test_thread_factory)
    table.add_row("Log Level", current_config.log_level)
    console.print(table)


def cli_main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except (RegsuiteError, RuntimeError, OSError, ValueError, ImportError) as e:
        logger.error("Unexpected error: %s", e)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
