"""Helpers shared by the CLI subcommands."""

from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

import typer
from rich.console import Console

from ...core.config import load_config
from ...core.config_initializer import initialize_config
from ...core.context import RunContext
from ...core.errors import RegsuiteError

console = Console()


def parse_pairs(items: Optional[Sequence[str]], option: str) -> Dict[str, str]:
    """``k=v`` strings from a repeated option into a dict."""
    pairs: Dict[str, str] = {}
    for item in items or ():
        name, sep, value = item.partition("=")
        if not sep or not name:
            console.print(f"[red]Invalid {option} value (expected name=value): {item}[/red]")
            raise typer.Exit(1)
        pairs[name] = value
    return pairs


def config_file_from(ctx: typer.Context) -> Optional[Path]:
    cli_options = (ctx.obj or {}).get("cli_options")
    return cli_options.config_file if cli_options is not None else None


def build_run_context(
    ctx: typer.Context,
    root: Path,
    errors: List[str],
    jdk_properties: Optional[Dict[str, str]] = None,
    vm_options: Optional[Sequence[str]] = None,
    **overrides: Any,
) -> RunContext:
    """Load configuration for ``root`` and create a run context.

    Finder and group errors are appended to ``errors``.
    """
    config = load_config(config_file=config_file_from(ctx), suite_root=root, **overrides)
    config = initialize_config(config)
    return RunContext.create(
        config,
        jdk_properties=jdk_properties,
        vm_options=list(vm_options) if vm_options else None,
        error_sink=errors.append,
    )


def fail(error: RegsuiteError) -> NoReturn:
    """Report a harness error and exit with status 1."""
    console.print(f"[red]Error: {error.message}[/red]")
    raise typer.Exit(1)


def print_errors(errors: Sequence[str]) -> None:
    for message in errors:
        console.print(f"[yellow]{message}[/yellow]")
