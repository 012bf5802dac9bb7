"""Evaluate a requirement expression against this host."""

from typing import List, Optional

import typer

from ...core.errors import ExprFault
from ...requires.context import ExprContext
from ...requires.expr import parse
from ...requires.host import OSInfo
from .common import console, parse_pairs


def evaluate(
    expression: str = typer.Argument(..., help="Requirement expression, as written in @requires"),
    prop: Optional[List[str]] = typer.Option(None, "--prop", "-p", help="JDK property, as name=value"),
    vm_option: Optional[List[str]] = typer.Option(None, "--vm-option", help="Effective VM option"),
) -> None:
    """Evaluate EXPRESSION and print true or false.

    Exits with status 1 if the expression is false, 2 if it cannot be
    evaluated.
    """
    properties = parse_pairs(prop, "--prop")
    context = ExprContext.build(
        jdk_properties=properties,
        vm_options=vm_option or (),
        os_info=OSInfo.current(),
    )
    try:
        value = parse(expression).evaluate(context)
    except ExprFault as e:
        console.print(f"[red]Error evaluating expression: {e.message}[/red]")
        raise typer.Exit(2)
    console.print("[green]true[/green]" if value else "[yellow]false[/yellow]")
    if not value:
        raise typer.Exit(1)
