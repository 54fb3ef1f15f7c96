"""
Form data commands for the formforge CLI.

- validate: run the validation engine over submitted form data
- conditions: evaluate visibility and enabled state for every field
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from formforge.core.conditions import evaluate_all
from formforge.core.hierarchy import build_runtime

from .common import get_context
from .utils import echo_json, load_form_data_or_exit, load_module_or_exit

console = Console()


def validate_command(
    ctx: typer.Context,
    module: Annotated[Path, typer.Argument(help="Module descriptor (.json, .yaml, .yml)")],
    data: Annotated[Path, typer.Argument(help="Form data file (field id -> value)")],
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """
    Validate form data against a module.

    Exits with code 1 when the data is invalid.
    """
    engine = get_context(ctx).build_engine()
    runtime = build_runtime(load_module_or_exit(module))
    form_data = load_form_data_or_exit(data)

    result = engine.validate_module(runtime, form_data)

    if output_json:
        echo_json(result.model_dump(mode="json"))
    elif result.is_valid:
        console.print(
            f"[green]✓[/green] Form data is valid for module '{escape(runtime.descriptor.id)}'"
        )
    else:
        table = Table(title=f"Validation Errors ({len(result.errors)})")
        table.add_column("Field")
        table.add_column("Code", style="red")
        table.add_column("Message")
        for error in result.errors:
            table.add_row(escape(error.field_id), error.code, escape(error.message))
        console.print(table)

    if not result.is_valid:
        raise typer.Exit(code=1)


def conditions_command(
    module: Annotated[Path, typer.Argument(help="Module descriptor (.json, .yaml, .yml)")],
    data: Annotated[Path, typer.Argument(help="Form data file (field id -> value)")],
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """
    Show which fields are visible and enabled for the given form data.
    """
    runtime = build_runtime(load_module_or_exit(module))
    form_data = load_form_data_or_exit(data)

    states = evaluate_all(runtime, form_data)

    if output_json:
        echo_json({"visibility": states.visibility, "enabled": states.enabled})
        return

    table = Table(title=f"Field States: {escape(runtime.descriptor.id)}")
    table.add_column("Field")
    table.add_column("Visible")
    table.add_column("Enabled")
    for node in runtime.fields_in_order():
        indent = "  " * node.depth
        table.add_row(
            f"{indent}{escape(node.id)}",
            "[green]yes[/green]" if states.visibility[node.id] else "[red]no[/red]",
            "[green]yes[/green]" if states.enabled[node.id] else "[red]no[/red]",
        )
    console.print(table)

    hidden, disabled = states.hidden_ids(), states.disabled_ids()
    console.print(f"\n[dim]{len(hidden)} hidden, {len(disabled)} disabled[/dim]")
