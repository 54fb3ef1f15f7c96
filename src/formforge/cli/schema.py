"""
Schema commands for the formforge CLI.

- inspect: print the rebuilt field tree and hierarchy metrics
- check: structural validation of a module descriptor
- fix: write a repaired copy of a module descriptor
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from formforge.core.hierarchy import build_runtime
from formforge.core.loader import dump_module
from formforge.core.runtime import FieldNode, ModuleRuntime
from formforge.core.structure import fix_structural_issues, validate_structure

from .utils import echo_json, load_module_or_exit

console = Console()
err_console = Console(stderr=True)


def _node_label(node: FieldNode) -> str:
    f = node.descriptor
    label = f"[bold]{escape(node.id)}[/bold] [dim]{escape(f.field_type)}[/dim]"
    if f.label_en:
        label += f" {escape(f.label_en)}"
    markers = []
    if f.is_required:
        markers.append("required")
    if f.has_conditions:
        markers.append(f"{len(f.conditional_rules)} condition(s)")
    if markers:
        label += f" [cyan]({', '.join(markers)})[/cyan]"
    return label


def _build_tree(runtime: ModuleRuntime) -> Tree:
    descriptor = runtime.descriptor
    title = descriptor.title_en or descriptor.id
    tree = Tree(f"[bold]{escape(title)}[/bold] [dim]({escape(descriptor.id)})[/dim]")

    def add_children(branch: Tree, node: FieldNode) -> None:
        for child in runtime.children(node):
            add_children(branch.add(_node_label(child)), child)

    for root in runtime.roots():
        add_children(tree.add(_node_label(root)), root)
    return tree


def inspect_command(
    module: Annotated[Path, typer.Argument(help="Module descriptor (.json, .yaml, .yml)")],
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """
    Rebuild a module's field hierarchy and print it with its metrics.
    """
    runtime = build_runtime(load_module_or_exit(module))

    if output_json:
        echo_json(
            {
                "module": runtime.descriptor.id,
                "fields": [
                    {
                        "id": node.id,
                        "field_type": node.descriptor.field_type,
                        "parent_id": node.parent_id,
                        "depth": node.depth,
                        "path": node.path,
                    }
                    for node in runtime.fields_in_order()
                ],
                "metrics": runtime.metrics.model_dump(),
            }
        )
        return

    console.print(_build_tree(runtime))

    metrics = runtime.metrics
    table = Table(title="Hierarchy Metrics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total fields", str(metrics.total_fields))
    table.add_row("Root fields", str(metrics.root_fields))
    table.add_row("Max depth", str(metrics.max_depth))
    table.add_row("Average depth", f"{metrics.average_depth:.2f}")
    table.add_row("Parent-linked fields", str(metrics.parent_linked_fields))
    table.add_row("Conditional fields", str(metrics.conditional_fields))
    table.add_row("Complexity score", str(metrics.complexity_score))
    console.print(table)


def check_command(
    module: Annotated[Path, typer.Argument(help="Module descriptor (.json, .yaml, .yml)")],
    strict: Annotated[
        bool, typer.Option("--strict", help="Treat warnings as errors")
    ] = False,
) -> None:
    """
    Check a module descriptor for structural problems.

    Exits with code 1 on errors, or on warnings with --strict.
    """
    descriptor = load_module_or_exit(module)
    report = validate_structure(descriptor)

    for error in report.errors:
        console.print(f"[red]ERROR[/red] {escape(error)}")
    for warning in report.warnings:
        console.print(f"[yellow]WARNING[/yellow] {escape(warning)}")

    if report.errors or (strict and report.warnings):
        console.print(
            f"\n[red]✗[/red] Module '{escape(descriptor.id)}': "
            f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
        )
        raise typer.Exit(code=1)

    console.print(
        f"[green]✓[/green] Module '{escape(descriptor.id)}' is structurally valid "
        f"({len(descriptor.fields)} fields, {len(report.warnings)} warning(s))"
    )


def fix_command(
    module: Annotated[Path, typer.Argument(help="Module descriptor (.json, .yaml, .yml)")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the repaired descriptor here"),
    ] = None,
    break_cycles: Annotated[
        bool, typer.Option("--break-cycles", help="Also open parent cycles")
    ] = False,
) -> None:
    """
    Repair unresolved parent references (and optionally parent cycles).

    Without --output the repaired descriptor is printed as JSON.
    """
    descriptor = load_module_or_exit(module)
    fixed = fix_structural_issues(descriptor, break_cycles=break_cycles)

    changed = [
        f.id
        for before, f in zip(descriptor.fields, fixed.fields, strict=True)
        if before.parent_id != f.parent_id
    ]

    if output is None:
        echo_json(fixed.model_dump(mode="json"))
    else:
        dump_module(fixed, output)
        err_console.print(f"[green]✓[/green] Wrote {escape(str(output))}")

    if changed:
        err_console.print(f"Cleared parent reference on: {escape(', '.join(changed))}")
    else:
        err_console.print("[dim]No structural fixes needed.[/dim]")
