"""
formforge CLI utilities.

Shared helpers used across CLI modules.
"""

from __future__ import annotations

import json
import platform
from pathlib import Path
from typing import Any, NoReturn

import typer

from formforge._version import get_version
from formforge.core.errors import FormforgeError
from formforge.core.ir import ModuleDescriptor
from formforge.core.loader import load_form_data, load_module


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"formforge {get_version()}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def exit_with_error(error: FormforgeError | str) -> NoReturn:
    """Print an error to stderr and exit with code 1."""
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=1)


def load_module_or_exit(path: Path) -> ModuleDescriptor:
    """Load a module descriptor, exiting with code 1 on failure."""
    try:
        return load_module(path)
    except FormforgeError as e:
        exit_with_error(e)


def load_form_data_or_exit(path: Path) -> dict[str, Any]:
    """Load form data, exiting with code 1 on failure."""
    try:
        return load_form_data(path)
    except FormforgeError as e:
        exit_with_error(e)


def echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))
