"""
formforge command-line interface.

Developer tooling around the engine: inspect and repair module descriptors,
and run validation or conditional logic over sample form data.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .common import init_context
from .forms import conditions_command, validate_command
from .schema import check_command, fix_command, inspect_command
from .utils import version_callback

app = typer.Typer(
    help="""formforge - schema-driven form engine

Commands:
  • Schema: inspect, check, fix
    → Work on a module descriptor (.json, .yaml, .yml)

  • Form data: validate, conditions
    → Evaluate submitted values against a module
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and environment information",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to formforge.toml (default: search upwards)"),
    ] = None,
) -> None:
    """formforge CLI main callback for global options."""
    ctx.obj = init_context(config, log_level)


app.command(name="inspect")(inspect_command)
app.command(name="check")(check_command)
app.command(name="fix")(fix_command)
app.command(name="validate")(validate_command)
app.command(name="conditions")(conditions_command)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
