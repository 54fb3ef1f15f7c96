"""
formforge CLI package.

- app.py: root typer app, global options and command registration
- schema.py: inspect, check and fix commands
- forms.py: validate and conditions commands
- common.py: configuration, logging and engine setup per invocation
- utils.py: shared helpers
"""

from formforge.cli.app import app, main
from formforge.cli.utils import version_callback

__all__ = [
    "app",
    "main",
    "version_callback",
]
