"""Version lookup for formforge."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _checkout_version() -> str | None:
    if not _PYPROJECT.is_file():
        return None
    with _PYPROJECT.open("rb") as f:
        project = tomllib.load(f).get("project", {})
    return project.get("version")


def get_version() -> str:
    """Installed distribution version, else the version in a source checkout's pyproject."""
    try:
        return version("formforge")
    except PackageNotFoundError:
        return _checkout_version() or "0.0.0"
