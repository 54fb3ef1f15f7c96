"""Conversions for loosely typed form input."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any


def to_text(value: Any) -> str:
    """
    Convert a submitted value to text.

    Booleans become ``"true"``/``"false"``, integral floats drop
    their ``.0`` and dates use ISO 8601, so that values coming from JSON,
    widgets and Python callers compare alike.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_blank(value: Any) -> bool:
    """True for ``None`` and for values whose text is empty or whitespace."""
    return value is None or not to_text(value).strip()
