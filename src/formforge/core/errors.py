"""
Error types for formforge schema loading, configuration, and structure checks.

Validation failures and rule faults are *not* exceptions: they are returned as
data inside a ``ValidationResult``. The exceptions here cover the edges of the
engine (files, configuration) and explicit strict structure checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class FormforgeError(Exception):
    """Base exception for all formforge errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class SchemaLoadError(FormforgeError):
    """
    Raised when a module descriptor or form-data file cannot be loaded.

    Examples:
    - File not found
    - Invalid JSON / YAML syntax
    - Content does not match the descriptor schema
    """

    pass


class ConfigError(FormforgeError):
    """
    Raised when ``formforge.toml`` contains invalid settings.

    Examples:
    - Unknown rule fault policy
    - Unknown log level
    - ``rules.modules`` is not a list of strings
    """

    pass


class StructureError(FormforgeError):
    """
    Raised by strict structure checks when a descriptor has structural errors.

    The hierarchy builder recovers from ordinary structural faults and only
    raises this on an internal linking inconsistency.
    """

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        context: ErrorContext | None = None,
    ):
        self.errors = errors or []
        super().__init__(message, context)


@dataclass
class ErrorContext:
    """
    Context information for an error.

    Attributes:
        file: Path to the file being processed
        module_id: Optional id of the module descriptor involved
        field_id: Optional id of the field involved
    """

    file: Path | None = None
    module_id: str | None = None
    field_id: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "module.json in module grant_app (field org_name)"
        """
        parts: list[str] = []
        if self.file:
            parts.append(str(self.file))
        if self.module_id:
            parts.append(f"in module {self.module_id}")
        if self.field_id:
            parts.append(f"(field {self.field_id})")
        return " ".join(parts)


def make_load_error(
    message: str,
    file: Path | None = None,
    module_id: str | None = None,
) -> SchemaLoadError:
    """
    Helper to create a SchemaLoadError with optional context.

    Args:
        message: Error description
        file: Optional source file path
        module_id: Optional module id

    Returns:
        SchemaLoadError with context if any location provided
    """
    if file or module_id:
        return SchemaLoadError(message, ErrorContext(file=file, module_id=module_id))
    return SchemaLoadError(message)
