"""
Validation outcome types for formforge IR.

Validation errors are ordinary data, never exceptions: the engine keeps
processing the rest of a module when one field fails.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field


class ValidationError(BaseModel):
    """
    A field-scoped validation failure.

    Attributes:
        field_id: Id of the failing field
        code: Stable machine-readable code (``REQUIRED``, ``MIN_LENGTH``, ...)
        message: Human-readable message in the primary language (English)
        message_fr: Optional message in the secondary language (French)
    """

    field_id: str
    code: str
    message: str
    message_fr: str | None = None

    model_config = ConfigDict(frozen=True)


class ValidationResult(BaseModel):
    """Validity flag plus the ordered list of errors (empty when valid)."""

    is_valid: bool
    errors: list[ValidationError] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True)

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        return cls(is_valid=not errors, errors=list(errors))

    @classmethod
    def combine(cls, results: Iterable[ValidationResult]) -> ValidationResult:
        """Concatenate errors; the combination is valid iff no errors remain."""
        errors = [error for result in results for error in result.errors]
        return cls(is_valid=not errors, errors=errors)

    @property
    def error_codes(self) -> list[str]:
        return [e.code for e in self.errors]

    def errors_for(self, field_id: str) -> list[ValidationError]:
        """Errors reported for a single field."""
        return [e for e in self.errors if e.field_id == field_id]
