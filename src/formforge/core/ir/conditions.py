"""
Conditional rule types for formforge IR.

A conditional rule ties a dependent field's visibility or enabled state to the
current value of another (trigger) field.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from ..values import to_text


def _normalize_token(value: str) -> str:
    """Fold case and separators so ``notEquals``, ``not_equals`` and ``NOT-EQUALS`` match."""
    return value.replace("_", "").replace("-", "").replace(" ", "").lower()


class ConditionalOperator(str, Enum):
    """Operators available to conditional rules."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"

    @classmethod
    def _missing_(cls, value: object) -> ConditionalOperator | None:
        if isinstance(value, str):
            token = _normalize_token(value)
            for member in cls:
                if _normalize_token(member.value) == token:
                    return member
        return None

    @property
    def needs_value(self) -> bool:
        """Whether the operator compares against the rule's value."""
        return self not in (ConditionalOperator.IS_EMPTY, ConditionalOperator.IS_NOT_EMPTY)


class ConditionalAction(str, Enum):
    """What a matching conditional rule does to its field."""

    SHOW = "show"
    HIDE = "hide"
    ENABLE = "enable"
    DISABLE = "disable"

    @classmethod
    def _missing_(cls, value: object) -> ConditionalAction | None:
        if isinstance(value, str):
            token = _normalize_token(value)
            for member in cls:
                if member.value == token:
                    return member
        return None

    @property
    def affects_visibility(self) -> bool:
        return self in (ConditionalAction.SHOW, ConditionalAction.HIDE)

    @property
    def affects_enabled(self) -> bool:
        return self in (ConditionalAction.ENABLE, ConditionalAction.DISABLE)


class ConditionalRule(BaseModel):
    """
    A trigger/operator/value/action tuple.

    Examples:
        - show when ``has_partner`` equals ``yes``
        - disable when ``budget`` is empty
        - hide when ``age`` lessThan ``18``

    Attributes:
        field_id: Id of the trigger field whose value is inspected
        operator: Comparison applied to the trigger value
        value: Comparison value, string-encoded (``None`` when not configured)
        action: Effect on the field carrying the rule when the condition holds
    """

    field_id: str
    operator: ConditionalOperator
    value: str | None = None
    action: ConditionalAction

    model_config = ConfigDict(frozen=True)

    @field_validator("operator", mode="before")
    @classmethod
    def parse_operator(cls, v: Any) -> Any:
        if isinstance(v, str) and not isinstance(v, ConditionalOperator):
            return ConditionalOperator(v)
        return v

    @field_validator("action", mode="before")
    @classmethod
    def parse_action(cls, v: Any) -> Any:
        if isinstance(v, str) and not isinstance(v, ConditionalAction):
            return ConditionalAction(v)
        return v

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value_to_text(cls, v: Any) -> str | None:
        """Comparison values are string-encoded; accept JSON scalars on load."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, int | float):
            return to_text(v)
        raise ValueError(f"Conditional value must be a scalar, got {type(v).__name__}")

    @classmethod
    def show_when_equals(cls, trigger_field_id: str, value: str) -> ConditionalRule:
        """Show the field when the trigger equals ``value``."""
        return cls(
            field_id=trigger_field_id,
            operator=ConditionalOperator.EQUALS,
            value=value,
            action=ConditionalAction.SHOW,
        )

    @classmethod
    def hide_when_equals(cls, trigger_field_id: str, value: str) -> ConditionalRule:
        """Hide the field when the trigger equals ``value``."""
        return cls(
            field_id=trigger_field_id,
            operator=ConditionalOperator.EQUALS,
            value=value,
            action=ConditionalAction.HIDE,
        )
