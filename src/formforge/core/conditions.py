"""
Conditional logic engine for formforge.

Evaluates per-field conditional rules against the current form data to decide
whether each field is visible and enabled.

Operator semantics:

- ``equals`` / ``notEquals``: case-insensitive text comparison; two missing
  values are equal
- ``contains``: case-insensitive substring test; a missing side is False
- ``greaterThan`` / ``lessThan``: numeric if both sides parse as decimals,
  else date/time if both parse as ISO dates, else ordinal text comparison
- ``isEmpty`` / ``isNotEmpty``: missing values and blank text are empty

Any fault while evaluating a condition yields False rather than propagating.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .hierarchy import depth_first_order
from .ir import ConditionalAction, ConditionalOperator, ConditionalRule, FieldDescriptor
from .runtime import FieldNode, ModuleRuntime
from .values import to_text

logger = logging.getLogger(__name__)


# =============================================================================
# Value coercion
# =============================================================================


def _as_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        number = Decimal(to_text(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = to_text(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _compare_ordered(field_value: Any, rule_value: str) -> int:
    """Three-way compare: numeric, then date/time, then ordinal text."""
    left_num, right_num = _as_decimal(field_value), _as_decimal(rule_value)
    if left_num is not None and right_num is not None:
        return (left_num > right_num) - (left_num < right_num)

    left_dt, right_dt = _as_datetime(field_value), _as_datetime(rule_value)
    if left_dt is not None and right_dt is not None:
        # Mixing naive and aware datetimes raises TypeError here
        return (left_dt > right_dt) - (left_dt < right_dt)

    left_text = to_text(field_value)
    return (left_text > rule_value) - (left_text < rule_value)


# =============================================================================
# Operators
# =============================================================================


def _equals(field_value: Any, rule_value: str | None) -> bool:
    if field_value is None and rule_value is None:
        return True
    if field_value is None or rule_value is None:
        return False
    return to_text(field_value).casefold() == rule_value.casefold()


def _contains(field_value: Any, rule_value: str | None) -> bool:
    if field_value is None or rule_value is None:
        return False
    return rule_value.casefold() in to_text(field_value).casefold()


def _is_empty(field_value: Any) -> bool:
    if field_value is None:
        return True
    if isinstance(field_value, str):
        return not field_value.strip()
    return False


def _apply_operator(
    operator: ConditionalOperator,
    field_value: Any,
    rule_value: str | None,
) -> bool:
    if operator is ConditionalOperator.EQUALS:
        return _equals(field_value, rule_value)
    if operator is ConditionalOperator.NOT_EQUALS:
        return not _equals(field_value, rule_value)
    if operator is ConditionalOperator.CONTAINS:
        return _contains(field_value, rule_value)
    if operator is ConditionalOperator.GREATER_THAN:
        if field_value is None or rule_value is None:
            return False
        return _compare_ordered(field_value, rule_value) > 0
    if operator is ConditionalOperator.LESS_THAN:
        if field_value is None or rule_value is None:
            return False
        return _compare_ordered(field_value, rule_value) < 0
    if operator is ConditionalOperator.IS_EMPTY:
        return _is_empty(field_value)
    if operator is ConditionalOperator.IS_NOT_EMPTY:
        return not _is_empty(field_value)
    raise ValueError(f"Unsupported operator: {operator}")


# =============================================================================
# Public API
# =============================================================================


def evaluate_condition(rule: ConditionalRule, form_data: Mapping[str, Any]) -> bool:
    """
    Evaluate a single conditional rule against form data.

    Args:
        rule: The conditional rule
        form_data: Field id -> current value (absent key == ``None``)

    Returns:
        True if the condition holds; False otherwise, including on any fault
    """
    field_value = form_data.get(rule.field_id)
    try:
        result = _apply_operator(rule.operator, field_value, rule.value)
    except Exception as e:
        logger.warning(
            "Error evaluating condition on '%s' (%s %r vs %r): %s",
            rule.field_id,
            rule.operator.value,
            field_value,
            rule.value,
            e,
        )
        return False

    logger.debug(
        "Condition %s %s %r -> %s", rule.field_id, rule.operator.value, rule.value, result
    )
    return result


def _descriptor_of(field: FieldNode | FieldDescriptor) -> FieldDescriptor:
    return field.descriptor if isinstance(field, FieldNode) else field


def _decide(
    field: FieldNode | FieldDescriptor,
    form_data: Mapping[str, Any],
    on_action: ConditionalAction,
    off_action: ConditionalAction,
) -> bool:
    """First decisive rule wins; no decisive rule means True."""
    for rule in _descriptor_of(field).conditional_rules:
        if rule.action is on_action:
            if evaluate_condition(rule, form_data):
                return True
        elif rule.action is off_action:
            if evaluate_condition(rule, form_data):
                return False
    return True


def is_visible(field: FieldNode | FieldDescriptor, form_data: Mapping[str, Any]) -> bool:
    """Whether a field is visible given the current form data."""
    return _decide(field, form_data, ConditionalAction.SHOW, ConditionalAction.HIDE)


def is_enabled(field: FieldNode | FieldDescriptor, form_data: Mapping[str, Any]) -> bool:
    """Whether a field is enabled given the current form data."""
    return _decide(field, form_data, ConditionalAction.ENABLE, ConditionalAction.DISABLE)


@dataclass
class FieldStates:
    """Visibility and enabled state per field id, in depth-first order."""

    visibility: dict[str, bool] = field(default_factory=dict)
    enabled: dict[str, bool] = field(default_factory=dict)

    def hidden_ids(self) -> list[str]:
        return [i for i, visible in self.visibility.items() if not visible]

    def disabled_ids(self) -> list[str]:
        return [i for i, enabled in self.enabled.items() if not enabled]


def evaluate_all(runtime: ModuleRuntime, form_data: Mapping[str, Any]) -> FieldStates:
    """Evaluate visibility and enabled state for every field in the runtime."""
    states = FieldStates()
    for node in depth_first_order(runtime):
        states.visibility[node.id] = is_visible(node, form_data)
        states.enabled[node.id] = is_enabled(node, form_data)

    logger.debug(
        "Evaluated conditions for %d fields in module '%s'",
        len(states.visibility),
        runtime.descriptor.id,
    )
    return states


class ConditionalLogicEngine:
    """Object wrapper over the module functions for hosts that inject services."""

    def evaluate_condition(self, rule: ConditionalRule, form_data: Mapping[str, Any]) -> bool:
        return evaluate_condition(rule, form_data)

    def is_visible(self, field: FieldNode | FieldDescriptor, form_data: Mapping[str, Any]) -> bool:
        return is_visible(field, form_data)

    def is_enabled(self, field: FieldNode | FieldDescriptor, form_data: Mapping[str, Any]) -> bool:
        return is_enabled(field, form_data)

    def evaluate_all(self, runtime: ModuleRuntime, form_data: Mapping[str, Any]) -> FieldStates:
        return evaluate_all(runtime, form_data)
