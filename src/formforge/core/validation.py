"""
Validation engine for formforge.

Per-field order (short-circuiting only at step 1):

1. Required fields run the ``required`` rule; a failure is returned alone.
2. An absent value on an optional field succeeds immediately.
3. ``length`` (when limits are configured), ``pattern`` (when configured),
   the field's own rule ids, then the module's rule ids all run and their
   errors accumulate. Unknown rule ids are skipped with a warning.

Module validation walks every field depth first and concatenates the errors.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from .hierarchy import depth_first_order
from .ir import ValidationError, ValidationResult
from .rules import RuleRegistry, create_default_registry, rule_fault
from .runtime import FieldNode, ModuleRuntime
from .values import is_blank

logger = logging.getLogger(__name__)


class FaultPolicy(str, Enum):
    """What to do when a rule evaluator raises."""

    PASS = "pass"  # fail open: treat the rule as passed
    REPORT = "report"  # emit a RULE_FAULT error for the field


class ValidationEngine:
    """
    Validates form data against a module runtime using a rule registry.

    The engine holds no per-call state, so one instance can serve concurrent
    validations as long as the registry is not being modified.
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        fault_policy: FaultPolicy = FaultPolicy.PASS,
    ):
        self.fault_policy = FaultPolicy(fault_policy)
        if registry is None:
            registry = create_default_registry(
                report_faults=self.fault_policy is FaultPolicy.REPORT
            )
        self.registry = registry

    def validate_field(
        self,
        node: FieldNode,
        value: Any,
        form_data: Mapping[str, Any],
        module_rules: Iterable[str] = (),
    ) -> ValidationResult:
        """
        Validate a single field value.

        Args:
            node: Runtime node of the field
            value: Submitted value (``None`` when absent)
            form_data: All submitted values, for cross-field rules
            module_rules: Module-level rule ids applied after the field's own

        Returns:
            ValidationResult for this field only
        """
        f = node.descriptor

        if f.is_required:
            required = self._run_rule("required", node, value, form_data)
            if required:
                return ValidationResult.failure(*required)

        if is_blank(value):
            return ValidationResult.success()

        errors: list[ValidationError] = []

        if f.has_length_limits:
            errors.extend(self._run_rule("length", node, value, form_data))

        if f.pattern and f.pattern.strip():
            errors.extend(self._run_rule("pattern", node, value, form_data))

        for rule_id in (*f.validation_rules, *module_rules):
            errors.extend(self._run_rule(rule_id, node, value, form_data))

        if errors:
            logger.debug("Field '%s' failed validation: %s", f.id, [e.code for e in errors])
        return ValidationResult.failure(*errors)

    def validate_module(
        self,
        runtime: ModuleRuntime,
        form_data: Mapping[str, Any],
    ) -> ValidationResult:
        """
        Validate every field of a module, depth first.

        An absent key in ``form_data`` is treated exactly like an explicit
        ``None``. One failing field never stops the others from being checked.
        """
        module_rules = runtime.descriptor.validation_rules
        results = [
            self.validate_field(node, form_data.get(node.id), form_data, module_rules)
            for node in depth_first_order(runtime)
        ]
        result = ValidationResult.combine(results)

        if result.is_valid:
            logger.debug("Module '%s' validation succeeded", runtime.descriptor.id)
        else:
            logger.info(
                "Module '%s' validation failed with %d error(s)",
                runtime.descriptor.id,
                len(result.errors),
            )
        return result

    def _run_rule(
        self,
        rule_id: str,
        node: FieldNode,
        value: Any,
        form_data: Mapping[str, Any],
    ) -> list[ValidationError]:
        rule = self.registry.get(rule_id)
        if rule is None:
            logger.warning("Validation rule '%s' not found for field '%s'", rule_id, node.id)
            return []

        try:
            result = rule.evaluate(node, value, form_data)
        except Exception as e:
            logger.warning(
                "Validation rule '%s' raised on field '%s': %s",
                rule_id,
                node.id,
                e,
                exc_info=True,
            )
            if self.fault_policy is FaultPolicy.REPORT:
                return [rule_fault(node, rule_id, str(e))]
            return []

        return list(result.errors)


def validate_field(
    node: FieldNode,
    value: Any,
    form_data: Mapping[str, Any],
    registry: RuleRegistry | None = None,
) -> ValidationResult:
    """Validate one field with a (default) registry."""
    return ValidationEngine(registry).validate_field(node, value, form_data)


def validate_module(
    runtime: ModuleRuntime,
    form_data: Mapping[str, Any],
    registry: RuleRegistry | None = None,
) -> ValidationResult:
    """Validate a whole module with a (default) registry."""
    return ValidationEngine(registry).validate_module(runtime, form_data)
