"""
Validation rule registry for formforge.

The registry maps rule ids (``"required"``, ``"email"``, ...) to evaluators.
It is an explicit object passed to the validation engine, never a global, so
independent contexts (tests, tenants) can hold different registries.

Built-in rules:

- ``required`` -> ``REQUIRED``
- ``length``   -> ``MIN_LENGTH`` / ``MAX_LENGTH``
- ``pattern``  -> ``PATTERN_MISMATCH``
- ``email``    -> ``INVALID_EMAIL``

Custom rules are any object with a ``rule_id`` and an
``evaluate(node, value, form_data)`` method, or a plain function with the same
signature. Rule plug-in modules expose ``register_rules(registry)``::

    def register_rules(registry):
        @registry.rule("postal_code")
        def postal_code(node, value, form_data):
            ...
"""

from __future__ import annotations

import importlib
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from .ir import ValidationError, ValidationResult
from .runtime import FieldNode
from .values import is_blank, to_text

logger = logging.getLogger(__name__)

# Error codes
REQUIRED = "REQUIRED"
MIN_LENGTH = "MIN_LENGTH"
MAX_LENGTH = "MAX_LENGTH"
PATTERN_MISMATCH = "PATTERN_MISMATCH"
INVALID_EMAIL = "INVALID_EMAIL"
RULE_FAULT = "RULE_FAULT"

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

RuleFunction = Callable[[FieldNode, Any, Mapping[str, Any]], ValidationResult]


@runtime_checkable
class ValidationRule(Protocol):
    """Evaluator capability stored in the registry."""

    rule_id: str

    def evaluate(
        self,
        node: FieldNode,
        value: Any,
        form_data: Mapping[str, Any],
    ) -> ValidationResult: ...


def rule_fault(node: FieldNode, rule_id: str, detail: str) -> ValidationError:
    """Build the error reported when a rule cannot be evaluated."""
    f = node.descriptor
    return ValidationError(
        field_id=f.id,
        code=RULE_FAULT,
        message=f"Rule '{rule_id}' could not be evaluated for {f.display_label}: {detail}",
        message_fr=(
            f"La règle '{rule_id}' n'a pas pu être évaluée pour {f.secondary_label} : {detail}"
        ),
    )


# =============================================================================
# Built-in rules
# =============================================================================


class RequiredRule:
    """Fails when a required field has no value (``None``, empty or whitespace)."""

    rule_id = "required"

    def evaluate(
        self,
        node: FieldNode,
        value: Any,
        form_data: Mapping[str, Any],
    ) -> ValidationResult:
        f = node.descriptor
        if not f.is_required or not is_blank(value):
            return ValidationResult.success()
        return ValidationResult.failure(
            ValidationError(
                field_id=f.id,
                code=REQUIRED,
                message=f"{f.display_label} is required",
                message_fr=f"{f.secondary_label} est requis",
            )
        )


class LengthRule:
    """Checks text length against min/max; both limits may fail together."""

    rule_id = "length"

    def evaluate(
        self,
        node: FieldNode,
        value: Any,
        form_data: Mapping[str, Any],
    ) -> ValidationResult:
        if value is None:
            return ValidationResult.success()

        f = node.descriptor
        length = len(to_text(value))
        errors: list[ValidationError] = []

        if f.min_length is not None and length < f.min_length:
            errors.append(
                ValidationError(
                    field_id=f.id,
                    code=MIN_LENGTH,
                    message=f"{f.display_label} must be at least {f.min_length} characters",
                    message_fr=(
                        f"{f.secondary_label} doit contenir au moins {f.min_length} caractères"
                    ),
                )
            )

        if f.max_length is not None and length > f.max_length:
            errors.append(
                ValidationError(
                    field_id=f.id,
                    code=MAX_LENGTH,
                    message=f"{f.display_label} must not exceed {f.max_length} characters",
                    message_fr=(
                        f"{f.secondary_label} ne doit pas dépasser {f.max_length} caractères"
                    ),
                )
            )

        return ValidationResult.failure(*errors)


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


class PatternRule:
    """
    Matches text against the field's regular expression.

    A malformed pattern fails open (the value passes) unless ``report_faults``
    is set, in which case a ``RULE_FAULT`` error is returned instead.
    """

    rule_id = "pattern"

    def __init__(self, report_faults: bool = False):
        self.report_faults = report_faults

    def evaluate(
        self,
        node: FieldNode,
        value: Any,
        form_data: Mapping[str, Any],
    ) -> ValidationResult:
        f = node.descriptor
        if value is None or not f.pattern or not f.pattern.strip():
            return ValidationResult.success()

        try:
            regex = _compile_pattern(f.pattern)
        except re.error as e:
            logger.warning("Invalid pattern %r on field '%s': %s", f.pattern, f.id, e)
            if self.report_faults:
                return ValidationResult.failure(rule_fault(node, self.rule_id, str(e)))
            return ValidationResult.success()

        if regex.search(to_text(value)) is None:
            return ValidationResult.failure(
                ValidationError(
                    field_id=f.id,
                    code=PATTERN_MISMATCH,
                    message=f"{f.display_label} format is invalid",
                    message_fr=f"Le format de {f.secondary_label} est invalide",
                )
            )
        return ValidationResult.success()


class EmailRule:
    """Requires a simple ``local@domain.tld`` shape; empty values pass."""

    rule_id = "email"

    def evaluate(
        self,
        node: FieldNode,
        value: Any,
        form_data: Mapping[str, Any],
    ) -> ValidationResult:
        if is_blank(value):
            return ValidationResult.success()

        f = node.descriptor
        if not EMAIL_RE.match(to_text(value)):
            return ValidationResult.failure(
                ValidationError(
                    field_id=f.id,
                    code=INVALID_EMAIL,
                    message=f"{f.display_label} must be a valid email address",
                    message_fr=f"{f.secondary_label} doit être une adresse courriel valide",
                )
            )
        return ValidationResult.success()


@dataclass
class FunctionRule:
    """Adapter that lets a plain function act as a validation rule."""

    rule_id: str
    function: RuleFunction

    def evaluate(
        self,
        node: FieldNode,
        value: Any,
        form_data: Mapping[str, Any],
    ) -> ValidationResult:
        return self.function(node, value, form_data)


# =============================================================================
# Registry
# =============================================================================


@dataclass
class RuleRegistry:
    """
    Mutable mapping of rule id -> evaluator.

    Registration is an administrative operation meant for a single-threaded
    setup phase; lookups are safe to share once setup is done.
    """

    _rules: dict[str, ValidationRule] = field(default_factory=dict)

    def register(self, rule_id: str, rule: ValidationRule | RuleFunction) -> None:
        """Insert or replace an evaluator (last write wins)."""
        if not isinstance(rule, ValidationRule):
            if not callable(rule):
                raise TypeError(f"Rule '{rule_id}' must be a ValidationRule or a callable")
            rule = FunctionRule(rule_id=rule_id, function=rule)

        if rule_id in self._rules:
            logger.debug("Replacing validation rule: %s", rule_id)
        self._rules[rule_id] = rule
        logger.info("Registered validation rule: %s", rule_id)

    def unregister(self, rule_id: str) -> bool:
        """Remove a rule; returns False if it was not registered."""
        return self._rules.pop(rule_id, None) is not None

    def rule(self, rule_id: str) -> Callable[[RuleFunction], RuleFunction]:
        """Decorator registering a function as a rule."""

        def decorator(func: RuleFunction) -> RuleFunction:
            self.register(rule_id, func)
            return func

        return decorator

    def get(self, rule_id: str) -> ValidationRule | None:
        return self._rules.get(rule_id)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    @property
    def rule_ids(self) -> list[str]:
        return list(self._rules)

    @property
    def count(self) -> int:
        """Total number of registered rules."""
        return len(self._rules)


def create_default_registry(report_faults: bool = False) -> RuleRegistry:
    """
    Build a registry populated with the built-in rules.

    Args:
        report_faults: Make the pattern rule report malformed patterns as
            ``RULE_FAULT`` instead of failing open
    """
    registry = RuleRegistry()
    for rule in (RequiredRule(), LengthRule(), PatternRule(report_faults), EmailRule()):
        registry.register(rule.rule_id, rule)
    logger.debug("Default registry initialized with %d built-in rules", registry.count)
    return registry


def load_rule_modules(registry: RuleRegistry, module_names: Iterable[str]) -> list[str]:
    """
    Import rule plug-in modules and let each register its rules.

    Each module must expose ``register_rules(registry)``. Modules that fail to
    import, or lack the hook, are logged and skipped.

    Returns:
        Names of the modules that registered successfully
    """
    loaded: list[str] = []
    for name in module_names:
        try:
            module = importlib.import_module(name)
        except Exception:
            logger.warning("Failed to import rule module %s", name, exc_info=True)
            continue

        hook = getattr(module, "register_rules", None)
        if hook is None or not callable(hook):
            logger.warning("No callable 'register_rules' found in rule module %s", name)
            continue

        hook(registry)
        loaded.append(name)
        logger.info("Loaded rule module %s", name)
    return loaded
