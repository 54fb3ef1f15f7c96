"""Tests for the validation engine: per-field order and module validation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pytest

from formforge.core import ir
from formforge.core.hierarchy import build_runtime
from formforge.core.rules import RULE_FAULT, RuleRegistry
from formforge.core.runtime import FieldNode, ModuleRuntime
from formforge.core.validation import (
    FaultPolicy,
    ValidationEngine,
    validate_field,
    validate_module,
)

FormData = Mapping[str, Any]


def _node(**kwargs: Any) -> FieldNode:
    descriptor = ir.FieldDescriptor(id=kwargs.pop("id", "f"), field_type="TextBox", **kwargs)
    return FieldNode(descriptor=descriptor, position=0)


def _exploding_rule(node: FieldNode, value: Any, form_data: FormData) -> ir.ValidationResult:
    raise RuntimeError("boom")


def _error(node: FieldNode, code: str) -> ir.ValidationResult:
    error = ir.ValidationError(field_id=node.id, code=code, message=code)
    return ir.ValidationResult.failure(error)


class TestValidateField:
    def test_required_empty_returns_exactly_one_error(self) -> None:
        result = validate_field(_node(is_required=True), "", {})
        assert not result.is_valid
        assert result.error_codes == ["REQUIRED"]

    def test_required_with_value_succeeds(self) -> None:
        assert validate_field(_node(is_required=True), "x", {}).is_valid

    def test_min_length(self) -> None:
        node = _node(min_length=5)
        assert validate_field(node, "ab", {}).error_codes == ["MIN_LENGTH"]
        assert validate_field(node, "abcdef", {}).is_valid

    def test_required_failure_short_circuits(self, registry: RuleRegistry) -> None:
        calls: list[str] = []

        def spy(node: FieldNode, value: Any, form_data: FormData) -> ir.ValidationResult:
            calls.append(node.id)
            return ir.ValidationResult.success()

        registry.register("spy", spy)
        node = _node(is_required=True, min_length=3, pattern="^x", validation_rules=["spy"])
        result = ValidationEngine(registry).validate_field(node, None, {})

        assert result.error_codes == ["REQUIRED"]
        assert calls == []

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_absent_optional_value_skips_rules(self, value: Any) -> None:
        node = _node(min_length=3, pattern="^x", validation_rules=["email"])
        assert validate_field(node, value, {}).is_valid

    def test_errors_accumulate_in_order(self, registry: RuleRegistry) -> None:
        registry.register("custom", lambda node, value, data: _error(node, "CUSTOM"))
        node = _node(min_length=5, pattern=r"^\d+$", validation_rules=["email", "custom"])
        result = ValidationEngine(registry).validate_field(node, "ab", {})
        assert result.error_codes == ["MIN_LENGTH", "PATTERN_MISMATCH", "INVALID_EMAIL", "CUSTOM"]

    def test_unknown_rule_id_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="formforge"):
            result = validate_field(_node(validation_rules=["no_such_rule"]), "x", {})
        assert result.is_valid
        assert "Validation rule 'no_such_rule' not found" in caplog.text

    def test_cross_field_rule_sees_form_data(self, registry: RuleRegistry) -> None:
        def matches_confirmation(
            node: FieldNode, value: Any, form_data: FormData
        ) -> ir.ValidationResult:
            if value != form_data.get("confirm"):
                return _error(node, "MISMATCH")
            return ir.ValidationResult.success()

        registry.register("matches_confirmation", matches_confirmation)
        engine = ValidationEngine(registry)
        node = _node(validation_rules=["matches_confirmation"])

        assert engine.validate_field(node, "secret", {"confirm": "secret"}).is_valid
        assert engine.validate_field(node, "secret", {"confirm": "other"}).error_codes == [
            "MISMATCH"
        ]

    def test_module_rules_run_after_field_rules(self, registry: RuleRegistry) -> None:
        registry.register("first", lambda node, value, data: _error(node, "FIRST"))
        registry.register("module_wide", lambda node, value, data: _error(node, "MODULE"))
        node = _node(validation_rules=["first"])
        result = ValidationEngine(registry).validate_field(node, "x", {}, ["module_wide"])
        assert result.error_codes == ["FIRST", "MODULE"]


class TestRuleFaults:
    def test_fault_fails_open_by_default(
        self, registry: RuleRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        registry.register("explodes", _exploding_rule)
        with caplog.at_level(logging.WARNING, logger="formforge"):
            result = ValidationEngine(registry).validate_field(
                _node(validation_rules=["explodes"]), "x", {}
            )
        assert result.is_valid
        assert "raised on field 'f'" in caplog.text

    def test_fault_reported_when_configured(self, registry: RuleRegistry) -> None:
        registry.register("explodes", _exploding_rule)
        engine = ValidationEngine(registry, fault_policy=FaultPolicy.REPORT)
        result = engine.validate_field(_node(validation_rules=["explodes"]), "x", {})
        assert result.error_codes == [RULE_FAULT]
        assert "boom" in result.errors[0].message

    def test_malformed_pattern_reported_with_default_registry(self) -> None:
        engine = ValidationEngine(fault_policy=FaultPolicy.REPORT)
        result = engine.validate_field(_node(pattern="(["), "abc", {})
        assert result.error_codes == [RULE_FAULT]

    def test_malformed_pattern_passes_by_default(self) -> None:
        assert ValidationEngine().validate_field(_node(pattern="(["), "abc", {}).is_valid

    def test_policy_accepts_string(self) -> None:
        engine = ValidationEngine(fault_policy="report")  # type: ignore[arg-type]
        assert engine.fault_policy is FaultPolicy.REPORT

    def test_fault_does_not_stop_other_rules(self, registry: RuleRegistry) -> None:
        registry.register("explodes", _exploding_rule)
        node = _node(min_length=5, validation_rules=["explodes", "email"])
        result = ValidationEngine(registry).validate_field(node, "ab", {})
        assert result.error_codes == ["MIN_LENGTH", "INVALID_EMAIL"]


class TestValidateModule:
    def test_valid_submission(self, grant_runtime: ModuleRuntime) -> None:
        data = {"org_name": "Acme", "contact_email": "info@acme.org", "has_partner": "no"}
        assert validate_module(grant_runtime, data).is_valid

    def test_absent_key_treated_as_null(self, grant_runtime: ModuleRuntime) -> None:
        missing = validate_module(grant_runtime, {})
        explicit = validate_module(grant_runtime, {"org_name": None})
        assert missing == explicit
        assert missing.error_codes == ["REQUIRED"]

    def test_errors_concatenated_depth_first(self, grant_runtime: ModuleRuntime) -> None:
        result = validate_module(grant_runtime, {"org_name": "A", "contact_email": "not-an-email"})
        assert [(e.field_id, e.code) for e in result.errors] == [
            ("org_name", "MIN_LENGTH"),
            ("contact_email", "INVALID_EMAIL"),
        ]

    def test_module_level_rules_apply_to_every_field(self, registry: RuleRegistry) -> None:
        def no_html(node: FieldNode, value: Any, form_data: FormData) -> ir.ValidationResult:
            if "<" in str(value):
                return _error(node, "HTML")
            return ir.ValidationResult.success()

        registry.register("no_html", no_html)
        module = ir.ModuleDescriptor(
            id="m",
            validation_rules=["no_html"],
            fields=[
                ir.FieldDescriptor(id="a", field_type="TextBox"),
                ir.FieldDescriptor(id="b", field_type="TextBox", order=2),
            ],
        )
        result = ValidationEngine(registry).validate_module(
            build_runtime(module), {"a": "<b>hi</b>", "b": "plain"}
        )
        assert [(e.field_id, e.code) for e in result.errors] == [("a", "HTML")]

    def test_engine_reusable_across_modules(
        self, grant_runtime: ModuleRuntime, registry: RuleRegistry
    ) -> None:
        engine = ValidationEngine(registry)
        assert not engine.validate_module(grant_runtime, {}).is_valid
        assert engine.validate_module(grant_runtime, {"org_name": "Acme"}).is_valid
