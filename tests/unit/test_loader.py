"""Tests for loading and saving module descriptors and form data."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from formforge.core import ir
from formforge.core.errors import SchemaLoadError
from formforge.core.hierarchy import build_runtime
from formforge.core.loader import dump_module, load_form_data, load_module, parse_module

MODULE_YAML = """
id: contact
title_en: Contact
fields:
  - id: name
    field_type: TextBox
    is_required: true
    parent_id: ""
  - id: phone
    field_type: TextBox
    pattern: '^\\d{3}-\\d{4}$'
    validation_rules: null
    conditional_rules:
      - field_id: name
        operator: is_not_empty
        action: Enable
"""


class TestLoadModule:
    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "contact.yaml"
        path.write_text(MODULE_YAML)

        module = load_module(path)

        assert module.id == "contact"
        assert module.field_ids() == ["name", "phone"]
        assert module.fields[0].parent_id is None
        assert module.fields[1].validation_rules == []
        rule = module.fields[1].conditional_rules[0]
        assert rule.operator is ir.ConditionalOperator.IS_NOT_EMPTY
        assert rule.action is ir.ConditionalAction.ENABLE

    def test_load_json(
        self, write_json: Callable[[str, Any], Path], grant_module: ir.ModuleDescriptor
    ) -> None:
        path = write_json("grant.json", grant_module.model_dump(mode="json"))
        assert load_module(path) == grant_module

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SchemaLoadError) as exc_info:
            load_module(tmp_path / "missing.json")
        assert "File not found" in str(exc_info.value)
        assert "missing.json" in str(exc_info.value)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(SchemaLoadError, match="Invalid JSON"):
            load_module(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yml"
        path.write_text("id: [unclosed\n")
        with pytest.raises(SchemaLoadError, match="Invalid YAML"):
            load_module(path)

    def test_not_a_mapping(self, write_json: Callable[[str, Any], Path]) -> None:
        with pytest.raises(SchemaLoadError, match="must be a mapping"):
            load_module(write_json("list.json", [1, 2, 3]))

    def test_schema_violation_keeps_module_id(self, write_json: Callable[[str, Any], Path]) -> None:
        path = write_json(
            "bad.json",
            {
                "id": "bad_module",
                "fields": [
                    {
                        "id": "a",
                        "field_type": "TextBox",
                        "conditional_rules": [
                            {"field_id": "b", "operator": "between", "action": "show"}
                        ],
                    }
                ],
            },
        )
        with pytest.raises(SchemaLoadError) as exc_info:
            load_module(path)
        assert exc_info.value.context is not None
        assert exc_info.value.context.module_id == "bad_module"
        assert "Invalid module descriptor" in exc_info.value.message

    def test_parse_module_from_data(self) -> None:
        module = parse_module({"id": "m", "fields": None})
        assert module.fields == []


class TestDumpModule:
    @pytest.mark.parametrize("suffix", [".json", ".yaml"])
    def test_round_trip(
        self, tmp_path: Path, grant_module: ir.ModuleDescriptor, suffix: str
    ) -> None:
        path = dump_module(grant_module, tmp_path / f"grant{suffix}")
        restored = load_module(path)

        assert restored == grant_module
        assert build_runtime(restored).metrics == build_runtime(grant_module).metrics

    def test_runtime_links_are_not_serialized(
        self, tmp_path: Path, grant_module: ir.ModuleDescriptor
    ) -> None:
        text = dump_module(grant_module, tmp_path / "grant.json").read_text()
        assert "child_ids" not in text
        assert "depth" not in text


class TestLoadFormData:
    def test_json_mapping(self, write_json: Callable[[str, Any], Path]) -> None:
        path = write_json("data.json", {"org_name": "Acme", "amount": 12000, "flag": True})
        assert load_form_data(path) == {"org_name": "Acme", "amount": 12000, "flag": True}

    def test_yaml_keys_become_strings(self, tmp_path: Path) -> None:
        path = tmp_path / "data.yaml"
        path.write_text("1: one\nname: Acme\n")
        assert load_form_data(path) == {"1": "one", "name": "Acme"}

    def test_empty_yaml_is_empty_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_form_data(path) == {}

    def test_non_mapping_rejected(self, write_json: Callable[[str, Any], Path]) -> None:
        with pytest.raises(SchemaLoadError, match="Form data must be a mapping"):
            load_form_data(write_json("data.json", ["a"]))
