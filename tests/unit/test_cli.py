"""Tests for CLI commands."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from formforge._version import get_version
from formforge.cli import app
from formforge.core import ir
from formforge.core.loader import load_module


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run commands from an empty project directory with a default config."""
    monkeypatch.delenv("FORMFORGE_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)
    config = tmp_path / "formforge.toml"
    config.write_text("")
    return config


@pytest.fixture
def grant_file(
    isolated_config: Path,
    write_json: Callable[[str, Any], Path],
    grant_module: ir.ModuleDescriptor,
) -> Path:
    return write_json("grant.json", grant_module.model_dump(mode="json"))


@pytest.fixture
def broken_file(isolated_config: Path, write_json: Callable[[str, Any], Path]) -> Path:
    return write_json(
        "broken.json",
        {
            "id": "broken",
            "fields": [
                {"id": "a", "field_type": "TextBox"},
                {"id": "b", "field_type": "TextBox", "parent_id": "ghost"},
                {"id": "x", "field_type": "TextBox", "parent_id": "y"},
                {"id": "y", "field_type": "TextBox", "parent_id": "x"},
            ],
        },
    )


class TestRootOptions:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "formforge" in result.stdout
        assert get_version() in result.stdout

    def test_no_args_shows_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, [])
        assert "inspect" in result.output
        assert "validate" in result.output

    def test_bad_log_level(self, cli_runner: CliRunner, grant_file: Path) -> None:
        result = cli_runner.invoke(app, ["--log-level", "chatty", "inspect", str(grant_file)])
        assert result.exit_code == 1
        assert "Unknown log level" in result.output

    def test_bad_config(self, cli_runner: CliRunner, grant_file: Path, tmp_path: Path) -> None:
        config = tmp_path / "bad.toml"
        config.write_text('[engine]\nrule_faults = "explode"\n')
        result = cli_runner.invoke(app, ["--config", str(config), "inspect", str(grant_file)])
        assert result.exit_code == 1
        assert "rule_faults" in result.output


class TestInspectCommand:
    def test_tree_and_metrics(self, cli_runner: CliRunner, grant_file: Path) -> None:
        result = cli_runner.invoke(app, ["inspect", str(grant_file)])
        assert result.exit_code == 0, result.output
        assert "Grant Application" in result.stdout
        assert "org_name" in result.stdout
        assert "Complexity score" in result.stdout

    def test_json(self, cli_runner: CliRunner, grant_file: Path) -> None:
        result = cli_runner.invoke(app, ["inspect", str(grant_file), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["module"] == "grant_app"
        assert [f["id"] for f in data["fields"]][:2] == ["applicant", "org_name"]
        assert data["fields"][1]["path"] == "applicant.org_name"
        assert data["metrics"]["complexity_score"] == 26

    def test_missing_file(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["inspect", "nope.json"])
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestCheckCommand:
    def test_valid_module(self, cli_runner: CliRunner, grant_file: Path) -> None:
        result = cli_runner.invoke(app, ["check", str(grant_file)])
        assert result.exit_code == 0, result.output
        assert "structurally valid" in result.stdout

    def test_errors_exit_1(self, cli_runner: CliRunner, broken_file: Path) -> None:
        result = cli_runner.invoke(app, ["check", str(broken_file)])
        assert result.exit_code == 1
        assert "non-existent parent 'ghost'" in result.stdout
        assert "Circular parent reference" in result.stdout

    def test_strict_fails_on_warnings(
        self, cli_runner: CliRunner, isolated_config: Path, write_json: Callable[[str, Any], Path]
    ) -> None:
        path = write_json(
            "warn.json",
            {"id": "warn", "fields": [{"id": "pick", "field_type": "DropDown"}]},
        )
        assert cli_runner.invoke(app, ["check", str(path)]).exit_code == 0
        strict = cli_runner.invoke(app, ["check", str(path), "--strict"])
        assert strict.exit_code == 1
        assert "no options" in strict.stdout


class TestFixCommand:
    def test_writes_output(self, cli_runner: CliRunner, broken_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "fixed.yaml"
        result = cli_runner.invoke(app, ["fix", str(broken_file), "-o", str(out)])
        assert result.exit_code == 0, result.output

        fixed = load_module(out)
        assert fixed.get_field("b").parent_id is None  # type: ignore[union-attr]
        # Cycles are left alone without --break-cycles
        assert fixed.get_field("x").parent_id == "y"  # type: ignore[union-attr]

    def test_break_cycles(self, cli_runner: CliRunner, broken_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "fixed.json"
        result = cli_runner.invoke(
            app, ["fix", str(broken_file), "-o", str(out), "--break-cycles"]
        )
        assert result.exit_code == 0, result.output

        fixed = load_module(out)
        assert fixed.get_field("x").parent_id is None  # type: ignore[union-attr]
        assert fixed.get_field("y").parent_id == "x"  # type: ignore[union-attr]
        check = cli_runner.invoke(app, ["check", str(out)])
        assert check.exit_code == 0, check.output


class TestValidateCommand:
    def test_valid_data(
        self,
        cli_runner: CliRunner,
        grant_file: Path,
        write_json: Callable[[str, Any], Path],
    ) -> None:
        data = write_json("data.json", {"org_name": "Acme", "contact_email": "info@acme.org"})
        result = cli_runner.invoke(app, ["validate", str(grant_file), str(data)])
        assert result.exit_code == 0, result.output
        assert "valid" in result.stdout

    def test_invalid_data_json(
        self,
        cli_runner: CliRunner,
        grant_file: Path,
        write_json: Callable[[str, Any], Path],
    ) -> None:
        data = write_json("data.json", {"org_name": "", "contact_email": "nope"})
        result = cli_runner.invoke(app, ["validate", str(grant_file), str(data), "--json"])
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["is_valid"] is False
        assert [(e["field_id"], e["code"]) for e in payload["errors"]] == [
            ("org_name", "REQUIRED"),
            ("contact_email", "INVALID_EMAIL"),
        ]

    def test_invalid_data_table(
        self,
        cli_runner: CliRunner,
        grant_file: Path,
        write_json: Callable[[str, Any], Path],
    ) -> None:
        data = write_json("data.json", {})
        result = cli_runner.invoke(app, ["validate", str(grant_file), str(data)])
        assert result.exit_code == 1
        assert "REQUIRED" in result.stdout

    def test_rule_modules_and_fault_policy_from_config(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        write_json: Callable[[str, Any], Path],
    ) -> None:
        monkeypatch.syspath_prepend(str(tmp_path))
        (tmp_path / "ff_cli_rules.py").write_text(
            "def register_rules(registry):\n"
            "    @registry.rule('explodes')\n"
            "    def explodes(node, value, form_data):\n"
            "        raise RuntimeError('boom')\n"
        )
        isolated_config.write_text(
            '[engine]\nrule_faults = "report"\n\n[rules]\nmodules = ["ff_cli_rules"]\n'
        )
        module = write_json(
            "m.json",
            {
                "id": "m",
                "fields": [
                    {"id": "a", "field_type": "TextBox", "validation_rules": ["explodes"]}
                ],
            },
        )
        data = write_json("data.json", {"a": "x"})

        result = cli_runner.invoke(
            app, ["--log-level", "critical", "validate", str(module), str(data), "--json"]
        )
        assert result.exit_code == 1
        assert json.loads(result.stdout)["errors"][0]["code"] == "RULE_FAULT"


class TestConditionsCommand:
    def test_json(
        self,
        cli_runner: CliRunner,
        grant_file: Path,
        write_json: Callable[[str, Any], Path],
    ) -> None:
        data = write_json("data.json", {"has_partner": "yes"})
        result = cli_runner.invoke(app, ["conditions", str(grant_file), str(data), "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["visibility"]["partner_name"] is True
        assert payload["visibility"]["justification"] is False
        assert all(payload["enabled"].values())

    def test_table(
        self,
        cli_runner: CliRunner,
        grant_file: Path,
        write_json: Callable[[str, Any], Path],
    ) -> None:
        data = write_json("data.yaml", {"amount": 50000})
        result = cli_runner.invoke(app, ["conditions", str(grant_file), str(data)])
        assert result.exit_code == 0, result.output
        assert "justification" in result.stdout
        assert "0 hidden, 0 disabled" in result.stdout
