"""Shared pytest fixtures for formforge tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from formforge.core import ir
from formforge.core.hierarchy import build_runtime
from formforge.core.rules import RuleRegistry, create_default_registry
from formforge.core.runtime import ModuleRuntime
from formforge.logging import ROOT_LOGGER


@pytest.fixture(autouse=True)
def reset_formforge_logger() -> Iterator[None]:
    """Undo setup_logging() so caplog sees formforge records in every test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def grant_module() -> ir.ModuleDescriptor:
    """
    A small grant application form.

    applicant (Section, order 1)
      org_name (required, 2..50 chars)
      contact_email (email rule)
      has_partner (DropDown yes/no)
      partner_name (shown when has_partner == yes)
    budget (Section, order 2)
      amount (Numeric)
      justification (shown when amount > 10000)
    """
    yes_no = [
        ir.FieldOption(value="yes", label_en="Yes", label_fr="Oui", order=1),
        ir.FieldOption(value="no", label_en="No", label_fr="Non", order=2),
    ]
    return ir.ModuleDescriptor(
        id="grant_app",
        title_en="Grant Application",
        title_fr="Demande de subvention",
        fields=[
            ir.FieldDescriptor.section("budget", "Budget", order=2),
            ir.FieldDescriptor.section("applicant", "Applicant", "Demandeur", order=1),
            ir.FieldDescriptor.text_field(
                "org_name",
                "Organization name",
                "Nom de l'organisme",
                is_required=True,
                parent_id="applicant",
                min_length=2,
                max_length=50,
            ),
            ir.FieldDescriptor.text_field(
                "contact_email",
                "Contact email",
                parent_id="applicant",
                order=2,
                validation_rules=["email"],
            ),
            ir.FieldDescriptor.dropdown(
                "has_partner", "Has partner", yes_no, parent_id="applicant", order=3
            ),
            ir.FieldDescriptor.text_field(
                "partner_name",
                "Partner name",
                parent_id="applicant",
                order=4,
                conditional_rules=[ir.ConditionalRule.show_when_equals("has_partner", "yes")],
            ),
            ir.FieldDescriptor(id="amount", field_type="Numeric", parent_id="budget"),
            ir.FieldDescriptor(
                id="justification",
                field_type="TextArea",
                parent_id="budget",
                order=2,
                conditional_rules=[
                    ir.ConditionalRule(
                        field_id="amount",
                        operator=ir.ConditionalOperator.GREATER_THAN,
                        value="10000",
                        action=ir.ConditionalAction.SHOW,
                    ),
                    ir.ConditionalRule(
                        field_id="amount",
                        operator=ir.ConditionalOperator.IS_EMPTY,
                        action=ir.ConditionalAction.HIDE,
                    ),
                ],
            ),
        ],
    )


@pytest.fixture
def grant_runtime(grant_module: ir.ModuleDescriptor) -> ModuleRuntime:
    return build_runtime(grant_module)


@pytest.fixture
def registry() -> RuleRegistry:
    """Return a fresh registry with the built-in rules."""
    return create_default_registry()


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write data as JSON under tmp_path and return the file path."""

    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data, indent=2))
        return path

    return _write
