"""
formforge - runtime engine for schema-driven forms.

Rebuilds a field hierarchy from flat descriptors, validates submitted values
against composable rules, and evaluates conditional visibility/enablement.
"""

from __future__ import annotations

from ._version import get_version
from .core import ir
from .core.conditions import ConditionalLogicEngine, evaluate_all, is_enabled, is_visible
from .core.errors import ConfigError, FormforgeError, SchemaLoadError, StructureError
from .core.hierarchy import build_runtime, depth_first_order
from .core.ir import (
    ConditionalAction,
    ConditionalOperator,
    ConditionalRule,
    FieldDescriptor,
    FieldOption,
    ModuleDescriptor,
    ValidationError,
    ValidationResult,
)
from .core.rules import RuleRegistry, create_default_registry
from .core.runtime import FieldNode, HierarchyMetrics, ModuleRuntime
from .core.structure import fix_structural_issues, validate_structure
from .core.validation import ValidationEngine

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    # Schema
    "ConditionalAction",
    "ConditionalOperator",
    "ConditionalRule",
    "FieldDescriptor",
    "FieldOption",
    "ModuleDescriptor",
    "ValidationError",
    "ValidationResult",
    # Runtime
    "FieldNode",
    "HierarchyMetrics",
    "ModuleRuntime",
    "build_runtime",
    "depth_first_order",
    "validate_structure",
    "fix_structural_issues",
    # Validation
    "RuleRegistry",
    "create_default_registry",
    "ValidationEngine",
    # Conditions
    "ConditionalLogicEngine",
    "evaluate_all",
    "is_visible",
    "is_enabled",
    # Errors
    "FormforgeError",
    "SchemaLoadError",
    "ConfigError",
    "StructureError",
]
