"""Core formforge functionality: IR, hierarchy, structure checks, rules, validation, conditions."""

from . import ir
from .conditions import (
    ConditionalLogicEngine,
    FieldStates,
    evaluate_all,
    evaluate_condition,
    is_enabled,
    is_visible,
)
from .errors import (
    ConfigError,
    ErrorContext,
    FormforgeError,
    SchemaLoadError,
    StructureError,
)
from .hierarchy import build_runtime, compute_metrics, depth_first_order
from .loader import dump_module, load_form_data, load_module, parse_module
from .manifest import ProjectManifest, load_config, load_manifest
from .rules import (
    RuleRegistry,
    ValidationRule,
    create_default_registry,
    load_rule_modules,
)
from .runtime import FieldNode, HierarchyMetrics, ModuleRuntime
from .structure import (
    StructureReport,
    fix_structural_issues,
    validate_structure,
    would_create_cycle,
)
from .validation import FaultPolicy, ValidationEngine, validate_field, validate_module

__all__ = [
    "ir",
    # Errors
    "FormforgeError",
    "SchemaLoadError",
    "ConfigError",
    "StructureError",
    "ErrorContext",
    # Hierarchy
    "FieldNode",
    "HierarchyMetrics",
    "ModuleRuntime",
    "build_runtime",
    "compute_metrics",
    "depth_first_order",
    # Structure
    "StructureReport",
    "validate_structure",
    "fix_structural_issues",
    "would_create_cycle",
    # Rules and validation
    "RuleRegistry",
    "ValidationRule",
    "create_default_registry",
    "load_rule_modules",
    "FaultPolicy",
    "ValidationEngine",
    "validate_field",
    "validate_module",
    # Conditions
    "ConditionalLogicEngine",
    "FieldStates",
    "evaluate_all",
    "evaluate_condition",
    "is_enabled",
    "is_visible",
    # Loading and configuration
    "load_module",
    "load_form_data",
    "dump_module",
    "parse_module",
    "ProjectManifest",
    "load_config",
    "load_manifest",
]
