"""
formforge Intermediate Representation (IR) types.

Immutable, serializable schema models. Types are organized into submodules and
re-exported here.
"""

# Conditions
from .conditions import (
    ConditionalAction,
    ConditionalOperator,
    ConditionalRule,
)

# Fields
from .fields import (
    CHOICE_KINDS,
    CONTAINER_KINDS,
    FieldDescriptor,
    FieldKind,
    FieldOption,
)

# Module
from .module import ModuleDescriptor

# Validation outcomes
from .validation import ValidationError, ValidationResult

__all__ = [
    # Conditions
    "ConditionalAction",
    "ConditionalOperator",
    "ConditionalRule",
    # Fields
    "CHOICE_KINDS",
    "CONTAINER_KINDS",
    "FieldDescriptor",
    "FieldKind",
    "FieldOption",
    # Module
    "ModuleDescriptor",
    # Validation outcomes
    "ValidationError",
    "ValidationResult",
]
