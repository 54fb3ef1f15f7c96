"""
Structural validation and repair for module descriptors.

Unlike the hierarchy builder, which silently repairs what it can, the checks
here report problems without building a runtime:

Errors:
- Empty field ids
- Duplicate field ids
- Parent ids that do not resolve to a field in the module
- Fields that are their own parent
- Longer parent cycles (A -> B -> C -> A)

Warnings:
- min_length greater than max_length
- Choice fields with neither options nor a code set
- Conditional rules whose trigger field does not exist
- Conditional rules triggered by the field itself
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field

from .errors import StructureError
from .ir import FieldDescriptor, ModuleDescriptor

logger = logging.getLogger(__name__)


@dataclass
class StructureReport:
    """Result of a structural validation pass."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise StructureError if any structural errors were found."""
        if self.errors:
            message = "Structure validation failed:\n" + "\n".join(f"  - {e}" for e in self.errors)
            raise StructureError(message, errors=list(self.errors))


# =============================================================================
# Parent graph helpers
# =============================================================================


def _parent_map(descriptor: ModuleDescriptor) -> dict[str, str | None]:
    """Field id -> parent id, last declaration winning for duplicates."""
    return {f.id: f.parent_id for f in descriptor.fields}


def ancestor_ids(descriptor: ModuleDescriptor, field_id: str) -> Iterator[str]:
    """
    Ancestor ids of a field, closest first.

    Stops at the first unresolved parent and never revisits an id, so it is
    safe on descriptors that contain cycles.
    """
    parents = _parent_map(descriptor)
    seen = {field_id}
    current = parents.get(field_id)
    while current is not None and current in parents and current not in seen:
        yield current
        seen.add(current)
        current = parents[current]


def descendant_ids(descriptor: ModuleDescriptor, field_id: str) -> Iterator[str]:
    """Descendant ids of a field in depth-first declaration order, cycle-safe."""
    children: dict[str, list[str]] = {}
    for f in descriptor.fields:
        if f.parent_id is not None:
            children.setdefault(f.parent_id, []).append(f.id)

    seen = {field_id}
    stack = list(reversed(children.get(field_id, [])))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        yield current
        stack.extend(reversed(children.get(current, [])))


def would_create_cycle(
    descriptor: ModuleDescriptor,
    field_id: str,
    new_parent_id: str | None,
) -> bool:
    """
    Check whether re-parenting ``field_id`` under ``new_parent_id`` creates a cycle.

    True when the new parent is the field itself or one of its descendants,
    i.e. the field would appear among its own ancestors.
    """
    if new_parent_id is None:
        return False
    if new_parent_id == field_id:
        return True
    return field_id in set(ancestor_ids(descriptor, new_parent_id))


def find_parent_cycles(descriptor: ModuleDescriptor) -> list[list[str]]:
    """
    Find parent cycles longer than a single self-reference.

    Each cycle is returned once, rotated to start at its smallest id,
    e.g. ``["a", "b", "c"]`` for a -> b -> c -> a (each id's parent follows it).
    """
    parents = _parent_map(descriptor)
    cycles: list[list[str]] = []
    reported: set[tuple[str, ...]] = set()
    settled: set[str] = set()

    for start in parents:
        path: list[str] = []
        current: str | None = start
        while current is not None and current in parents and current not in settled:
            if current in path:
                cycle = path[path.index(current) :]
                if len(cycle) > 1:
                    # Normalize rotation so the same cycle is reported once
                    min_idx = cycle.index(min(cycle))
                    normalized = tuple(cycle[min_idx:] + cycle[:min_idx])
                    if normalized not in reported:
                        reported.add(normalized)
                        cycles.append(list(normalized))
                break
            path.append(current)
            current = parents[current]
        settled.update(path)

    return cycles


# =============================================================================
# Validation
# =============================================================================


def validate_structure(descriptor: ModuleDescriptor) -> StructureReport:
    """
    Validate a module descriptor's structure without building a runtime.

    Args:
        descriptor: Module descriptor to check

    Returns:
        StructureReport with errors and warnings (both possibly empty)
    """
    report = StructureReport()
    ids = {f.id for f in descriptor.fields}

    for field_id, count in Counter(descriptor.field_ids()).items():
        if count > 1:
            report.errors.append(f"Duplicate field id '{field_id}' declared {count} times")

    for f in descriptor.fields:
        if not f.id.strip():
            report.errors.append(f"Field with type '{f.field_type}' has an empty id")

        if f.parent_id is not None:
            if f.parent_id == f.id:
                report.errors.append(f"Field '{f.id}' references itself as parent")
            elif f.parent_id not in ids:
                report.errors.append(
                    f"Field '{f.id}' references non-existent parent '{f.parent_id}'"
                )

        _check_field_warnings(f, ids, report)

    for cycle in find_parent_cycles(descriptor):
        cycle_str = " -> ".join(cycle + [cycle[0]])
        report.errors.append(f"Circular parent reference detected: {cycle_str}")

    if report.errors:
        logger.warning(
            "Module '%s' has %d structural error(s)", descriptor.id, len(report.errors)
        )
    return report


def _check_field_warnings(f: FieldDescriptor, ids: set[str], report: StructureReport) -> None:
    if f.min_length is not None and f.max_length is not None and f.min_length > f.max_length:
        report.warnings.append(
            f"Field '{f.id}' has min_length {f.min_length} greater than max_length {f.max_length}"
        )

    if f.supports_options() and not f.options and f.code_set_id is None:
        report.warnings.append(f"Choice field '{f.id}' has no options and no code set")

    for rule in f.conditional_rules:
        if rule.field_id == f.id:
            report.warnings.append(f"Field '{f.id}' has a conditional rule triggered by itself")
        elif rule.field_id not in ids:
            report.warnings.append(
                f"Field '{f.id}' has a conditional rule on unknown trigger field '{rule.field_id}'"
            )


# =============================================================================
# Repair
# =============================================================================


def fix_structural_issues(
    descriptor: ModuleDescriptor,
    break_cycles: bool = False,
) -> ModuleDescriptor:
    """
    Return a repaired copy of a module descriptor.

    Every parent id that does not resolve to a field in the module is cleared,
    turning those fields into roots. Parent cycles are left alone unless
    ``break_cycles`` is set, in which case self-parenting is cleared and each
    longer cycle is opened by clearing the parent of its smallest id.

    Args:
        descriptor: Module descriptor to repair
        break_cycles: Also clear the edges that close parent cycles

    Returns:
        New descriptor (the input is never mutated)
    """
    ids = {f.id for f in descriptor.fields}
    to_clear: set[str] = set()

    for f in descriptor.fields:
        if f.parent_id is not None and f.parent_id not in ids:
            to_clear.add(f.id)
        elif break_cycles and f.parent_id == f.id:
            to_clear.add(f.id)

    if break_cycles:
        for cycle in find_parent_cycles(descriptor):
            to_clear.add(cycle[0])

    if not to_clear:
        return descriptor

    fields = [
        f.model_copy(update={"parent_id": None}) if f.id in to_clear else f
        for f in descriptor.fields
    ]
    logger.info(
        "Cleared parent reference on %d field(s) in module '%s': %s",
        len(to_clear),
        descriptor.id,
        ", ".join(sorted(to_clear)),
    )
    return descriptor.with_fields(fields)
