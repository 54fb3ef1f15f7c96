"""
Hierarchy builder for formforge.

Rebuilds the navigable field tree from a flat module descriptor in three passes:

1. Materialize: one node per field, keyed by id (last duplicate wins)
2. Link: attach each node to its parent, promoting orphans to roots
3. Order and measure: sort siblings and roots, compute depth, path and metrics

The build path never raises on structural problems. Orphans, self-parenting
and parent cycles are repaired in place (the offending field becomes a root)
and reported as warnings, so a broken schema degrades to a flatter tree rather
than failing outright. Use :mod:`formforge.core.structure` for strict checks.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from statistics import fmean

from .errors import StructureError
from .ir import ModuleDescriptor
from .runtime import FieldNode, HierarchyMetrics, ModuleRuntime

logger = logging.getLogger(__name__)

# Complexity score weights
WEIGHT_FIELD = 1
WEIGHT_PARENT_LINK = 2
WEIGHT_CONDITIONAL = 3


def build_runtime(descriptor: ModuleDescriptor) -> ModuleRuntime:
    """
    Build a ModuleRuntime from a module descriptor.

    Args:
        descriptor: The module to project

    Returns:
        Fresh runtime whose node ids equal the descriptor's field ids
    """
    runtime = ModuleRuntime(descriptor=descriptor)

    _materialize(runtime)
    _link(runtime)
    _break_parent_cycles(runtime)
    _order_and_measure(runtime)

    logger.debug(
        "Built hierarchy for module '%s': %d fields, %d roots, max depth %d",
        descriptor.id,
        runtime.metrics.total_fields,
        runtime.metrics.root_fields,
        runtime.metrics.max_depth,
    )
    return runtime


# =============================================================================
# Build passes
# =============================================================================


def _materialize(runtime: ModuleRuntime) -> None:
    for position, field_descriptor in enumerate(runtime.descriptor.fields):
        if field_descriptor.id in runtime.nodes:
            logger.warning(
                "Duplicate field id '%s' in module '%s'; the later declaration wins",
                field_descriptor.id,
                runtime.descriptor.id,
            )
        runtime.nodes[field_descriptor.id] = FieldNode(
            descriptor=field_descriptor,
            position=position,
        )


def _link(runtime: ModuleRuntime) -> None:
    for node in sorted(runtime.nodes.values(), key=lambda n: n.position):
        parent_id = node.descriptor.parent_id

        if parent_id is None:
            runtime.root_ids.append(node.id)
            continue

        if parent_id == node.id:
            logger.warning(
                "Field '%s' in module '%s' is its own parent; promoting to root",
                node.id,
                runtime.descriptor.id,
            )
            runtime.root_ids.append(node.id)
            continue

        parent = runtime.nodes.get(parent_id)
        if parent is None:
            logger.warning(
                "Orphaned field '%s' in module '%s': parent '%s' not found; promoting to root",
                node.id,
                runtime.descriptor.id,
                parent_id,
            )
            runtime.root_ids.append(node.id)
            continue

        parent.child_ids.append(node.id)
        node.parent_id = parent_id


def _reachable_from(runtime: ModuleRuntime, start_ids: list[str]) -> set[str]:
    seen: set[str] = set()
    stack = list(start_ids)
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        stack.extend(runtime.nodes[current].child_ids)
    return seen


def _break_parent_cycles(runtime: ModuleRuntime) -> None:
    """
    Promote one member of every parent cycle to root.

    After linking, a node that cannot be reached from any root either sits on
    a parent cycle (A -> B -> A) or hangs below one. For each cycle the
    first-declared member is detached from its parent, which makes the whole
    cycle (and everything below it) reachable again.
    """
    reachable = _reachable_from(runtime, runtime.root_ids)

    while len(reachable) < len(runtime.nodes):
        start = min(
            (n for n in runtime.nodes.values() if n.id not in reachable),
            key=lambda n: n.position,
        )

        # Walk up until a node repeats: that node is on the cycle
        visited: list[str] = []
        current = start.id
        while current not in visited:
            visited.append(current)
            parent_id = runtime.nodes[current].parent_id
            if parent_id is None:
                raise StructureError(f"Field '{current}' is unreachable but has no parent")
            current = parent_id
        cycle = visited[visited.index(current) :]

        victim = min((runtime.nodes[i] for i in cycle), key=lambda n: n.position)
        parent = runtime.nodes[victim.parent_id]  # type: ignore[index]
        parent.child_ids.remove(victim.id)
        victim.parent_id = None
        runtime.root_ids.append(victim.id)

        cycle_str = " -> ".join(reversed(cycle + [cycle[0]]))
        logger.warning(
            "Parent cycle detected in module '%s': %s; promoting '%s' to root",
            runtime.descriptor.id,
            cycle_str,
            victim.id,
        )
        reachable |= _reachable_from(runtime, [victim.id])


def _order_and_measure(runtime: ModuleRuntime) -> None:
    nodes = runtime.nodes

    runtime.root_ids.sort(key=lambda i: nodes[i].sort_key)
    for node in nodes.values():
        node.child_ids.sort(key=lambda i: nodes[i].sort_key)

    for root in runtime.roots():
        root.depth = 0
        root.path = root.id
        for descendant in runtime.descendants(root):
            parent = nodes[descendant.parent_id]  # type: ignore[index]
            descendant.depth = parent.depth + 1
            descendant.path = f"{parent.path}.{descendant.id}"

    runtime.metrics = compute_metrics(runtime)


# =============================================================================
# Traversal and metrics
# =============================================================================


class DepthFirstOrder:
    """
    Lazy, restartable depth-first view of a runtime.

    Roots in sorted order; each root's full subtree before the next root.
    Every ``iter()`` starts a fresh traversal.
    """

    def __init__(self, runtime: ModuleRuntime):
        self._runtime = runtime

    def __iter__(self) -> Iterator[FieldNode]:
        return self._runtime.fields_in_order()

    def __len__(self) -> int:
        return len(self._runtime)


def depth_first_order(runtime: ModuleRuntime) -> DepthFirstOrder:
    """Return the depth-first traversal of all nodes in the runtime."""
    return DepthFirstOrder(runtime)


def compute_metrics(runtime: ModuleRuntime) -> HierarchyMetrics:
    """Walk the tree once and compute aggregate metrics."""
    depths: list[int] = []
    parent_linked = 0
    conditional = 0

    for node in runtime.fields_in_order():
        depths.append(node.depth)
        if node.parent_id is not None:
            parent_linked += 1
        if node.descriptor.has_conditions:
            conditional += 1

    total = len(depths)
    return HierarchyMetrics(
        total_fields=total,
        root_fields=len(runtime.root_ids),
        max_depth=max(depths, default=0),
        average_depth=fmean(depths) if depths else 0.0,
        parent_linked_fields=parent_linked,
        conditional_fields=conditional,
        complexity_score=(
            WEIGHT_FIELD * total
            + WEIGHT_PARENT_LINK * parent_linked
            + WEIGHT_CONDITIONAL * conditional
        ),
    )
