"""
Runtime hierarchy types for formforge.

A ``ModuleRuntime`` is a pure projection of a ``ModuleDescriptor``: it is built
fresh by :func:`formforge.core.hierarchy.build_runtime` and discarded whenever
the descriptor changes. Nodes live in a single id-keyed arena; parent and child
links are plain ids resolved through that arena, so there are no reciprocal
object references and nothing here is ever serialized.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from .ir import FieldDescriptor, ModuleDescriptor


@dataclass
class FieldNode:
    """
    Runtime node for one field.

    Attributes:
        descriptor: The field's schema description (shared, not copied)
        position: Index of the descriptor in the module's field array
        parent_id: Id of the parent node, ``None`` for roots
        child_ids: Ordered ids of child nodes
        depth: Distance from the root (root = 0)
        path: Dot-joined ids from the root down to this node
    """

    descriptor: FieldDescriptor
    position: int
    parent_id: str | None = None
    child_ids: list[str] = field(default_factory=list)
    depth: int = 0
    path: str = ""

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def sort_key(self) -> tuple[int, int]:
        """Declared order, ties broken by original array position."""
        return (self.descriptor.order, self.position)

    def __repr__(self) -> str:
        return f"FieldNode({self.descriptor.field_type} [{self.id}] at depth {self.depth})"


class HierarchyMetrics(BaseModel):
    """
    Aggregate metrics over a built hierarchy.

    ``complexity_score`` is a deliberately simple weighted sum:
    1 x fields + 2 x parent-linked fields + 3 x fields with conditional rules.
    """

    total_fields: int = 0
    root_fields: int = 0
    max_depth: int = 0
    average_depth: float = 0.0
    parent_linked_fields: int = 0
    conditional_fields: int = 0
    complexity_score: int = 0

    model_config = ConfigDict(frozen=True)


@dataclass
class ModuleRuntime:
    """
    Navigable tree built from a module descriptor.

    Attributes:
        descriptor: The originating module descriptor
        nodes: Arena of nodes keyed by field id
        root_ids: Ordered ids of root nodes
        metrics: Metrics computed once at build time
    """

    descriptor: ModuleDescriptor
    nodes: dict[str, FieldNode] = field(default_factory=dict)
    root_ids: list[str] = field(default_factory=list)
    metrics: HierarchyMetrics = field(default_factory=HierarchyMetrics)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self.nodes

    def get(self, field_id: str) -> FieldNode | None:
        return self.nodes.get(field_id)

    def roots(self) -> list[FieldNode]:
        return [self.nodes[i] for i in self.root_ids]

    def parent(self, node: FieldNode) -> FieldNode | None:
        if node.parent_id is None:
            return None
        return self.nodes[node.parent_id]

    def children(self, node: FieldNode) -> list[FieldNode]:
        return [self.nodes[i] for i in node.child_ids]

    def ancestors(self, node: FieldNode) -> Iterator[FieldNode]:
        """Ancestors from the immediate parent up to the root."""
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def descendants(self, node: FieldNode) -> Iterator[FieldNode]:
        """All descendants in depth-first order."""
        stack = list(reversed(node.child_ids))
        while stack:
            current = self.nodes[stack.pop()]
            yield current
            stack.extend(reversed(current.child_ids))

    def fields_in_order(self) -> Iterator[FieldNode]:
        """Depth-first traversal of the whole module."""
        for root in self.roots():
            yield root
            yield from self.descendants(root)
