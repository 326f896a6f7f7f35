"""Snapshot model for captured view hierarchies.

This module defines the Snapshot model, an immutable forest of ElementNode
captured from the application at one instant.
"""

from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from view_query.models.element import ElementNode, WebContent


class Snapshot(BaseModel):
    """A point-in-time capture of the application's element tree.

    One snapshot is built per query. Nodes and match results are views over
    it and must not be reused once the query has completed.

    Attributes:
        captured_at: UTC time of capture.
        scope: Name of the top-level container the capture was restricted to.
        root_ids: Ids of the top-level containers in screen order.
        nodes: Every node in the snapshot by id, as a read-only mapping.
    """

    model_config = ConfigDict(frozen=True)

    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    scope: str | None = None
    root_ids: tuple[str, ...] = ()
    nodes: Mapping[str, ElementNode] = Field(default_factory=dict, validate_default=True)

    @field_validator("nodes")
    @classmethod
    def freeze_nodes(cls, v: Mapping[str, ElementNode]) -> Mapping[str, ElementNode]:
        return MappingProxyType(dict(v))

    @field_serializer("nodes")
    def serialize_nodes(self, nodes: Mapping[str, ElementNode]) -> dict[str, ElementNode]:
        return dict(nodes)

    @model_validator(mode="after")
    def check_references(self) -> "Snapshot":
        """Validate that roots and children point at nodes in the snapshot."""
        for root_id in self.root_ids:
            if root_id not in self.nodes:
                raise ValueError(f"root {root_id!r} is not a node of the snapshot")
        for node in self.nodes.values():
            for child_id in node.children:
                if child_id not in self.nodes:
                    raise ValueError(f"child {child_id!r} of {node.id!r} is missing")
        return self

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, node_id: str) -> ElementNode:
        """Get a node by id.

        Raises:
            KeyError: If the node is not part of this snapshot.
        """
        if node_id not in self.nodes:
            raise KeyError(f"Element {node_id!r} is not part of this snapshot")
        return self.nodes[node_id]

    @property
    def roots(self) -> list[ElementNode]:
        return [self.nodes[i] for i in self.root_ids]

    def children_of(self, node: ElementNode) -> list[ElementNode]:
        return [self.nodes[i] for i in node.children]

    def iter_subtree(self, node: ElementNode) -> Iterator[ElementNode]:
        """Yield ``node`` and all of its descendants in document order."""
        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(self.nodes[i] for i in reversed(current.children))

    def iter_descendants(self, node: ElementNode) -> Iterator[ElementNode]:
        """Yield the strict descendants of ``node`` in document order."""
        subtree = self.iter_subtree(node)
        next(subtree)
        yield from subtree

    def iter_document_order(self) -> Iterator[ElementNode]:
        """Yield every node of the forest in document (pre-order) order."""
        for root in self.roots:
            yield from self.iter_subtree(root)

    def document_positions(self) -> dict[str, int]:
        """Map each node id to its position in document order."""
        return {node.id: pos for pos, node in enumerate(self.iter_document_order())}

    def hosted_content(self, node: ElementNode) -> WebContent | None:
        """Get the first web content hosted by ``node`` or its native subtree."""
        for candidate in self.iter_subtree(node):
            if candidate.origin == "native" and candidate.content is not None:
                return candidate.content
        return None

    def web_host_of(self, node: ElementNode) -> ElementNode | None:
        """Get the native web view hosting a web DOM node."""
        current = node
        while current.parent is not None:
            current = self.nodes[current.parent]
            if current.content is not None:
                return current
        return None
