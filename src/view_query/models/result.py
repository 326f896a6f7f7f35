"""Query and inspection result models.

MatchResult is the ordered outcome of evaluating a selector; an empty result
is a normal outcome. InspectedContent holds the properties read from one
element.
"""

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict

from view_query.models.element import ElementNode
from view_query.models.snapshot import Snapshot


class MatchResult(BaseModel):
    """Ordered elements matched by a selector within one snapshot.

    Attributes:
        selector: The selector text (or canonical form) that was evaluated.
        snapshot: The snapshot the matched nodes belong to.
        nodes: Matched nodes in document order (or as narrowed by an index).
    """

    model_config = ConfigDict(frozen=True)

    selector: str
    snapshot: Snapshot
    nodes: tuple[ElementNode, ...] = ()

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ElementNode]:  # type: ignore[override]
        return iter(self.nodes)

    def __getitem__(self, index: int) -> ElementNode:
        return self.nodes[index]

    def __bool__(self) -> bool:
        return bool(self.nodes)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    @property
    def ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def first(self) -> ElementNode | None:
        """Return the first match, or None when nothing matched."""
        return self.nodes[0] if self.nodes else None


class InspectedContent(BaseModel):
    """Properties read from one element.

    Supported properties without a value are absent from ``properties``.

    Attributes:
        node_id: Id of the inspected element.
        properties: Property name to string value.
    """

    model_config = ConfigDict(frozen=True)

    node_id: str
    properties: dict[str, str] = {}

    def __getitem__(self, name: str) -> str:
        return self.properties[name]

    def __contains__(self, name: object) -> bool:
        return name in self.properties

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.properties.get(name, default)

    @property
    def html(self) -> str | None:
        return self.properties.get("html")
