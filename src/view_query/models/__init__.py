"""View query data models."""

from view_query.models.element import Bounds, ElementNode, WebContent
from view_query.models.result import InspectedContent, MatchResult
from view_query.models.selector import (
    AttributeSelector,
    IndexSelector,
    ScopedSelector,
    SelectorExpression,
    TypeSelector,
)
from view_query.models.snapshot import Snapshot

__all__ = [
    "AttributeSelector",
    "Bounds",
    "ElementNode",
    "IndexSelector",
    "InspectedContent",
    "MatchResult",
    "ScopedSelector",
    "SelectorExpression",
    "Snapshot",
    "TypeSelector",
    "WebContent",
]
