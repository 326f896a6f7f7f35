"""Query evaluation against a snapshot.

Evaluation threads a context sequence through the expression. With no
context the whole forest is searched. Type selectors inside a context narrow
to descendants of the context nodes, predicates filter the context and index
selectors pick one element. Document order is preserved throughout.
"""

from view_query.core.logging import logForDebugging
from view_query.core.parser import to_text
from view_query.core.predicate import compile_predicate
from view_query.models.element import ElementNode
from view_query.models.result import MatchResult
from view_query.models.selector import (
    AttributeSelector,
    IndexSelector,
    ScopedSelector,
    SelectorExpression,
    TypeSelector,
)
from view_query.models.snapshot import Snapshot

Context = list[ElementNode] | None


def evaluate(
    expr: SelectorExpression,
    snapshot: Snapshot,
    selector_text: str | None = None,
) -> MatchResult:
    """Evaluate a selector expression against a snapshot.

    Never raises: an expression that matches nothing, an out-of-range index
    or an unparseable css predicate all produce an empty result.

    Args:
        expr: The parsed selector expression.
        snapshot: The snapshot to search.
        selector_text: Text to record on the result (defaults to the canonical form).

    Returns:
        A MatchResult with the matched nodes in document order.
    """
    nodes = _apply(expr, snapshot, None)
    text = selector_text if selector_text is not None else to_text(expr)
    logForDebugging(
        f"Selector {text!r} matched {len(nodes)} element(s)",
        extra={"snapshot_nodes": len(snapshot)},
    )
    return MatchResult(selector=text, snapshot=snapshot, nodes=tuple(nodes))


def _apply(expr: SelectorExpression, snapshot: Snapshot, context: Context) -> list[ElementNode]:
    if isinstance(expr, TypeSelector):
        return _select_type(expr.type_tag, snapshot, context)

    if isinstance(expr, AttributeSelector):
        candidates = list(snapshot.iter_document_order()) if context is None else context
        if expr.is_wildcard:
            return list(candidates)
        predicate = compile_predicate(expr.predicate)
        if predicate is None:
            return []
        return [node for node in candidates if predicate.matches(node, snapshot)]

    if isinstance(expr, IndexSelector):
        matches = _apply(expr.base, snapshot, context)
        if 0 <= expr.index < len(matches):
            return [matches[expr.index]]
        return []

    if isinstance(expr, ScopedSelector):
        containers = _select_type(expr.container, snapshot, context)
        if not containers:
            return []
        return _apply(expr.inner, snapshot, containers)

    raise TypeError(f"Unknown selector expression: {expr!r}")


def _select_type(type_tag: str, snapshot: Snapshot, context: Context) -> list[ElementNode]:
    """Nodes matching ``type_tag`` in the forest, or below the context nodes."""
    if context is None:
        return [node for node in snapshot.iter_document_order() if node.matches_type(type_tag)]

    seen: set[str] = set()
    found: list[ElementNode] = []
    for container in context:
        for node in snapshot.iter_descendants(container):
            if node.id not in seen and node.matches_type(type_tag):
                seen.add(node.id)
                found.append(node)

    # Nested containers can yield descendants out of order
    positions = snapshot.document_positions()
    found.sort(key=lambda n: positions[n.id])
    return found
