"""Conversion of rendered web view HTML into snapshot nodes."""

from collections.abc import Callable
from typing import Any

from bs4 import BeautifulSoup, Tag


def _attribute_value(value: Any) -> str:
    # Multi-valued attributes (class, rel) come back as lists
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def _child_tags(tag: Tag) -> list[Tag]:
    return [child for child in tag.children if isinstance(child, Tag)]


def dom_drafts(
    html: str,
    host_id: str,
    new_id: Callable[[], str],
) -> tuple[list[str], list[dict[str, Any]]]:
    """Parse rendered HTML into node drafts grafted below a web view host.

    Args:
        html: Serialized DOM of the web view.
        host_id: Id of the native node hosting the web view.
        new_id: Factory producing the next unique node id.

    Returns:
        The ids of the top-level DOM nodes and the drafts of every DOM node
        in document order.
    """
    soup = BeautifulSoup(html, "html.parser")
    top_level: list[str] = []
    drafts: list[dict[str, Any]] = []
    by_id: dict[str, dict[str, Any]] = {}

    # Explicit stack: rendered documents can nest deeper than the recursion limit
    stack: list[tuple[Tag, str]] = [(tag, host_id) for tag in reversed(_child_tags(soup))]
    while stack:
        tag, parent_id = stack.pop()
        draft: dict[str, Any] = {
            "id": new_id(),
            "type": tag.name.lower(),
            "origin": "web",
            "parent": parent_id,
            "children": [],
            "attributes": {k: _attribute_value(v) for k, v in tag.attrs.items()},
            "markup": str(tag),
        }
        drafts.append(draft)
        by_id[draft["id"]] = draft
        if parent_id == host_id:
            top_level.append(draft["id"])
        else:
            by_id[parent_id]["children"].append(draft["id"])
        stack.extend((child, draft["id"]) for child in reversed(_child_tags(tag)))

    return top_level, drafts


def text_of(markup: str) -> str:
    """Visible text of a DOM node's markup, whitespace collapsed."""
    return BeautifulSoup(markup, "html.parser").get_text(" ", strip=True)
