"""Element inspection.

This module provides inspect, which reads observable properties from a
matched element. Rendered ``html`` is served the same way for every web view
variant: from the DOM node itself, from the web view hosting the content, or
from the first web view inside a native container.
"""

from collections.abc import Iterable

from view_query.core.errors import PropertyUnsupported
from view_query.core.logging import ErrorIds, logError, logForDebugging
from view_query.models.element import ElementNode
from view_query.models.result import InspectedContent
from view_query.models.snapshot import Snapshot
from view_query.tools.dom import text_of

COMMON_PROPERTIES = frozenset({"id", "type", "text", "bounds"})

# Attributes UIAutomator reports for native views
NATIVE_PROPERTIES = frozenset({
    "resource-id",
    "content-desc",
    "package",
    "index",
    "checkable",
    "checked",
    "clickable",
    "enabled",
    "focusable",
    "focused",
    "scrollable",
    "long-clickable",
    "password",
    "selected",
})

WEB_PROPERTIES = frozenset({"html", "url"})


def _read_web_property(snapshot: Snapshot, node: ElementNode, name: str) -> str | None:
    if node.origin == "web":
        if name == "html":
            return node.markup
        host = snapshot.web_host_of(node)
        return host.content.url if host and host.content else None

    content = snapshot.hosted_content(node)
    if content is None:
        raise PropertyUnsupported(node.id, node.type, name)
    return content.html if name == "html" else content.url


def _read_property(snapshot: Snapshot, node: ElementNode, name: str) -> str | None:
    if name in WEB_PROPERTIES:
        return _read_web_property(snapshot, node, name)
    if name == "id":
        return node.id
    if name == "type":
        return node.type
    if name == "bounds":
        return node.bounds.to_text() if node.bounds else None
    if name == "text":
        if node.origin == "web":
            return text_of(node.markup or "") or None
        return node.attributes.get("text") or None
    if name in node.attributes:
        return node.attributes[name]
    # HTML attributes are open-ended, so an absent one is just missing
    if node.origin == "web" or name in NATIVE_PROPERTIES:
        return None
    raise PropertyUnsupported(node.id, node.type, name)


def inspect(snapshot: Snapshot, node: ElementNode, properties: Iterable[str]) -> InspectedContent:
    """Read properties of an element.

    Args:
        snapshot: The snapshot the element was matched in.
        node: The element to inspect.
        properties: Property names, e.g. ``{"html"}`` or ``["text", "resource-id"]``.
            A single name may be passed as a plain string.

    Returns:
        InspectedContent holding every requested property that has a value.

    Raises:
        KeyError: If ``node`` does not belong to ``snapshot``.
        PropertyUnsupported: If a property does not apply to the element,
            such as ``html`` on a native view with no web content below it.
    """
    snapshot.node(node.id)
    if isinstance(properties, str):
        properties = (properties,)
    values: dict[str, str] = {}
    for name in properties:
        try:
            value = _read_property(snapshot, node, name)
        except PropertyUnsupported as e:
            logError(ErrorIds.PROPERTY_UNSUPPORTED, str(e))
            raise
        if value is not None:
            values[name] = value

    logForDebugging(
        f"Inspected {node.id} ({node.type})",
        extra={"properties": ",".join(sorted(values))},
    )
    return InspectedContent(node_id=node.id, properties=values)
