"""Snapshot builder.

This module provides build_snapshot, which captures the application's
native view hierarchy and the rendered DOM of its embedded web views into
one immutable Snapshot.
"""

import re
import time
import xml.etree.ElementTree as ET
from typing import Any

from view_query.core.config import EngineSettings
from view_query.core.device import AppState, DeviceBridge
from view_query.core.errors import CaptureUnavailable
from view_query.core.logging import ErrorIds, logError, logEvent, logForDebugging
from view_query.models.element import Bounds, ElementNode, WebContent
from view_query.models.snapshot import Snapshot
from view_query.tools.dom import dom_drafts

# Matches UIAutomator bounds such as "[0,240][1080,1900]"
_BOUNDS_PATTERN = re.compile(r"\[(-?\d+),(-?\d+)\]\[(-?\d+),(-?\d+)\]")

# Type tag of a top-level container when the resumed activity is unknown
DEFAULT_CONTAINER_TYPE = "Window"

# Node attributes that are folded into other ElementNode fields
_STRUCTURAL_ATTRIBUTES = ("class", "bounds")


def parse_bounds(text: str | None) -> Bounds | None:
    """Parse UIAutomator bounds notation, returning None when malformed."""
    if not text:
        return None
    match = _BOUNDS_PATTERN.search(text)
    if not match:
        return None
    left, top, right, bottom = (int(match.group(i)) for i in range(1, 5))
    if right < left or bottom < top:
        return None
    return Bounds(left=left, top=top, right=right, bottom=bottom)


class _TreeDraft:
    """Mutable node drafts assembled before the snapshot is frozen."""

    def __init__(self, settings: EngineSettings) -> None:
        self.settings = settings
        self.drafts: dict[str, dict[str, Any]] = {}
        self.root_ids: list[str] = []
        self._counter = 0

    def new_id(self) -> str:
        node_id = f"n{self._counter}"
        self._counter += 1
        return node_id

    def add(self, draft: dict[str, Any]) -> str:
        self.drafts[draft["id"]] = draft
        return draft["id"]

    def looks_like_webview(self, type_tag: str) -> bool:
        simple = type_tag.rsplit(".", 1)[-1]
        return simple.endswith("WebView") or bool(
            {type_tag, simple} & set(self.settings.webview_classes)
        )

    def add_windows(self, hierarchy_xml: str, activity: str | None) -> None:
        """Add one top-level container per window root of the hierarchy."""
        try:
            root = ET.fromstring(hierarchy_xml)
        except ET.ParseError as e:
            logError(ErrorIds.HIERARCHY_PARSE_FAILED, f"Cannot parse view hierarchy: {e}")
            raise CaptureUnavailable("hierarchy-unavailable", str(e)) from e

        window_roots = list(root.findall("node")) if root.tag == "hierarchy" else [root]
        for index, window in enumerate(window_roots):
            package = window.get("package", "")
            # The resumed activity owns the first window; later roots are overlays
            container_type = activity if activity and index == 0 else DEFAULT_CONTAINER_TYPE
            container = {
                "id": f"w{index}",
                "type": container_type,
                "origin": "native",
                "parent": None,
                "children": [],
                "attributes": {"package": package} if package else {},
                "bounds": parse_bounds(window.get("bounds")),
            }
            self.add(container)
            self.root_ids.append(container["id"])
            container["children"].append(self._add_native(window, container["id"]))

    def _native_draft(self, element: ET.Element, parent_id: str) -> dict[str, Any]:
        attributes = {
            k: v for k, v in element.attrib.items() if k not in _STRUCTURAL_ATTRIBUTES
        }
        draft = {
            "id": self.new_id(),
            "type": element.get("class") or "android.view.View",
            "origin": "native",
            "parent": parent_id,
            "children": [],
            "attributes": attributes,
            "bounds": parse_bounds(element.get("bounds")),
        }
        self.add(draft)
        return draft

    def _add_native(self, element: ET.Element, parent_id: str) -> str:
        """Add ``element`` and its subtree in pre-order, returning its id."""
        root = self._native_draft(element, parent_id)
        stack = [(child, root["id"]) for child in reversed(element.findall("node"))]
        while stack:
            current, current_parent = stack.pop()
            draft = self._native_draft(current, current_parent)
            self.drafts[current_parent]["children"].append(draft["id"])
            stack.extend((child, draft["id"]) for child in reversed(current.findall("node")))
        return root["id"]

    def native_in_order(self) -> list[dict[str, Any]]:
        ordered: list[dict[str, Any]] = []
        stack = list(reversed(self.root_ids))
        while stack:
            draft = self.drafts[stack.pop()]
            if draft["origin"] == "native":
                ordered.append(draft)
            stack.extend(reversed(draft["children"]))
        return ordered

    def _find_host(self, content: WebContent) -> dict[str, Any] | None:
        candidates = [d for d in self.native_in_order() if d.get("content") is None and d["parent"]]
        if content.bounds is not None:
            same = [d for d in candidates if d["bounds"] == content.bounds]
            webviews = [d for d in same if self.looks_like_webview(d["type"])]
            if webviews or same:
                # Deepest node last in pre-order among equal bounds
                return (webviews or same)[-1]
        return next((d for d in candidates if self.looks_like_webview(d["type"])), None)

    def attach_web_contents(self, contents: list[WebContent]) -> None:
        """Attach each web document to its host view and graft its DOM below it."""
        for content in contents:
            host = self._find_host(content)
            if host is None:
                logForDebugging(
                    f"No host view found for web content {content.url!r}",
                    level="warning",
                )
                continue
            host["content"] = WebContent(
                engine=host["type"],
                url=content.url,
                html=content.html,
                bounds=content.bounds or host["bounds"],
            )
            top_level, drafts = dom_drafts(content.html, host["id"], self.new_id)
            for draft in drafts:
                self.add(draft)
            host["children"].extend(top_level)

    def subtree_ids(self, root_id: str) -> list[str]:
        ids: list[str] = []
        stack = [root_id]
        while stack:
            node_id = stack.pop()
            ids.append(node_id)
            stack.extend(self.drafts[node_id]["children"])
        return ids

    def freeze(self, scope: str | None) -> Snapshot:
        root_ids = self.root_ids
        node_ids: list[str] = list(self.drafts)
        if scope is not None:
            scoped = [
                r for r in root_ids
                if scope in (self.drafts[r]["type"], self.drafts[r]["type"].rsplit(".", 1)[-1])
            ]
            if not scoped:
                logError(ErrorIds.SCOPE_NOT_FOUND, f"No top-level container named {scope!r}")
                raise CaptureUnavailable("scope-not-found", scope=scope)
            root_ids = scoped[:1]
            node_ids = self.subtree_ids(root_ids[0])

        nodes = {
            node_id: ElementNode(
                **{**self.drafts[node_id], "children": tuple(self.drafts[node_id]["children"])}
            )
            for node_id in node_ids
        }
        return Snapshot(scope=scope, root_ids=tuple(root_ids), nodes=nodes)


def _wait_for_settled_hierarchy(device: DeviceBridge, settings: EngineSettings) -> str:
    """Dump the hierarchy until two consecutive dumps are identical.

    Raises:
        CaptureUnavailable: If the hierarchy keeps changing past the capture timeout.
    """
    deadline = time.monotonic() + settings.capture_timeout
    previous = device.dump_hierarchy(timeout=settings.capture_timeout)
    dumps = 1
    while True:
        time.sleep(settings.poll_interval)
        # Each dump only gets what is left of the settle budget
        remaining = max(deadline - time.monotonic(), settings.poll_interval)
        current = device.dump_hierarchy(timeout=remaining)
        dumps += 1
        if current == previous:
            logForDebugging(f"Hierarchy settled after {dumps} dumps")
            return current
        if time.monotonic() >= deadline:
            logError(
                ErrorIds.CAPTURE_TIMEOUT,
                f"Hierarchy did not settle within {settings.capture_timeout}s",
                extra={"dumps": dumps},
            )
            raise CaptureUnavailable(
                "timeout", f"hierarchy still changing after {settings.capture_timeout}s"
            )
        previous = current


def build_snapshot(
    device: DeviceBridge,
    scope: str | None = None,
    settings: EngineSettings | None = None,
) -> Snapshot:
    """Capture a snapshot of the application's element tree.

    The capture is read-only. Web view documents are grafted below their
    host views so native and web elements share one tree.

    Args:
        device: The bridge to the application under test.
        scope: Restrict the capture to the top-level container of this type.
        settings: Capture timeout and web view classification settings.

    Returns:
        An immutable Snapshot.

    Raises:
        CaptureUnavailable: If the app is not in the foreground, the hierarchy
            does not settle in time, or ``scope`` names no container.
    """
    settings = settings or EngineSettings()
    state = device.app_state()
    if state is not AppState.FOREGROUND:
        logError(ErrorIds.APP_NOT_CAPTURABLE, f"Application is {state.value}", extra={"scope": scope})
        raise CaptureUnavailable(state.value, "application is not in the foreground", scope)

    hierarchy = _wait_for_settled_hierarchy(device, settings)
    draft = _TreeDraft(settings)
    draft.add_windows(hierarchy, device.foreground_activity())
    draft.attach_web_contents(device.web_contents())
    snapshot = draft.freeze(scope)

    logEvent(
        "snapshot_captured",
        {"nodes": len(snapshot), "roots": len(snapshot.root_ids), "scope": scope},
    )
    return snapshot
