"""Rendered DOM retrieval from embedded web views.

Android web views with debugging enabled expose a Chrome DevTools endpoint.
Playwright connects to it over CDP and serializes each page's live DOM, so
the HTML reflects script-rendered content rather than the initial payload.
The DevTools target list supplies each web view's on-screen geometry, used
to attach the content to its native host view.
"""

import json
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Playwright, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from view_query.core.errors import CaptureUnavailable
from view_query.core.logging import ErrorIds, logError, logForDebugging
from view_query.models.element import Bounds, WebContent

# Engine reported until the host view is known
DEFAULT_ENGINE = "android.webkit.WebView"


def _list_targets(playwright: Playwright, endpoint_url: str, timeout_ms: float) -> dict[str, dict[str, Any]]:
    """Fetch the DevTools target list keyed by target id."""
    request = playwright.request.new_context()
    try:
        response = request.get(f"{endpoint_url}/json/list", timeout=timeout_ms)
        targets = response.json() if response.ok else []
    finally:
        request.dispose()
    return {t["id"]: t for t in targets if isinstance(t, dict) and "id" in t}


def target_bounds(target: dict[str, Any]) -> Bounds | None:
    """Screen bounds from an Android web view target description.

    The description is a JSON string such as
    ``{"attached":true,"screenX":0,"screenY":240,"width":1080,"height":1660}``.
    """
    try:
        description = json.loads(target.get("description") or "{}")
        left = int(description["screenX"])
        top = int(description["screenY"])
        return Bounds(
            left=left,
            top=top,
            right=left + int(description["width"]),
            bottom=top + int(description["height"]),
        )
    except (ValueError, KeyError, TypeError):
        return None


def is_attached(target: dict[str, Any]) -> bool:
    """Whether a target is attached to a visible web view."""
    try:
        description = json.loads(target.get("description") or "{}")
    except ValueError:
        return True
    if not isinstance(description, dict):
        return True
    return bool(description.get("attached", True)) and bool(description.get("visible", True))


def _target_id(page: Page) -> str | None:
    session = page.context.new_cdp_session(page)
    try:
        info = session.send("Target.getTargetInfo")
        return info.get("targetInfo", {}).get("targetId")
    finally:
        session.detach()


def read_webview_contents(endpoint_url: str, timeout: float = 5.0) -> list[WebContent]:
    """Read the rendered DOM of every attached web view behind a DevTools endpoint.

    Args:
        endpoint_url: HTTP URL of the forwarded DevTools endpoint.
        timeout: Seconds allowed for connecting and for each page to load.

    Returns:
        One WebContent per attached page, in target order.

    Raises:
        CaptureUnavailable: If the DevTools endpoint cannot be reached.
    """
    timeout_ms = timeout * 1000
    contents: list[WebContent] = []
    try:
        with sync_playwright() as p:
            targets = _list_targets(p, endpoint_url, timeout_ms)
            browser = p.chromium.connect_over_cdp(endpoint_url, timeout=timeout_ms)
            try:
                for context in browser.contexts:
                    for page in context.pages:
                        target = targets.get(_target_id(page) or "", {})
                        if target and not is_attached(target):
                            continue
                        try:
                            page.wait_for_load_state("load", timeout=timeout_ms)
                        except PlaywrightTimeoutError:
                            logForDebugging(
                                f"Web view {page.url!r} still loading - reading current DOM",
                                level="warning",
                            )
                        contents.append(
                            WebContent(
                                engine=DEFAULT_ENGINE,
                                url=page.url,
                                html=page.content(),
                                bounds=target_bounds(target) if target else None,
                            )
                        )
            finally:
                browser.close()
    except PlaywrightError as e:
        logError(ErrorIds.DEVTOOLS_UNAVAILABLE, f"Cannot read web views at {endpoint_url}: {e}")
        raise CaptureUnavailable("devtools-unavailable", str(e)) from e

    logForDebugging(f"Read {len(contents)} web view document(s)", extra={"endpoint": endpoint_url})
    return contents
