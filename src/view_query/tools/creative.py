"""Creative rendering checks.

These checks back acceptance-test steps such as "I should see the creative
in PublisherAdView number 1": they query the ad host view and assert that
its rendered HTML contains the creative marker script.
"""

from enum import Enum

from view_query.core.logging import ErrorIds, logError, logEvent
from view_query.models.result import InspectedContent
from view_query.tools.inspect import inspect
from view_query.tools.query import QueryEngine

# Script every Prebid mobile creative loads
DEFAULT_MARKER = "pbm.js"


class CreativeHost(str, Enum):
    """Views that host ad creatives."""

    PUBLISHER_AD_VIEW = "publisher-ad-view"
    HTML_BANNER = "html-banner"
    MRAID = "mraid"


# Selector type for each host, and the name used in failure messages
_HOSTS: dict[CreativeHost, tuple[str, str]] = {
    CreativeHost.PUBLISHER_AD_VIEW: ("zzra", "PublisherAdView"),
    CreativeHost.HTML_BANNER: ("HTMLBannerWebView", "HTMLBannerWebView"),
    CreativeHost.MRAID: ("MraidActivity", "MraidBridgeMraidWebView"),
}


class CreativeNotRendered(AssertionError):
    """Raised when a creative marker is missing from the host's HTML."""

    def __init__(
        self,
        selector: str,
        marker: str,
        host_label: str,
        index: int | None = None,
        reason: str = "",
    ) -> None:
        self.selector = selector
        self.marker = marker
        self.host_label = host_label
        self.index = index
        self.reason = reason
        message = f"{marker} not found, creative was not served"
        if index is not None:
            message += f" in number {index} {host_label}"
        else:
            message += f" in {host_label}"
        message += f" (selector {selector!r}"
        message += f": {reason})" if reason else ")"
        super().__init__(message)


def creative_selector(host: CreativeHost, index: int | None = None) -> str:
    """Selector for the creative host view, optionally the n-th one."""
    type_tag, _ = _HOSTS[host]
    if index is None:
        return f"{type_tag} css:'*'"
    return f"{type_tag} index:{index} css:'*'"


def assert_creative_rendered(
    engine: QueryEngine,
    host: CreativeHost = CreativeHost.PUBLISHER_AD_VIEW,
    index: int | None = None,
    marker: str = DEFAULT_MARKER,
    selector: str | None = None,
) -> InspectedContent:
    """Assert that the first matched host view rendered the creative.

    Args:
        engine: The query engine attached to the application.
        host: Which host view to query.
        index: The 0-based host instance, for screens with several ad views.
        marker: Substring proving the creative rendered.
        selector: Explicit selector overriding the host's default one.

    Returns:
        The inspected HTML of the host view.

    Raises:
        CreativeNotRendered: If nothing matched or the marker is missing.
        CaptureUnavailable: If the application cannot be captured.
        PropertyUnsupported: If the matched view hosts no web content.
    """
    selector = selector or creative_selector(host, index)
    _, label = _HOSTS[host]

    matches = engine.query(selector)
    first = matches.first()
    if first is None:
        error = CreativeNotRendered(selector, marker, label, index, "no element matched")
        logError(ErrorIds.CREATIVE_NOT_RENDERED, str(error))
        raise error

    content = inspect(matches.snapshot, first, {"html"})
    if marker not in (content.html or ""):
        error = CreativeNotRendered(selector, marker, label, index)
        logError(ErrorIds.CREATIVE_NOT_RENDERED, str(error), extra={"node": first.id})
        raise error

    logEvent("creative_rendered", {"selector": selector, "node": first.id, "marker": marker})
    return content
