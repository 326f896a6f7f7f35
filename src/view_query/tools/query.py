"""Query engine facade.

QueryEngine runs a whole query per call: the selector is parsed, a fresh
snapshot is captured and the expression is evaluated against it. Snapshots
are never cached, since the application changes between test steps.
"""

from collections.abc import Iterable

from view_query.core.config import EngineSettings
from view_query.core.device import DeviceBridge
from view_query.core.evaluator import evaluate
from view_query.core.parser import parse
from view_query.models.result import InspectedContent, MatchResult
from view_query.models.snapshot import Snapshot
from view_query.tools.inspect import inspect
from view_query.tools.snapshot import build_snapshot


class QueryEngine:
    """Selector queries against a live (or recorded) application.

    Args:
        device: The bridge to the application under test.
        settings: Capture settings; defaults to ``EngineSettings()``.
    """

    def __init__(self, device: DeviceBridge, settings: EngineSettings | None = None) -> None:
        self.device = device
        self.settings = settings or EngineSettings()

    def snapshot(self, scope: str | None = None) -> Snapshot:
        """Capture a fresh snapshot."""
        return build_snapshot(self.device, scope=scope, settings=self.settings)

    def query(self, selector: str, scope: str | None = None) -> MatchResult:
        """Match a selector against a fresh snapshot.

        The selector is parsed before capturing, so a malformed selector
        fails without touching the device.

        Raises:
            MalformedSelector: If the selector does not parse.
            CaptureUnavailable: If no snapshot can be captured.
        """
        expr = parse(selector)
        return evaluate(expr, self.snapshot(scope), selector_text=selector)

    def query_properties(
        self,
        selector: str,
        properties: Iterable[str],
        scope: str | None = None,
    ) -> list[InspectedContent]:
        """Match a selector and inspect every match.

        Returns:
            One InspectedContent per match, in match order (empty when nothing matched).
        """
        wanted = [properties] if isinstance(properties, str) else list(properties)
        matches = self.query(selector, scope)
        return [inspect(matches.snapshot, node, wanted) for node in matches]
