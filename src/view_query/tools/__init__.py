"""View query tools."""

from view_query.tools.creative import (
    DEFAULT_MARKER,
    CreativeHost,
    CreativeNotRendered,
    assert_creative_rendered,
    creative_selector,
)
from view_query.tools.inspect import inspect
from view_query.tools.query import QueryEngine
from view_query.tools.snapshot import build_snapshot

__all__ = [
    "DEFAULT_MARKER",
    "CreativeHost",
    "CreativeNotRendered",
    "QueryEngine",
    "assert_creative_rendered",
    "build_snapshot",
    "creative_selector",
    "inspect",
]
