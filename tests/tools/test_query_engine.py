"""Tests for the QueryEngine facade."""

from unittest.mock import MagicMock

import pytest

from view_query.core.config import EngineSettings
from view_query.core.errors import CaptureUnavailable, MalformedSelector
from view_query.core.recording import RecordedDevice
from view_query.tools.query import QueryEngine


class TestQueryEngine:
    def test_malformed_selector_does_not_capture(self) -> None:
        device = MagicMock()
        with pytest.raises(MalformedSelector):
            QueryEngine(device).query("zzra css:'*")
        device.app_state.assert_not_called()
        device.dump_hierarchy.assert_not_called()

    def test_query_keeps_selector_text(self, ad_device: RecordedDevice, fast_settings: EngineSettings) -> None:
        result = QueryEngine(ad_device, fast_settings).query("zzra  css:'*'")
        assert result.selector == "zzra  css:'*'"
        assert len(result) == 3

    def test_every_query_captures_fresh_snapshot(self, ad_device: RecordedDevice, fast_settings: EngineSettings) -> None:
        device = MagicMock(wraps=ad_device)
        engine = QueryEngine(device, fast_settings)

        first = engine.query("zzra css:'*'")
        second = engine.query("zzra css:'*'")

        assert first.snapshot is not second.snapshot
        assert device.app_state.call_count == 2

    def test_query_properties(self, ad_device: RecordedDevice, fast_settings: EngineSettings) -> None:
        results = QueryEngine(ad_device, fast_settings).query_properties(
            "PublisherAdView css:'*'", ["resource-id", "html"]
        )
        assert [r["resource-id"] for r in results] == [
            "org.prebid.demo:id/adFrame0",
            "org.prebid.demo:id/adFrame1",
            "org.prebid.demo:id/adFrame2",
        ]
        assert all("pbm.js" in r.html for r in results)

    def test_query_properties_without_match(self, ad_device: RecordedDevice, fast_settings: EngineSettings) -> None:
        engine = QueryEngine(ad_device, fast_settings)
        assert engine.query_properties("ImageView css:'*'", ["html"]) == []

    def test_query_single_property(self, ad_device: RecordedDevice, fast_settings: EngineSettings) -> None:
        engine = QueryEngine(ad_device, fast_settings)
        results = engine.query_properties("Button css:'*'", "text")
        assert [r.properties for r in results] == [{"text": "Load ads"}]

    def test_scope(self, ad_device: RecordedDevice, fast_settings: EngineSettings) -> None:
        engine = QueryEngine(ad_device, fast_settings)
        assert len(engine.query("zzra css:'*'", scope="MainActivity")) == 3
        with pytest.raises(CaptureUnavailable):
            engine.query("zzra css:'*'", scope="MraidActivity")

    def test_default_settings(self) -> None:
        assert QueryEngine(MagicMock()).settings == EngineSettings()
