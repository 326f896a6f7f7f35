"""Tests for the snapshot builder."""

import itertools
from unittest.mock import MagicMock

import pytest

from view_query.core.config import EngineSettings
from view_query.core.device import AppState
from view_query.core.errors import CaptureUnavailable
from view_query.core.recording import RecordedDevice, RecordedWebContent, Recording
from view_query.models.element import Bounds
from view_query.models.snapshot import Snapshot
from view_query.tools.snapshot import build_snapshot, parse_bounds

TWO_WINDOWS_XML = """\
<hierarchy rotation="0">
  <node class="android.widget.FrameLayout" package="org.prebid.demo" bounds="[0,0][1080,2400]">
    <node class="android.widget.TextView" text="Content" bounds="[0,0][1080,200]" />
  </node>
  <node class="android.widget.FrameLayout" package="com.android.systemui" bounds="[0,0][1080,600]" />
</hierarchy>
"""


def live_device(dumps, activity: str | None = "org.prebid.demo.MainActivity") -> MagicMock:
    device = MagicMock()
    device.app_state.return_value = AppState.FOREGROUND
    device.foreground_activity.return_value = activity
    device.dump_hierarchy.side_effect = dumps
    device.web_contents.return_value = []
    return device


def of_type(snapshot: Snapshot, type_tag: str) -> list:
    return [n for n in snapshot.iter_document_order() if n.matches_type(type_tag)]


class TestParseBounds:
    def test_valid(self) -> None:
        assert parse_bounds("[0,240][1080,1900]") == Bounds(left=0, top=240, right=1080, bottom=1900)

    @pytest.mark.parametrize("text", [None, "", "garbage", "[10,10][0,0]"])
    def test_invalid(self, text: str | None) -> None:
        assert parse_bounds(text) is None


class TestCapture:
    def test_waits_for_settled_hierarchy(self, fast_settings: EngineSettings) -> None:
        first = "<hierarchy><node class='android.widget.ProgressBar' /></hierarchy>"
        settled = "<hierarchy><node class='android.widget.TextView' /></hierarchy>"
        device = live_device([first, settled, settled])

        snapshot = build_snapshot(device, settings=fast_settings)

        assert device.dump_hierarchy.call_count == 3
        assert [n.simple_type for n in snapshot.iter_document_order()] == ["MainActivity", "TextView"]

    def test_hierarchy_never_settles(self) -> None:
        dumps = (f"<hierarchy><node text='{i}' /></hierarchy>" for i in itertools.count())
        device = live_device(dumps)
        settings = EngineSettings(capture_timeout=0.05, poll_interval=0.01)

        with pytest.raises(CaptureUnavailable) as exc_info:
            build_snapshot(device, settings=settings)
        assert exc_info.value.reason == "timeout"

    def test_dumps_share_the_capture_timeout(self) -> None:
        dumps = (f"<hierarchy><node text='{i}' /></hierarchy>" for i in itertools.count())
        device = live_device(dumps)
        settings = EngineSettings(capture_timeout=0.2, poll_interval=0.01)

        with pytest.raises(CaptureUnavailable):
            build_snapshot(device, settings=settings)

        timeouts = [c.kwargs["timeout"] for c in device.dump_hierarchy.call_args_list]
        assert timeouts[0] == settings.capture_timeout
        assert all(settings.poll_interval <= t < settings.capture_timeout for t in timeouts[1:])
        assert timeouts[-1] < timeouts[1]

    @pytest.mark.parametrize(
        "state", [AppState.BACKGROUND, AppState.NOT_RUNNING, AppState.CRASHED]
    )
    def test_app_not_in_foreground(self, state: AppState, fast_settings: EngineSettings) -> None:
        device = live_device([])
        device.app_state.return_value = state

        with pytest.raises(CaptureUnavailable) as exc_info:
            build_snapshot(device, scope="MainActivity", settings=fast_settings)

        assert exc_info.value.reason == state.value
        assert exc_info.value.scope == "MainActivity"
        device.dump_hierarchy.assert_not_called()

    def test_invalid_xml(self, fast_settings: EngineSettings) -> None:
        device = live_device(itertools.repeat("<hierarchy><node"))
        with pytest.raises(CaptureUnavailable) as exc_info:
            build_snapshot(device, settings=fast_settings)
        assert exc_info.value.reason == "hierarchy-unavailable"


class TestTreeShape:
    def test_ad_screen(self, ad_snapshot: Snapshot) -> None:
        # 1 container + 9 native views + 3 documents of 6 elements
        assert len(ad_snapshot) == 28
        assert ad_snapshot.root_ids == ("w0",)
        container = ad_snapshot.node("w0")
        assert container.type == "org.prebid.demo.MainActivity"
        assert [n.simple_type for n in ad_snapshot.children_of(container)] == ["FrameLayout"]

    def test_native_attributes(self, ad_snapshot: Snapshot) -> None:
        [title] = of_type(ad_snapshot, "TextView")
        assert title.attributes["text"] == "Prebid Demo"
        assert title.attributes["resource-id"] == "org.prebid.demo:id/title"
        assert "class" not in title.attributes
        assert "bounds" not in title.attributes
        assert title.bounds == Bounds(left=0, top=0, right=1080, bottom=200)

    def test_web_content_grafted_below_host(self, ad_snapshot: Snapshot) -> None:
        hosts = of_type(ad_snapshot, "zzra")
        assert len(hosts) == 3
        for n, host in enumerate(hosts):
            assert host.content is not None
            assert host.content.engine == "zzra"
            assert host.content.url == f"https://ads.example/creative/{n}"
            [document] = ad_snapshot.children_of(host)
            assert document.type == "html"
            assert document.origin == "web"

    def test_ad_frames_do_not_take_content(self, ad_snapshot: Snapshot) -> None:
        assert all(n.content is None for n in of_type(ad_snapshot, "PublisherAdView"))

    def test_web_element_attributes(self, ad_snapshot: Snapshot) -> None:
        divs = of_type(ad_snapshot, "div")
        assert [d.attributes["class"] for d in divs] == ["ad creative"] * 3
        assert divs[0].markup.startswith('<div class="ad creative" id="creative-0">')

    def test_ids_are_unique(self, ad_snapshot: Snapshot) -> None:
        ids = [n.id for n in ad_snapshot.iter_document_order()]
        assert len(ids) == len(set(ids)) == len(ad_snapshot)

    def test_content_without_bounds_uses_web_view(self, banner_device: RecordedDevice, fast_settings: EngineSettings) -> None:
        snapshot = build_snapshot(banner_device, settings=fast_settings)
        [banner] = of_type(snapshot, "HTMLBannerWebView")
        assert banner.content is not None
        assert banner.content.bounds == Bounds(left=0, top=0, right=1080, bottom=300)
        assert [n.type for n in snapshot.children_of(banner)] == ["div"]

    def test_unhosted_content_is_dropped(self, fast_settings: EngineSettings) -> None:
        device = RecordedDevice(
            Recording(
                hierarchy=TWO_WINDOWS_XML,
                web_contents=[RecordedWebContent(html="<p>orphan</p>", bounds=(5, 5, 50, 50))],
            )
        )
        snapshot = build_snapshot(device, settings=fast_settings)
        assert all(n.origin == "native" for n in snapshot.iter_document_order())

    def test_configured_web_view_class(self, fast_settings: EngineSettings) -> None:
        xml = (
            "<hierarchy><node class='android.widget.FrameLayout' bounds='[0,0][100,100]'>"
            "<node class='com.vendor.zzqb' bounds='[0,0][100,50]' /></node></hierarchy>"
        )
        device = RecordedDevice(Recording(hierarchy=xml, web_contents=[RecordedWebContent(html="<p>x</p>")]))

        plain = build_snapshot(device, settings=fast_settings)
        configured = build_snapshot(
            device,
            settings=fast_settings.with_overrides(webview_classes=("zzra", "zzqb")),
        )

        assert of_type(plain, "zzqb")[0].content is None
        assert of_type(configured, "zzqb")[0].content is not None


class TestWindows:
    def test_activity_types_first_window(self, fast_settings: EngineSettings) -> None:
        device = RecordedDevice(Recording(activity="org.prebid.demo.MainActivity", hierarchy=TWO_WINDOWS_XML))
        snapshot = build_snapshot(device, settings=fast_settings)
        assert [r.type for r in snapshot.roots] == ["org.prebid.demo.MainActivity", "Window"]
        assert snapshot.node("w1").attributes == {"package": "com.android.systemui"}

    def test_unknown_activity(self, fast_settings: EngineSettings) -> None:
        device = RecordedDevice(Recording(hierarchy=TWO_WINDOWS_XML))
        snapshot = build_snapshot(device, settings=fast_settings)
        assert [r.type for r in snapshot.roots] == ["Window", "Window"]

    @pytest.mark.parametrize("scope", ["MainActivity", "org.prebid.demo.MainActivity"])
    def test_scope(self, scope: str, fast_settings: EngineSettings) -> None:
        device = RecordedDevice(Recording(activity="org.prebid.demo.MainActivity", hierarchy=TWO_WINDOWS_XML))
        snapshot = build_snapshot(device, scope=scope, settings=fast_settings)
        assert snapshot.scope == scope
        assert snapshot.root_ids == ("w0",)
        assert "w1" not in snapshot.nodes
        assert len(snapshot) == 3

    def test_unknown_scope(self, ad_device: RecordedDevice, fast_settings: EngineSettings) -> None:
        with pytest.raises(CaptureUnavailable) as exc_info:
            build_snapshot(ad_device, scope="MraidActivity", settings=fast_settings)
        assert exc_info.value.reason == "scope-not-found"
        assert exc_info.value.scope == "MraidActivity"


class TestDeepTrees:
    DEPTH = 1200

    def test_deeply_nested_dom(self, fast_settings: EngineSettings) -> None:
        xml = (
            "<hierarchy><node class='android.widget.FrameLayout' bounds='[0,0][1080,2400]'>"
            "<node class='com.google.android.gms.ads.internal.webview.zzra' bounds='[0,0][1080,300]' />"
            "</node></hierarchy>"
        )
        html = "<div>" * self.DEPTH + "<script src='pbm.js'></script>" + "</div>" * self.DEPTH
        device = RecordedDevice(Recording(hierarchy=xml, web_contents=[RecordedWebContent(html=html)]))

        snapshot = build_snapshot(device, settings=fast_settings)

        divs = of_type(snapshot, "div")
        assert len(divs) == self.DEPTH
        assert divs[0].parent == of_type(snapshot, "zzra")[0].id
        assert [d.parent for d in divs[1:]] == [d.id for d in divs[:-1]]
        [script] = of_type(snapshot, "script")
        assert script.parent == divs[-1].id
        assert "pbm.js" in divs[0].markup

    def test_deeply_nested_native_views(self, fast_settings: EngineSettings) -> None:
        views = "<node class='android.widget.LinearLayout'>" * self.DEPTH + "</node>" * self.DEPTH
        device = RecordedDevice(Recording(hierarchy=f"<hierarchy>{views}</hierarchy>"))

        snapshot = build_snapshot(device, settings=fast_settings)

        layouts = of_type(snapshot, "LinearLayout")
        assert len(layouts) == self.DEPTH
        assert layouts[0].parent == "w0"
        assert layouts[-1].children == ()
        assert [d.parent for d in layouts[1:]] == [d.id for d in layouts[:-1]]
