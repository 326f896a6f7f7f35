"""Shared test fixtures for view_query tests."""

import pytest

from view_query.core.config import EngineSettings
from view_query.core.device import AppState
from view_query.core.recording import RecordedDevice, RecordedWebContent, Recording
from view_query.models.snapshot import Snapshot
from view_query.tools.snapshot import build_snapshot

# Three PublisherAdView frames, each hosting a zzra web view, between a title and a button
AD_SCREEN_XML = """\
<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<hierarchy rotation="0">
  <node index="0" text="" resource-id="" class="android.widget.FrameLayout" package="org.prebid.demo" content-desc="" clickable="false" enabled="true" bounds="[0,0][1080,2400]">
    <node index="0" text="Prebid Demo" resource-id="org.prebid.demo:id/title" class="android.widget.TextView" package="org.prebid.demo" content-desc="" clickable="false" enabled="true" bounds="[0,0][1080,200]" />
    <node index="1" text="" resource-id="org.prebid.demo:id/adFrame0" class="com.google.android.gms.ads.doubleclick.PublisherAdView" package="org.prebid.demo" content-desc="" clickable="false" enabled="true" bounds="[0,200][1080,700]">
      <node index="0" text="" resource-id="" class="zzra" package="org.prebid.demo" content-desc="" clickable="false" enabled="true" bounds="[0,200][1080,700]" />
    </node>
    <node index="2" text="" resource-id="org.prebid.demo:id/adFrame1" class="com.google.android.gms.ads.doubleclick.PublisherAdView" package="org.prebid.demo" content-desc="" clickable="false" enabled="true" bounds="[0,700][1080,1200]">
      <node index="0" text="" resource-id="" class="zzra" package="org.prebid.demo" content-desc="" clickable="false" enabled="true" bounds="[0,700][1080,1200]" />
    </node>
    <node index="3" text="" resource-id="org.prebid.demo:id/adFrame2" class="com.google.android.gms.ads.doubleclick.PublisherAdView" package="org.prebid.demo" content-desc="" clickable="false" enabled="true" bounds="[0,1200][1080,1700]">
      <node index="0" text="" resource-id="" class="zzra" package="org.prebid.demo" content-desc="" clickable="false" enabled="true" bounds="[0,1200][1080,1700]" />
    </node>
    <node index="4" text="Load ads" resource-id="org.prebid.demo:id/load" class="android.widget.Button" package="org.prebid.demo" content-desc="" clickable="true" enabled="true" bounds="[0,1700][1080,1900]" />
  </node>
</hierarchy>
"""

BANNER_SCREEN_XML = """\
<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<hierarchy rotation="0">
  <node index="0" text="" resource-id="" class="android.widget.FrameLayout" package="org.prebid.demo" bounds="[0,0][1080,2400]">
    <node index="0" text="" resource-id="org.prebid.demo:id/banner" class="org.prebid.mobile.rendering.views.webview.HTMLBannerWebView" package="org.prebid.demo" bounds="[0,0][1080,300]" />
  </node>
</hierarchy>
"""

MRAID_SCREEN_XML = """\
<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<hierarchy rotation="0">
  <node index="0" text="" resource-id="" class="android.widget.FrameLayout" package="org.prebid.demo" bounds="[0,0][1080,2400]">
    <node index="0" text="" resource-id="" class="android.widget.RelativeLayout" package="org.prebid.demo" bounds="[0,0][1080,2400]">
      <node index="0" text="" resource-id="" class="org.prebid.mobile.rendering.mraid.MraidWebView" package="org.prebid.demo" bounds="[0,100][1080,2300]" />
      <node index="1" text="" resource-id="org.prebid.demo:id/close" class="android.widget.ImageButton" package="org.prebid.demo" content-desc="Close" clickable="true" bounds="[980,0][1080,100]" />
    </node>
  </node>
</hierarchy>
"""


def creative_html(n: int) -> str:
    return (
        "<html><head><script src=\"https://cdn.example/pbm.js\"></script></head>"
        f"<body><div class=\"ad creative\" id=\"creative-{n}\">"
        f"<a href=\"https://click.example/{n}\">Ad {n}</a></div></body></html>"
    )


@pytest.fixture
def fast_settings() -> EngineSettings:
    return EngineSettings(capture_timeout=0.5, poll_interval=0.01)


@pytest.fixture
def ad_recording() -> Recording:
    return Recording(
        state=AppState.FOREGROUND,
        activity="org.prebid.demo.MainActivity",
        hierarchy=AD_SCREEN_XML,
        web_contents=[
            RecordedWebContent(
                url=f"https://ads.example/creative/{n}",
                html=creative_html(n),
                bounds=(0, 200 + 500 * n, 1080, 700 + 500 * n),
            )
            for n in range(3)
        ],
    )


@pytest.fixture
def ad_device(ad_recording: Recording) -> RecordedDevice:
    return RecordedDevice(ad_recording)


@pytest.fixture
def ad_snapshot(ad_device: RecordedDevice, fast_settings: EngineSettings) -> Snapshot:
    return build_snapshot(ad_device, settings=fast_settings)


@pytest.fixture
def banner_device() -> RecordedDevice:
    return RecordedDevice(
        Recording(
            activity="org.prebid.demo.BannerActivity",
            hierarchy=BANNER_SCREEN_XML,
            web_contents=[RecordedWebContent(url="https://ads.example/banner", html="<div>ad</div>")],
        )
    )


@pytest.fixture
def mraid_device() -> RecordedDevice:
    return RecordedDevice(
        Recording(
            activity="org.prebid.mobile.rendering.views.interstitial.MraidActivity",
            hierarchy=MRAID_SCREEN_XML,
            web_contents=[
                RecordedWebContent(
                    url="https://ads.example/mraid",
                    html=creative_html(9),
                    bounds=(0, 100, 1080, 2300),
                )
            ],
        )
    )


@pytest.fixture
def ad_screen_xml() -> str:
    return AD_SCREEN_XML


@pytest.fixture
def creative_page():
    """Factory for creative documents carrying the pbm.js marker."""
    return creative_html
