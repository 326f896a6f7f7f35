"""Recorded screens for offline queries.

A recording is a YAML document holding everything a DeviceBridge reports::

    state: foreground
    activity: org.prebid.demo.MraidActivity
    hierarchy: |
      <?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
      <hierarchy rotation="0"> ... </hierarchy>
    web_contents:
      - url: https://ads.example/creative
        html: "<html><body><script src='pbm.js'></script></body></html>"
        bounds: [0, 240, 1080, 1900]

``hierarchy_file`` may replace ``hierarchy`` with a path relative to the
recording.
"""

from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from view_query.core.device import AppState, DeviceBridge
from view_query.core.errors import CaptureUnavailable
from view_query.core.logging import ErrorIds, logError, logEvent
from view_query.core.webview import DEFAULT_ENGINE
from view_query.models.element import Bounds, WebContent


class RecordedWebContent(BaseModel):
    """One web view document in a recording."""

    model_config = ConfigDict(frozen=True)

    url: str = ""
    html: str
    engine: str = DEFAULT_ENGINE
    bounds: tuple[int, int, int, int] | None = None

    def to_content(self) -> WebContent:
        bounds = None
        if self.bounds is not None:
            left, top, right, bottom = self.bounds
            bounds = Bounds(left=left, top=top, right=right, bottom=bottom)
        return WebContent(engine=self.engine, url=self.url, html=self.html, bounds=bounds)


class Recording(BaseModel):
    """A captured screen: app state, activity, hierarchy and web views."""

    model_config = ConfigDict(frozen=True)

    state: AppState = AppState.FOREGROUND
    activity: str | None = None
    hierarchy: str = ""
    web_contents: list[RecordedWebContent] = []

    @field_validator("state", mode="before")
    @classmethod
    def normalize_state(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class RecordedDevice:
    """DeviceBridge that replays a Recording."""

    def __init__(self, recording: Recording) -> None:
        self.recording = recording

    @classmethod
    def load(cls, path: str | Path) -> "RecordedDevice":
        """Load a recording from a YAML file.

        Raises:
            CaptureUnavailable: If the file cannot be read or is not a valid recording.
        """
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            if not isinstance(data, dict):
                raise ValueError("recording must be a mapping")
            hierarchy_file = data.pop("hierarchy_file", None)
            if hierarchy_file:
                data["hierarchy"] = (path.parent / hierarchy_file).read_text(encoding="utf-8")
            recording = Recording.model_validate(data)
        except (OSError, yaml.YAMLError, ValueError, ValidationError) as e:
            logError(ErrorIds.RECORDING_INVALID, f"Cannot load recording {str(path)!r}: {e}")
            raise CaptureUnavailable("recording-invalid", str(e)) from e
        return cls(recording)

    def app_state(self) -> AppState:
        return self.recording.state

    def foreground_activity(self) -> str | None:
        return self.recording.activity

    def dump_hierarchy(self, timeout: float | None = None) -> str:
        if not self.recording.hierarchy.strip():
            raise CaptureUnavailable("hierarchy-unavailable", "recording has no hierarchy")
        return self.recording.hierarchy

    def web_contents(self) -> list[WebContent]:
        return [c.to_content() for c in self.recording.web_contents]


def record(device: DeviceBridge, path: str | Path) -> Recording:
    """Capture the current screen of ``device`` into a YAML recording file."""
    state = device.app_state()
    activity = device.foreground_activity()
    hierarchy = device.dump_hierarchy()
    contents = device.web_contents()
    recording = Recording(
        state=state,
        activity=activity,
        hierarchy=hierarchy,
        web_contents=[
            RecordedWebContent(
                url=c.url,
                html=c.html,
                engine=c.engine,
                bounds=(c.bounds.left, c.bounds.top, c.bounds.right, c.bounds.bottom)
                if c.bounds
                else None,
            )
            for c in contents
        ],
    )
    Path(path).write_text(
        yaml.safe_dump(recording.model_dump(mode="json"), sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    logEvent("screen_recorded", {"path": str(path), "web_contents": len(contents)})
    return recording
