"""Engine configuration.

Settings are read from ``VIEW_QUERY_*`` environment variables and may be
overridden by CLI flags.
"""

import os

from pydantic import BaseModel, ConfigDict, field_validator

# Web view classes that never report a "WebView" suffix in the hierarchy
DEFAULT_WEBVIEW_CLASSES: tuple[str, ...] = ("zzra",)


class EngineSettings(BaseModel):
    """Configuration for device access and snapshot capture.

    Attributes:
        adb_path: Path to the adb executable.
        serial: Device serial passed to ``adb -s`` (None uses the only device).
        package: Application package under test.
        capture_timeout: Seconds to wait for a settled hierarchy.
        poll_interval: Seconds between two hierarchy dumps while settling.
        devtools_port: Local port forwarded to the web view DevTools socket.
        devtools_timeout: Seconds allowed for the DevTools connection.
        webview_classes: Extra class names treated as web view hosts.
    """

    model_config = ConfigDict(frozen=True)

    adb_path: str = "adb"
    serial: str | None = None
    package: str | None = None
    capture_timeout: float = 10.0
    poll_interval: float = 0.5
    devtools_port: int = 9222
    devtools_timeout: float = 5.0
    webview_classes: tuple[str, ...] = DEFAULT_WEBVIEW_CLASSES

    @field_validator("capture_timeout", "poll_interval", "devtools_timeout")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        """Validate that durations are positive."""
        if v <= 0:
            raise ValueError(f"must be positive, got {v}")
        return v

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from ``VIEW_QUERY_*`` environment variables."""
        values: dict[str, object] = {}
        env = os.environ
        if "VIEW_QUERY_ADB" in env:
            values["adb_path"] = env["VIEW_QUERY_ADB"]
        if env.get("VIEW_QUERY_SERIAL") or env.get("ANDROID_SERIAL"):
            values["serial"] = env.get("VIEW_QUERY_SERIAL") or env.get("ANDROID_SERIAL")
        if env.get("VIEW_QUERY_PACKAGE"):
            values["package"] = env["VIEW_QUERY_PACKAGE"]
        if env.get("VIEW_QUERY_TIMEOUT"):
            values["capture_timeout"] = float(env["VIEW_QUERY_TIMEOUT"])
        if env.get("VIEW_QUERY_POLL_INTERVAL"):
            values["poll_interval"] = float(env["VIEW_QUERY_POLL_INTERVAL"])
        if env.get("VIEW_QUERY_DEVTOOLS_PORT"):
            values["devtools_port"] = int(env["VIEW_QUERY_DEVTOOLS_PORT"])
        if env.get("VIEW_QUERY_WEBVIEW_CLASSES"):
            extra = [c.strip() for c in env["VIEW_QUERY_WEBVIEW_CLASSES"].split(",") if c.strip()]
            values["webview_classes"] = DEFAULT_WEBVIEW_CLASSES + tuple(extra)
        return cls.model_validate(values)

    def with_overrides(self, **overrides: object) -> "EngineSettings":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return self.model_validate({**self.model_dump(), **changes})
