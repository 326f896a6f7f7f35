"""Application-under-test bridge.

This module defines the DeviceBridge protocol the snapshot builder reads
from, and AdbDevice, which talks to an Android device through ``adb``:

- app state and the resumed activity from ``dumpsys``
- the native view hierarchy from ``uiautomator dump``
- the rendered DOM of embedded web views through their DevTools socket

Every command is read-only; nothing here changes focus, scroll position or
application state.
"""

import re
import subprocess
from enum import Enum
from typing import Protocol

from view_query.core.config import EngineSettings
from view_query.core.errors import CaptureUnavailable, DeviceCommandError
from view_query.core.logging import ErrorIds, logError, logForDebugging
from view_query.core.webview import read_webview_contents
from view_query.models.element import WebContent


class AppState(str, Enum):
    """Lifecycle state of the application under test."""

    FOREGROUND = "foreground"
    BACKGROUND = "background"
    NOT_RUNNING = "not-running"
    CRASHED = "crashed"


class DeviceBridge(Protocol):
    """Read-only access to a running application's UI."""

    def app_state(self) -> AppState:
        """Report whether the application can be captured."""
        ...

    def foreground_activity(self) -> str | None:
        """Fully qualified class of the resumed activity, if known."""
        ...

    def dump_hierarchy(self, timeout: float | None = None) -> str:
        """UIAutomator XML of the current window, waiting at most ``timeout`` seconds."""
        ...

    def web_contents(self) -> list[WebContent]:
        """Rendered DOM of every attached web view."""
        ...


_FOCUS_PATTERN = re.compile(r"mCurrentFocus=Window\{[^}]*\}|mCurrentFocus=null")
_RESUMED_PATTERN = re.compile(
    r"(?:mResumedActivity|topResumedActivity|ResumedActivity)[:=]\s*"
    r"ActivityRecord\{\S+ \S+ ([\w.$]+)/([\w.$]+)"
)
_CRASH_MARKERS = ("Application Error", "Application Not Responding")
_HIERARCHY_START = re.compile(r"<\?xml|<hierarchy")


class AdbDevice:
    """DeviceBridge backed by the ``adb`` command line tool.

    Args:
        settings: Engine settings (adb path, serial, package, DevTools port).
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or EngineSettings()

    def _command(self, *args: str) -> list[str]:
        command = [self.settings.adb_path]
        if self.settings.serial:
            command += ["-s", self.settings.serial]
        return command + list(args)

    def _adb(self, *args: str, check: bool = True, timeout: float | None = None) -> str:
        """Run an adb command and return its stdout.

        Raises:
            DeviceCommandError: If the command exits non-zero and ``check`` is set.
            CaptureUnavailable: If adb is missing or the command times out.
        """
        command = self._command(*args)
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.settings.capture_timeout if timeout is None else timeout,
            )
        except FileNotFoundError as e:
            logError(ErrorIds.ADB_COMMAND_FAILED, f"adb not found at {self.settings.adb_path!r}")
            raise CaptureUnavailable("adb-unavailable", str(e)) from e
        except subprocess.TimeoutExpired as e:
            logError(ErrorIds.ADB_COMMAND_FAILED, f"Timed out running {' '.join(command)!r}")
            raise CaptureUnavailable("timeout", f"{' '.join(command)!r} timed out") from e

        if check and completed.returncode != 0:
            logError(
                ErrorIds.ADB_COMMAND_FAILED,
                "adb command failed",
                extra={"command": " ".join(command), "returncode": completed.returncode},
            )
            raise DeviceCommandError(command, completed.returncode, completed.stderr)
        return completed.stdout

    def _pid(self) -> str | None:
        if not self.settings.package:
            return None
        out = self._adb("shell", "pidof", self.settings.package, check=False).strip()
        return out.split()[0] if out else None

    def app_state(self) -> AppState:
        package = self.settings.package
        if package and self._pid() is None:
            return AppState.NOT_RUNNING

        window_dump = self._adb("shell", "dumpsys", "window", "windows")
        focus_match = _FOCUS_PATTERN.search(window_dump)
        focus = focus_match.group(0) if focus_match else ""
        if any(marker in focus for marker in _CRASH_MARKERS):
            return AppState.CRASHED
        if package is None:
            return AppState.FOREGROUND if focus and not focus.endswith("null") else AppState.BACKGROUND
        # Window titles read "<package>/<activity>" or a bare "<package>"
        owner = re.search(rf"\s{re.escape(package)}[/}}]", focus)
        return AppState.FOREGROUND if owner else AppState.BACKGROUND

    def foreground_activity(self) -> str | None:
        dump = self._adb("shell", "dumpsys", "activity", "activities")
        match = _RESUMED_PATTERN.search(dump)
        if not match:
            return None
        package, activity = match.group(1), match.group(2)
        return package + activity if activity.startswith(".") else activity

    def dump_hierarchy(self, timeout: float | None = None) -> str:
        out = self._adb("exec-out", "uiautomator", "dump", "/dev/tty", timeout=timeout)
        start = _HIERARCHY_START.search(out)
        end = out.rfind("</hierarchy>")
        if not start or end == -1:
            logError(ErrorIds.HIERARCHY_PARSE_FAILED, "uiautomator produced no hierarchy")
            raise CaptureUnavailable("hierarchy-unavailable", out.strip()[:200])
        return out[start.start():end + len("</hierarchy>")]

    def _devtools_socket(self) -> str | None:
        """Name of the web view DevTools socket of the application process."""
        pid = self._pid()
        sockets = self._adb("shell", "cat", "/proc/net/unix", check=False)
        names = re.findall(r"@(webview_devtools_remote_(\d+))", sockets)
        for name, socket_pid in names:
            if pid is None or socket_pid == pid:
                return name
        return None

    def web_contents(self) -> list[WebContent]:
        socket = self._devtools_socket()
        if socket is None:
            logForDebugging("No web view DevTools socket found")
            return []

        port = self.settings.devtools_port
        self._adb("forward", f"tcp:{port}", f"localabstract:{socket}")
        try:
            return read_webview_contents(
                f"http://127.0.0.1:{port}",
                timeout=self.settings.devtools_timeout,
            )
        finally:
            self._adb("forward", "--remove", f"tcp:{port}", check=False)
