"""View query core components."""

from view_query.core.config import EngineSettings
from view_query.core.device import AdbDevice, AppState, DeviceBridge
from view_query.core.errors import (
    CaptureUnavailable,
    DeviceCommandError,
    MalformedSelector,
    PropertyUnsupported,
    ViewQueryError,
)
from view_query.core.evaluator import evaluate
from view_query.core.parser import parse, to_text
from view_query.core.recording import RecordedDevice, Recording, record

__all__ = [
    "AdbDevice",
    "AppState",
    "CaptureUnavailable",
    "DeviceBridge",
    "DeviceCommandError",
    "EngineSettings",
    "MalformedSelector",
    "PropertyUnsupported",
    "RecordedDevice",
    "Recording",
    "ViewQueryError",
    "evaluate",
    "parse",
    "record",
    "to_text",
]
