"""Logging infrastructure for the query engine.

Errors carry an ``ErrorIds`` tag so failed captures and queries can be
grepped out of test logs. Messages go to stderr, leaving stdout to the CLI's
own output; ``enable_file_logging`` adds a full debug log next to it.
"""

import logging
import sys
from typing import Any

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ErrorIds:
    """Constants for error IDs used in logging and error tracking."""

    # Snapshot capture errors
    APP_NOT_CAPTURABLE = "ERR_APP_NOT_CAPTURABLE"
    CAPTURE_TIMEOUT = "ERR_CAPTURE_TIMEOUT"
    SCOPE_NOT_FOUND = "ERR_SCOPE_NOT_FOUND"
    HIERARCHY_PARSE_FAILED = "ERR_HIERARCHY_PARSE"

    # Device bridge errors
    ADB_COMMAND_FAILED = "ERR_ADB_COMMAND"
    DEVTOOLS_UNAVAILABLE = "ERR_DEVTOOLS"
    RECORDING_INVALID = "ERR_RECORDING"

    # Query errors
    MALFORMED_SELECTOR = "ERR_MALFORMED_SELECTOR"
    CSS_PREDICATE_INVALID = "ERR_CSS_PREDICATE"

    # Inspection errors
    PROPERTY_UNSUPPORTED = "ERR_PROPERTY_UNSUPPORTED"
    CREATIVE_NOT_RENDERED = "ERR_CREATIVE_NOT_RENDERED"

    KEYBOARD_INTERRUPT = "KEYBOARD_INTERRUPT"


_logger: logging.Logger | None = None


def _get_logger() -> logging.Logger:
    """Get or create the ``view_query`` logger."""
    global _logger
    if _logger is None:
        _logger = logging.getLogger("view_query")
        _logger.setLevel(logging.DEBUG)
        _logger.propagate = False

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        _logger.addHandler(console_handler)

    return _logger


def _format(message: str, extra: dict[str, Any] | None) -> str:
    if not extra:
        return message
    return f"{message} | " + ", ".join(f"{k}={v}" for k, v in extra.items())


def logError(
    error_id: str,
    message: str,
    exc_info: bool = False,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log an error tagged with its ErrorIds constant.

    Args:
        error_id: The error ID constant from ErrorIds.
        message: Human-readable error message.
        exc_info: If True, include exception info in the log.
        extra: Optional additional context as key-value pairs.
    """
    _get_logger().error(_format(f"[{error_id}] {message}", extra), exc_info=exc_info)


def logForDebugging(
    message: str,
    level: str = "debug",
    extra: dict[str, Any] | None = None,
) -> None:
    """Log a diagnostic message at ``level`` ("debug", "info", "warning" or "error")."""
    log_level = getattr(logging, level.upper(), logging.DEBUG)
    _get_logger().log(log_level, _format(message, extra))


def logEvent(event_name: str, properties: dict[str, Any] | None = None) -> None:
    """Log a capture or check milestone, e.g. "snapshot_captured"."""
    _get_logger().info(_format(f"[EVENT] {event_name}", properties))


def set_log_level(level: str | int) -> None:
    """Set the console log level.

    Args:
        level: Log level as string ("debug", "info", "warning", "error")
               or int (logging.DEBUG, logging.INFO, etc.).
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _get_logger().handlers[0].setLevel(level)


def enable_file_logging(filepath: str) -> None:
    """Additionally write every message, debug included, to ``filepath``."""
    file_handler = logging.FileHandler(filepath, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    _get_logger().addHandler(file_handler)
