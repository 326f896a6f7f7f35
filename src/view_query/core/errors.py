"""Exception taxonomy for the query engine.

Every error here is terminal for the current query. An empty match or a
supported property with no value is a normal outcome and never raises.
"""


class ViewQueryError(Exception):
    """Base class for all query engine errors."""


class CaptureUnavailable(ViewQueryError):
    """Raised when a snapshot cannot be built for the target application."""

    def __init__(self, reason: str, detail: str = "", scope: str | None = None) -> None:
        self.reason = reason
        self.detail = detail
        self.scope = scope
        message = f"Cannot capture the view hierarchy ({reason})"
        if scope:
            message += f" in scope {scope!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class DeviceCommandError(CaptureUnavailable):
    """Raised when a device bridge command exits unsuccessfully."""

    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            "device-command-failed",
            detail=f"{' '.join(command)!r} exited with {returncode}: {stderr.strip()}",
        )


class MalformedSelector(ViewQueryError):
    """Raised when selector text does not follow the query grammar."""

    def __init__(self, selector: str, fragment: str, position: int, reason: str = "") -> None:
        self.selector = selector
        self.fragment = fragment
        self.position = position
        self.reason = reason
        message = f"Malformed selector {selector!r}: unexpected {fragment!r} at position {position}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class PropertyUnsupported(ViewQueryError):
    """Raised when an inspected property does not apply to the node type."""

    def __init__(self, node_id: str, type_tag: str, property_name: str) -> None:
        self.node_id = node_id
        self.type_tag = type_tag
        self.property_name = property_name
        super().__init__(
            f"Property {property_name!r} is not supported by element {node_id!r} "
            f"of type {type_tag!r}"
        )
