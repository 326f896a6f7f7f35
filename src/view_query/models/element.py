"""Element models for the captured view hierarchy.

This module defines the ElementNode model which represents one UI element
at snapshot time, either a native view or a DOM node rendered inside an
embedded web view.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator


class Bounds(BaseModel):
    """Screen rectangle of an element in pixels.

    Attributes:
        left: Left edge.
        top: Top edge.
        right: Right edge (must not be left of ``left``).
        bottom: Bottom edge (must not be above ``top``).
    """

    model_config = ConfigDict(frozen=True)

    left: int
    top: int
    right: int
    bottom: int

    @field_validator("right")
    @classmethod
    def right_not_before_left(cls, v: int, info: object) -> int:
        """Validate that the rectangle has a non-negative width."""
        left = getattr(info, "data", {}).get("left")
        if left is not None and v < left:
            raise ValueError(f"right edge {v} is left of {left}")
        return v

    @field_validator("bottom")
    @classmethod
    def bottom_not_above_top(cls, v: int, info: object) -> int:
        """Validate that the rectangle has a non-negative height."""
        top = getattr(info, "data", {}).get("top")
        if top is not None and v < top:
            raise ValueError(f"bottom edge {v} is above {top}")
        return v

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def to_text(self) -> str:
        """Render in UIAutomator notation, e.g. ``[0,0][1080,2400]``."""
        return f"[{self.left},{self.top}][{self.right},{self.bottom}]"


class WebContent(BaseModel):
    """Embedded-content handle attached to a web view host.

    Attributes:
        engine: The web view variant hosting the content (class name).
        url: URL of the document loaded in the web view.
        html: Serialization of the rendered DOM at capture time.
        bounds: Screen rectangle reported by the web view, if known.
    """

    model_config = ConfigDict(frozen=True)

    engine: str
    url: str = ""
    html: str
    bounds: Bounds | None = None


class ElementNode(BaseModel):
    """One UI element inside a snapshot.

    Children are referenced by id; the snapshot owns every node.

    Attributes:
        id: Identifier, unique within its snapshot.
        type: Type tag (native view class, activity class or HTML tag name).
        origin: Whether the node is a native view or a web DOM node.
        parent: Id of the parent node (None for top-level containers).
        children: Ordered ids of the child nodes.
        attributes: Attribute name to string value.
        bounds: Screen rectangle, when known.
        content: Embedded web content (only on web view hosts).
        markup: Serialized outer HTML (only on web DOM nodes).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    origin: Literal["native", "web"] = "native"
    parent: str | None = None
    children: tuple[str, ...] = ()
    attributes: dict[str, str] = {}
    bounds: Bounds | None = None
    content: WebContent | None = None
    markup: str | None = None

    @field_validator("id", "type")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        """Validate that id and type are not empty strings."""
        if not v:
            raise ValueError("must not be empty")
        return v

    @property
    def simple_type(self) -> str:
        """The type tag without its package prefix."""
        return self.type.rsplit(".", 1)[-1]

    @property
    def hosts_web_content(self) -> bool:
        return self.content is not None

    def matches_type(self, type_tag: str) -> bool:
        """Check whether this node's type tag matches ``type_tag``.

        ``*`` matches everything; otherwise the full class name or its simple
        name must equal the tag. HTML tags compare case-insensitively.
        """
        if type_tag == "*":
            return True
        if self.origin == "web":
            return self.type == type_tag.lower()
        return type_tag in (self.type, self.simple_type)
