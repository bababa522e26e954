"""
Type definitions for MCP server responses and handlers.
"""

from __future__ import annotations

import base64
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import SteelConfig
    from ..page import BrowserPage
    from ..store import ResourceStore


@dataclass(slots=True)
class ToolContent:
    """Single content item in tool response."""

    type: str  # "text" or "image"
    text: str | None = None
    data: str | None = None  # base64 for images
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP content format."""
        if self.type == "image":
            return {"type": "image", "data": self.data, "mimeType": self.mime_type}
        return {"type": "text", "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """Result of a tool execution."""

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False
    # In-process payload for tests and logging; not part of the MCP wire format.
    data: Any | None = None

    @classmethod
    def text(cls, text: str, data: Any | None = None) -> ToolResult:
        """Create result with single text content."""
        return cls(content=[ToolContent(type="text", text=text or "")], data=data)

    @classmethod
    def error(cls, message: str) -> ToolResult:
        """Create error result; the message is shown to the caller verbatim."""
        return cls(content=[ToolContent(type="text", text=message)], is_error=True)

    def append_image(self, png: bytes, mime_type: str = "image/png") -> None:
        self.content.append(
            ToolContent(type="image", data=base64.b64encode(png).decode("ascii"), mime_type=mime_type)
        )

    @property
    def images(self) -> list[ToolContent]:
        return [c for c in self.content if c.type == "image"]

    @property
    def first_text(self) -> str:
        return next((c.text or "" for c in self.content if c.type == "text"), "")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``tools/call`` result object."""
        return {"content": self.to_content_list(), "isError": self.is_error}

    def to_content_list(self) -> list[dict[str, Any]]:
        """Convert to MCP content list format."""
        return [c.to_dict() for c in self.content]


@dataclass(slots=True)
class ToolContext:
    """What a handler may touch: the live page plus server-owned state."""

    page: BrowserPage
    config: SteelConfig
    store: ResourceStore


HandlerFunc = Callable[[ToolContext, dict[str, Any]], ToolResult]
