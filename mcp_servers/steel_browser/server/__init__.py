"""Server package for the Steel browser MCP server.

Keep this package import light: the session manager imports
`mcp_servers.steel_browser.server.redaction`, so nothing here may pull in the
dispatcher or handlers eagerly.
"""

from __future__ import annotations

from typing import Any

__all__ = ["ToolRegistry", "create_default_registry"]


def __getattr__(name: str) -> Any:  # pragma: no cover
    if name in {"ToolRegistry", "create_default_registry"}:
        from .registry import ToolRegistry, create_default_registry

        return {"ToolRegistry": ToolRegistry, "create_default_registry": create_default_registry}[name]
    raise AttributeError(name)
