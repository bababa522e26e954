"""
Tool registry: name → (handler, argument check).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .types import HandlerFunc

CheckFunc = Callable[[dict[str, Any]], "str | None"]


class ToolRegistry:
    """Registry for tool handlers."""

    def __init__(self) -> None:
        # name -> (handler, check)
        self._handlers: dict[str, tuple[HandlerFunc, CheckFunc | None]] = {}

    def register(self, name: str, handler: HandlerFunc, check: CheckFunc | None = None) -> None:
        """Register a tool handler."""
        self._handlers[name] = (handler, check)

    def register_many(self, handlers: dict[str, tuple[HandlerFunc, CheckFunc | None]]) -> None:
        """Register multiple handlers at once."""
        self._handlers.update(handlers)

    def get(self, name: str) -> tuple[HandlerFunc, CheckFunc | None] | None:
        """Get handler and its argument check."""
        return self._handlers.get(name)

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> ToolRegistry:
    """Create registry with every tool handler registered."""
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry()
    registry.register_many(ALL_HANDLERS)
    return registry
