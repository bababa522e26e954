"""
Tool handlers organized by domain.

Each handler module maps tool names to ``(handler, check)`` pairs.
Handlers follow the signature: (ctx, arguments) -> ToolResult
Checks follow the signature: (arguments) -> error message | None
"""

from .input import INPUT_HANDLERS
from .navigation import NAVIGATION_HANDLERS
from .utility import UTILITY_HANDLERS

# Aggregate all handlers
ALL_HANDLERS: dict[str, tuple] = {
    **NAVIGATION_HANDLERS,
    **INPUT_HANDLERS,
    **UTILITY_HANDLERS,
}

__all__ = [
    "ALL_HANDLERS",
    "INPUT_HANDLERS",
    "NAVIGATION_HANDLERS",
    "UTILITY_HANDLERS",
]
