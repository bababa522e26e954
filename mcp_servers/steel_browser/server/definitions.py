"""Tool schema definitions."""

from __future__ import annotations

from typing import Any

_SCHEMA = "http://json-schema.org/draft-07/schema#"

NAVIGATE_TOOL: dict[str, Any] = {
    "name": "navigate",
    "description": """Navigate the browser to a URL.
USAGE:
- navigate(url="https://example.com")
- navigate(url="example.com")  → https:// is added when no scheme is given
- navigate(url="https://slow.site", timeout=90000, waitUntil="load")""",
    "inputSchema": {
        "$schema": _SCHEMA,
        "type": "object",
        "properties": {
            "url": {"type": "string", "description": "URL to open"},
            "timeout": {
                "type": "number",
                "default": 60000,
                "description": "Navigation timeout in milliseconds (default: 60000)",
            },
            "waitUntil": {
                "type": "string",
                "enum": ["load", "domcontentloaded"],
                "default": "domcontentloaded",
                "description": "When navigation counts as finished (default: domcontentloaded)",
            },
        },
        "required": ["url"],
    },
}

SEARCH_TOOL: dict[str, Any] = {
    "name": "search",
    "description": "Search the web for a query and open the results page.",
    "inputSchema": {
        "$schema": _SCHEMA,
        "type": "object",
        "properties": {"query": {"type": "string", "description": "Text to search for"}},
        "required": ["query"],
    },
}

CLICK_TOOL: dict[str, Any] = {
    "name": "click",
    "description": """Click the element carrying a numbered label in the last screenshot.
Links that would open a new tab are opened in the current page instead.""",
    "inputSchema": {
        "$schema": _SCHEMA,
        "type": "object",
        "properties": {"label": {"type": "number", "description": "Label number shown on the element"}},
        "required": ["label"],
    },
}

TYPE_TOOL: dict[str, Any] = {
    "name": "type",
    "description": """Type text into a labeled input field.
USAGE:
- type(label=3, text="hello")  → appends to the current value
- type(label=3, text="hello", replaceText=true)  → replaces the current value""",
    "inputSchema": {
        "$schema": _SCHEMA,
        "type": "object",
        "properties": {
            "label": {"type": "number", "description": "Label number of the input"},
            "text": {"type": "string", "description": "Text to type"},
            "replaceText": {
                "type": "boolean",
                "default": False,
                "description": "Replace the field's current value instead of appending (default: false)",
            },
        },
        "required": ["label", "text"],
    },
}


def _scroll_tool(name: str, direction: str) -> dict[str, Any]:
    return {
        "name": name,
        "description": f"Scroll the page {direction} by a number of pixels, or by one viewport height.",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {
                "pixels": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Pixels to scroll (default: one viewport height)",
                }
            },
        },
    }


SCROLL_DOWN_TOOL = _scroll_tool("scroll_down", "down")
SCROLL_UP_TOOL = _scroll_tool("scroll_up", "up")

GO_BACK_TOOL: dict[str, Any] = {
    "name": "go_back",
    "description": "Go back to the previous page in browser history.",
    "inputSchema": {"$schema": _SCHEMA, "type": "object", "properties": {}},
}

WAIT_TOOL: dict[str, Any] = {
    "name": "wait",
    "description": "Wait for a number of seconds (0-10) to let the page settle.",
    "inputSchema": {
        "$schema": _SCHEMA,
        "type": "object",
        "properties": {
            "seconds": {"type": "number", "minimum": 0, "maximum": 10, "description": "Seconds to wait (0-10)"}
        },
        "required": ["seconds"],
    },
}

SAVE_UNMARKED_SCREENSHOT_TOOL: dict[str, Any] = {
    "name": "save_unmarked_screenshot",
    "description": """Capture the page without label overlays and store it as a resource.
The image is readable afterwards as screenshot://<resourceName>.""",
    "inputSchema": {
        "$schema": _SCHEMA,
        "type": "object",
        "properties": {
            "resourceName": {
                "type": "string",
                "description": "Name to store the screenshot under (default: generated from the time)",
            }
        },
    },
}

GET_CONTENT_TOOL: dict[str, Any] = {
    "name": "get_content",
    "description": """Extract the HTML content of the current page, whitespace-collapsed and token-limited.
Only pass a selector when you are sure the matching elements hold what you need.""",
    "inputSchema": {
        "$schema": _SCHEMA,
        "type": "object",
        "properties": {
            "selector": {
                "type": "string",
                "description": "CSS selector to extract (default: the whole page)",
            }
        },
    },
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    NAVIGATE_TOOL,
    SEARCH_TOOL,
    CLICK_TOOL,
    TYPE_TOOL,
    SCROLL_DOWN_TOOL,
    SCROLL_UP_TOOL,
    GO_BACK_TOOL,
    WAIT_TOOL,
    SAVE_UNMARKED_SCREENSHOT_TOOL,
    GET_CONTENT_TOOL,
]
