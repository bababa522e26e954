"""
Utility tool handlers - wait, save_unmarked_screenshot, get_content.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from ...annotation import REMOVE_OVERLAYS_JS
from ...content import sanitize_html, truncate_tokens
from ..types import ToolContext, ToolResult
from .args import check_seconds, optional_string

logger = logging.getLogger("mcp.steel.handlers")

# Patched in tests so bounded waits do not actually sleep.
sleep: Callable[[float], None] = time.sleep


def handle_wait(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    if problem := check_seconds(args):
        return ToolResult.error(problem)
    seconds = float(args["seconds"])
    sleep(seconds)
    return ToolResult.text(f"Waited {seconds:g} seconds")


def check_screenshot(args: dict[str, Any]) -> str | None:
    return optional_string(args, "resourceName")


def handle_save_unmarked_screenshot(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    if problem := check_screenshot(args):
        return ToolResult.error(problem)
    ctx.page.eval_js(REMOVE_OVERLAYS_JS)
    png = ctx.page.screenshot()
    try:
        shot = ctx.store.put(args.get("resourceName"), png)
    except ValueError as exc:
        return ToolResult.error(f"Screenshot could not be stored: {exc}")
    logger.info("screenshot_saved name=%s size=%dx%d", shot.name, shot.width, shot.height)
    return ToolResult.text(
        f"Unmarked screenshot saved as resource {shot.uri}",
        data={"name": shot.name, "uri": shot.uri},
    )


def check_content(args: dict[str, Any]) -> str | None:
    return optional_string(args, "selector")


def handle_get_content(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    if problem := check_content(args):
        return ToolResult.error(problem)
    selector = (args.get("selector") or "").strip() or None
    html = ctx.page.get_content(selector)
    if selector and not html:
        return ToolResult.error(f"No elements found matching selector {selector!r}")
    sanitized = sanitize_html(html)
    text, truncated = truncate_tokens(sanitized, ctx.config.max_content_tokens)
    logger.info(
        "content_extracted original=%d sanitized=%d returned=%d truncated=%s",
        len(html),
        len(sanitized),
        len(text),
        truncated,
    )
    return ToolResult.text(f"Extracted content: {text}", data={"truncated": truncated})


UTILITY_HANDLERS: dict[str, tuple] = {
    "wait": (handle_wait, check_seconds),
    "save_unmarked_screenshot": (handle_save_unmarked_screenshot, check_screenshot),
    "get_content": (handle_get_content, check_content),
}
