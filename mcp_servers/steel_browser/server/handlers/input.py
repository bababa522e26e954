"""
Input tool handlers - click, type, scroll.

Elements are addressed by the numeric ``data-label`` the annotation script
assigns; the labels are visible in the screenshot returned with every result.
"""

from __future__ import annotations

from typing import Any

from ...page import NavigationError
from ..types import ToolContext, ToolResult
from .args import check_label, check_pixels, first_problem


def _not_found(label: int) -> ToolResult:
    return ToolResult.error(f"Could not find element with label {label}")


# ─────────────────────────────────────────────────────────────────────────────
# Click
# ─────────────────────────────────────────────────────────────────────────────


def handle_click(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    if problem := check_label(args):
        return ToolResult.error(problem)
    label = int(args["label"])
    element = ctx.page.labeled_element(label)
    if element is None:
        return _not_found(label)

    href = element.get("href")
    # New tabs are never adopted; follow the link in the page we already drive.
    if href and str(element.get("target") or "").lower() == "_blank":
        try:
            url = ctx.page.navigate(href)
        except NavigationError as exc:
            return ToolResult.error(f"Failed to open link for label {label}: {exc}")
        return ToolResult.text(f"Clicked label {label}: opened {url} in the current tab", data={"url": url})

    ctx.page.click(float(element.get("x") or 0), float(element.get("y") or 0))
    return ToolResult.text(f"Clicked element with label {label}")


# ─────────────────────────────────────────────────────────────────────────────
# Type
# ─────────────────────────────────────────────────────────────────────────────


def check_type(args: dict[str, Any]) -> str | None:
    text = args.get("text")
    text_problem = None
    if text is None:
        text_problem = "Missing required argument: text"
    elif not isinstance(text, str):
        text_problem = f"Argument text must be a string, got {type(text).__name__}"
    replace = args.get("replaceText")
    replace_problem = None
    if replace is not None and not isinstance(replace, bool):
        replace_problem = "Argument replaceText must be a boolean"
    return first_problem(check_label(args), text_problem, replace_problem)


def handle_type(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    if problem := check_type(args):
        return ToolResult.error(problem)
    label = int(args["label"])
    text: str = args["text"]
    replace = bool(args.get("replaceText", False))

    element = ctx.page.labeled_element(label)
    if element is None:
        return _not_found(label)
    current = element.get("value")
    if current is None:
        return ToolResult.error(f"Element with label {label} does not accept text input")

    value = text if replace else f"{current}{text}"
    if not ctx.page.set_labeled_value(label, value):
        return _not_found(label)
    verb = "Replaced text in" if replace else "Typed into"
    return ToolResult.text(f"{verb} element with label {label}: '{text}'", data={"value": value})


# ─────────────────────────────────────────────────────────────────────────────
# Scroll
# ─────────────────────────────────────────────────────────────────────────────


def _scroll(ctx: ToolContext, args: dict[str, Any], *, up: bool) -> ToolResult:
    if problem := check_pixels(args):
        return ToolResult.error(problem)
    pixels = args.get("pixels")
    outcome = ctx.page.scroll_by(None if pixels is None else int(pixels), up=up)
    amount = f"{int(pixels)} pixels" if pixels is not None else "one page"
    return ToolResult.text(f"Scrolled {'up' if up else 'down'} by {amount}", data=outcome)


def handle_scroll_down(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    return _scroll(ctx, args, up=False)


def handle_scroll_up(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    return _scroll(ctx, args, up=True)


INPUT_HANDLERS: dict[str, tuple] = {
    "click": (handle_click, check_label),
    "type": (handle_type, check_type),
    "scroll_down": (handle_scroll_down, check_pixels),
    "scroll_up": (handle_scroll_up, check_pixels),
}
