"""
Navigation tool handlers - navigate, search, go_back.
"""

from __future__ import annotations

import logging
import re
from contextlib import suppress
from typing import Any
from urllib.parse import quote

from ...page import NavigationError
from ...session_cdp import CdpError
from ..redaction import redact_url
from ..types import ToolContext, ToolResult
from .args import first_problem, is_number, missing_string, optional_string

logger = logging.getLogger("mcp.steel.handlers")

SEARCH_URL = "https://www.google.com/search?q={query}"
DEFAULT_NAVIGATION_TIMEOUT_MS = 60_000
WAIT_UNTIL_VALUES = ("load", "domcontentloaded")

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_OPAQUE_SCHEMES = ("about:", "data:", "javascript:", "blob:")


def normalize_url(url: str) -> str:
    """Prefix ``https://`` when ``url`` carries no scheme."""
    url = url.strip()
    if _SCHEME_RE.match(url) or url.lower().startswith(_OPAQUE_SCHEMES):
        return url
    return f"https://{url}"


def _current_url(ctx: ToolContext) -> str:
    with suppress(CdpError):
        return ctx.page.get_url() or "unknown"
    return "unknown"


def _goto(ctx: ToolContext, url: str, *, timeout_ms: float, wait_until: str) -> ToolResult | str:
    try:
        return ctx.page.navigate(url, timeout=timeout_ms / 1000.0, wait_until=wait_until)
    except NavigationError as exc:
        logger.info("navigation_failed url=%s error=%s", redact_url(url), exc)
        return ToolResult.error(f"Navigation failed: {exc}. Current URL: {_current_url(ctx)}")


# ─────────────────────────────────────────────────────────────────────────────
# navigate
# ─────────────────────────────────────────────────────────────────────────────


def check_navigate(args: dict[str, Any]) -> str | None:
    problem = first_problem(missing_string(args, "url"), optional_string(args, "waitUntil"))
    if problem:
        return problem
    timeout = args.get("timeout")
    if timeout is not None and (not is_number(timeout) or timeout <= 0):
        return f"Argument timeout must be a positive number of milliseconds, got {timeout!r}"
    wait_until = args.get("waitUntil")
    if wait_until is not None and wait_until not in WAIT_UNTIL_VALUES:
        return f"Argument waitUntil must be one of {', '.join(WAIT_UNTIL_VALUES)}, got {wait_until!r}"
    return None


def handle_navigate(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    if problem := check_navigate(args):
        return ToolResult.error(problem)
    url = normalize_url(args["url"])
    outcome = _goto(
        ctx,
        url,
        timeout_ms=float(args.get("timeout") or DEFAULT_NAVIGATION_TIMEOUT_MS),
        wait_until=args.get("waitUntil") or "domcontentloaded",
    )
    if isinstance(outcome, ToolResult):
        return outcome
    return ToolResult.text(f"Navigated to {outcome}", data={"url": outcome})


# ─────────────────────────────────────────────────────────────────────────────
# search
# ─────────────────────────────────────────────────────────────────────────────


def check_search(args: dict[str, Any]) -> str | None:
    return missing_string(args, "query")


def search_url(query: str) -> str:
    return SEARCH_URL.format(query=quote(query, safe=""))


def handle_search(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    if problem := check_search(args):
        return ToolResult.error(problem)
    query = args["query"]
    outcome = _goto(ctx, search_url(query), timeout_ms=DEFAULT_NAVIGATION_TIMEOUT_MS, wait_until="domcontentloaded")
    if isinstance(outcome, ToolResult):
        return outcome
    return ToolResult.text(f"Searched for '{query}'", data={"url": outcome})


# ─────────────────────────────────────────────────────────────────────────────
# go_back
# ─────────────────────────────────────────────────────────────────────────────


def handle_go_back(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    url = ctx.page.go_back()
    if url is None:
        return ToolResult.error("Cannot go back: no previous page in history")
    return ToolResult.text(f"Navigated back to {url}", data={"url": url})


NAVIGATION_HANDLERS: dict[str, tuple] = {
    "navigate": (handle_navigate, check_navigate),
    "search": (handle_search, check_search),
    "go_back": (handle_go_back, None),
}
