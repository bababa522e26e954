"""
High-level operations on the one page a session works with.

Wraps a channel (anything with ``send``/``wait_for_event``/``clear_events``)
so tests can drive it with a dummy connection.
"""

from __future__ import annotations

import base64
import json
import time
from typing import Any

from .session_cdp import CdpError, CdpTimeoutError


class NavigationError(CdpError):
    """Navigation was rejected by the browser or did not finish in time."""


_LOAD_EVENTS = {
    "load": "Page.loadEventFired",
    "domcontentloaded": "Page.domContentEventFired",
}


def _label_selector(label: int) -> str:
    return json.dumps(f'[data-label="{int(label)}"]')


class BrowserPage:
    """CDP page wrapper used by every tool handler."""

    def __init__(self, channel: Any, target_id: str = "") -> None:
        self.conn = channel
        self.target_id = target_id
        self._enabled: set[str] = set()

    def enable(self, *domains: str) -> None:
        """Enable CDP domains once per page (``Page``, ``Runtime``...)."""
        for domain in domains:
            if domain in self._enabled:
                continue
            self.conn.send(f"{domain}.enable")
            self._enabled.add(domain)

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.conn.send(method, params)

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation
    # ─────────────────────────────────────────────────────────────────────────

    def navigate(self, url: str, *, timeout: float = 60.0, wait_until: str = "domcontentloaded") -> str:
        """Navigate and wait for ``wait_until``; returns the final URL (after redirects)."""
        event = _LOAD_EVENTS.get(wait_until, _LOAD_EVENTS["domcontentloaded"])
        self.enable("Page")
        self.conn.clear_events(event)
        try:
            result = self.conn.send("Page.navigate", {"url": url}, timeout=timeout)
        except CdpTimeoutError as exc:
            raise NavigationError(f"Navigation timed out after {timeout:g}s") from exc
        error_text = result.get("errorText")
        if error_text:
            raise NavigationError(f"Navigation to {url} failed: {error_text}")
        # Same-document navigations (fragment changes) have no loader and fire no load event.
        if result.get("loaderId") and not self.wait_load(timeout, event=event):
            raise NavigationError(f"Navigation timed out after {timeout:g}s")
        state = self.eval_js("document.readyState")
        if state not in ("interactive", "complete"):
            raise NavigationError("Page did not reach interactive state")
        return self.get_url()

    def wait_load(self, timeout: float = 10.0, *, event: str = "Page.loadEventFired") -> bool:
        """Wait for page load event."""
        return self.conn.wait_for_event(event, timeout) is not None

    def go_back(self, timeout: float = 10.0) -> str | None:
        """Navigate back in history; ``None`` when there is no previous entry."""
        self.enable("Page")
        history = self.conn.send("Page.getNavigationHistory")
        index = int(history.get("currentIndex") or 0)
        entries = history.get("entries") or []
        if index <= 0 or index >= len(entries):
            return None
        previous = entries[index - 1]
        self.conn.clear_events("Page.loadEventFired")
        self.conn.send("Page.navigateToHistoryEntry", {"entryId": previous["id"]})
        self.wait_load(timeout)
        return self.get_url()

    # ─────────────────────────────────────────────────────────────────────────
    # JavaScript
    # ─────────────────────────────────────────────────────────────────────────

    def eval_js(self, expression: str) -> Any:
        """Evaluate JavaScript and return result (``undefined``/``null`` map to ``None``)."""
        self.enable("Runtime")
        result = self.conn.send(
            "Runtime.evaluate",
            {
                "expression": expression,
                "returnByValue": True,
                "awaitPromise": True,
            },
        )
        details = result.get("exceptionDetails")
        if isinstance(details, dict):
            exc = details.get("exception") or {}
            message = exc.get("description") if isinstance(exc, dict) else None
            raise CdpError(f"Script evaluation failed: {message or details.get('text') or 'unknown error'}")
        value = result.get("result")
        if not isinstance(value, dict):
            return None
        if value.get("type") == "undefined":
            return None
        if value.get("type") == "object" and value.get("subtype") == "null":
            return None
        return value.get("value")

    def get_url(self) -> str:
        """Get current page URL."""
        return self.eval_js("window.location.href") or ""

    def add_script_on_new_document(self, source: str) -> str:
        """Register ``source`` to run in every new document of this page."""
        self.enable("Page")
        result = self.conn.send("Page.addScriptToEvaluateOnNewDocument", {"source": source})
        return str(result.get("identifier") or "")

    # ─────────────────────────────────────────────────────────────────────────
    # Viewport & screenshots
    # ─────────────────────────────────────────────────────────────────────────

    def set_viewport(self, width: int, height: int) -> None:
        self.conn.send(
            "Emulation.setDeviceMetricsOverride",
            {"width": int(width), "height": int(height), "deviceScaleFactor": 1, "mobile": False},
        )

    def screenshot(self) -> bytes:
        """Capture the viewport as PNG bytes."""
        result = self.conn.send("Page.captureScreenshot", {"format": "png", "fromSurface": True})
        data = result.get("data") or ""
        if not data:
            raise CdpError("Screenshot data is empty")
        return base64.b64decode(data)

    # ─────────────────────────────────────────────────────────────────────────
    # Labeled elements
    # ─────────────────────────────────────────────────────────────────────────

    def labeled_element(self, label: int) -> dict[str, Any] | None:
        """Scroll the element tagged ``label`` into view and describe it."""
        js = f"""
        (() => {{
            const el = document.querySelector({_label_selector(label)});
            if (!el) return null;
            el.scrollIntoView({{block: 'center', inline: 'center'}});
            const r = el.getBoundingClientRect();
            const a = el.closest('a');
            return {{
                tag: el.tagName.toLowerCase(),
                x: r.left + r.width / 2,
                y: r.top + r.height / 2,
                width: r.width,
                height: r.height,
                href: a && a.href ? a.href : null,
                target: a ? (a.getAttribute('target') || '') : null,
                editable: !!el.isContentEditable,
                value: ('value' in el) ? String(el.value ?? '') : (el.isContentEditable ? el.textContent : null),
            }};
        }})()
        """
        info = self.eval_js(js)
        return info if isinstance(info, dict) else None

    def set_labeled_value(self, label: int, value: str) -> bool:
        """Set the value of the element tagged ``label`` and fire input/change events."""
        js = f"""
        (() => {{
            const el = document.querySelector({_label_selector(label)});
            if (!el) return false;
            el.focus();
            if (el.isContentEditable && !('value' in el)) {{
                el.textContent = {json.dumps(value)};
            }} else {{
                el.value = {json.dumps(value)};
            }}
            el.dispatchEvent(new Event('input', {{bubbles: true}}));
            el.dispatchEvent(new Event('change', {{bubbles: true}}));
            return true;
        }})()
        """
        return bool(self.eval_js(js))

    # ─────────────────────────────────────────────────────────────────────────
    # Input
    # ─────────────────────────────────────────────────────────────────────────

    def click(self, x: float, y: float, button: str = "left", click_count: int = 1) -> None:
        """Click at viewport coordinates."""
        self.conn.send("Input.dispatchMouseEvent", {"type": "mouseMoved", "x": x, "y": y})
        for event_type in ("mousePressed", "mouseReleased"):
            self.conn.send(
                "Input.dispatchMouseEvent",
                {"type": event_type, "x": x, "y": y, "button": button, "clickCount": click_count},
            )
        # Give click handlers a moment to start a navigation before the next step.
        time.sleep(0.1)

    def scroll_by(self, pixels: int | None, *, up: bool = False) -> dict[str, Any]:
        """Scroll vertically by ``pixels`` (one viewport height when ``None``)."""
        amount = "window.innerHeight" if pixels is None else str(abs(int(pixels)))
        js = f"""
        (() => {{
            const delta = {'-' if up else ''}({amount});
            window.scrollBy(0, delta);
            return {{delta: delta, scrollY: window.scrollY}};
        }})()
        """
        result = self.eval_js(js)
        return result if isinstance(result, dict) else {}

    # ─────────────────────────────────────────────────────────────────────────
    # Content
    # ─────────────────────────────────────────────────────────────────────────

    def get_content(self, selector: str | None = None) -> str:
        """Outer HTML of the document, or of every element matching ``selector``."""
        if selector:
            js = (
                f"Array.from(document.querySelectorAll({json.dumps(selector)}))"
                ".map((el) => el.outerHTML).join(' ')"
            )
        else:
            js = "document.documentElement.outerHTML"
        return self.eval_js(js) or ""
