"""
Automation handle: one live CDP connection plus the page it drives.

A handle belongs to exactly one Steel session and is discarded whenever that
session is superseded or released.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .page import BrowserPage
from .session_cdp import CdpConnection, CdpError, PageChannel

logger = logging.getLogger("mcp.steel.automation")

ConsoleListener = Callable[[str], None]


def format_console_message(params: dict[str, Any]) -> str:
    """Render a ``Runtime.consoleAPICalled`` payload as ``[type] text``."""
    kind = str(params.get("type") or "log")
    parts: list[str] = []
    for arg in params.get("args") or []:
        if not isinstance(arg, dict):
            continue
        if "value" in arg:
            value = arg["value"]
            parts.append(value if isinstance(value, str) else str(value))
        elif arg.get("description"):
            parts.append(str(arg["description"]))
        else:
            parts.append(str(arg.get("type") or ""))
    return f"[{kind}] {' '.join(parts)}"


class AutomationHandle:
    def __init__(self, connection: CdpConnection, channel: PageChannel) -> None:
        self.connection = connection
        self.channel = channel
        self.page = BrowserPage(channel, target_id=channel.target_id)
        self._console_listeners: list[ConsoleListener] = []
        connection.set_event_sink(self._on_event)

    @property
    def target_id(self) -> str:
        return self.channel.target_id

    def on_console(self, listener: ConsoleListener) -> None:
        """Call ``listener`` with every console message the page emits."""
        self._console_listeners.append(listener)
        self.page.enable("Runtime")

    def _on_event(self, event: dict[str, Any]) -> None:
        if event.get("method") != "Runtime.consoleAPICalled":
            return
        if event.get("sessionId") not in (None, self.channel.session_id):
            return
        params = event.get("params")
        if not isinstance(params, dict):
            return
        entry = format_console_message(params)
        for listener in list(self._console_listeners):
            listener(entry)

    def is_connected(self) -> bool:
        return self.connection.connected

    def drain_events(self) -> int:
        return self.connection.drain_events()

    def close(self) -> None:
        self._console_listeners.clear()
        self.connection.set_event_sink(None)
        self.connection.close()


def connect_automation(endpoint: str, timeout: float = 30.0) -> AutomationHandle:
    """Connect to a session's browser endpoint and attach to its first open page."""
    conn = CdpConnection(endpoint, timeout=timeout)
    try:
        infos = conn.send("Target.getTargets").get("targetInfos") or []
        pages = [t for t in infos if isinstance(t, dict) and t.get("type") == "page" and t.get("targetId")]
        if pages:
            target_id = str(pages[0]["targetId"])
        else:
            created = conn.send("Target.createTarget", {"url": "about:blank"})
            target_id = str(created.get("targetId") or "")
            if not target_id:
                raise CdpError("Browser reported no pages and refused to create one")
        attached = conn.send("Target.attachToTarget", {"targetId": target_id, "flatten": True})
        session_id = attached.get("sessionId")
        if not session_id:
            raise CdpError(f"Failed to attach to page target {target_id}")
    except Exception:
        conn.close()
        raise
    logger.info("automation_connected target=%s", target_id)
    return AutomationHandle(conn, PageChannel(conn, str(session_id), target_id))
