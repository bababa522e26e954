"""Raw Chrome DevTools Protocol connection to a Steel session's browser.

Steel exposes one browser-level websocket per session. Pages are reached
through flattened target sessions: every command and event for a page
carries that page's CDP ``sessionId``.
"""

from __future__ import annotations

import json
import socket
import time
from collections.abc import Callable
from contextlib import suppress
from typing import Any

import websocket

from .http_client import HttpClientError


class CdpError(HttpClientError):
    """The browser answered a command with a protocol error."""


class CdpTransportError(HttpClientError):
    """The websocket is broken, closed, or stopped answering."""


class CdpTimeoutError(CdpTransportError):
    pass


EventSink = Callable[[dict[str, Any]], None]


class CdpConnection:
    """Low-level CDP WebSocket connection."""

    def __init__(self, ws_url: str, timeout: float = 5.0):
        try:
            self.ws = websocket.create_connection(ws_url, timeout=timeout)
        except (websocket.WebSocketException, OSError) as exc:
            raise CdpTransportError(f"Failed to connect to browser: {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1
        self._closed = False
        # Events read while waiting for a command response are kept for later waits.
        self._event_queue: list[dict[str, Any]] = []
        self._max_event_queue = 2000
        self._event_sink: EventSink | None = None

    @property
    def connected(self) -> bool:
        return not self._closed and bool(getattr(self.ws, "connected", False))

    def set_event_sink(self, sink: EventSink | None) -> None:
        """Attach a sink called for every received CDP event."""
        self._event_sink = sink

    def _push_event(self, event: dict[str, Any]) -> None:
        sink = self._event_sink
        if sink is not None:
            # Listener failures must never break browser operations.
            with suppress(Exception):
                sink(event)
        self._event_queue.append(event)
        if len(self._event_queue) > self._max_event_queue:
            del self._event_queue[: len(self._event_queue) - self._max_event_queue]

    def _recv(self, wait: float) -> dict[str, Any] | None:
        """Read one frame; ``None`` when nothing arrived within ``wait`` seconds."""
        try:
            self.ws.settimeout(max(0.01, wait))
            raw = self.ws.recv()
        except (websocket.WebSocketTimeoutException, TimeoutError, BlockingIOError):
            return None
        except (websocket.WebSocketException, OSError) as exc:
            self._closed = True
            raise CdpTransportError(f"Browser connection lost: {exc}") from exc
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _is_event(data: dict[str, Any]) -> bool:
        return isinstance(data.get("method"), str) and "id" not in data

    def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        session_id: str | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send CDP command and wait for response."""
        if self._closed:
            raise CdpTransportError("Browser connection is closed")
        msg_id = self._next_id
        self._next_id += 1

        msg: dict[str, Any] = {"id": msg_id, "method": method}
        if params:
            msg["params"] = params
        if session_id:
            msg["sessionId"] = session_id

        try:
            self.ws.settimeout(min(2.0, max(0.5, float(self.timeout))))
            self.ws.send(json.dumps(msg))
        except (websocket.WebSocketException, OSError) as exc:
            self._closed = True
            raise CdpTransportError(f"Failed to send {method}: {exc}") from exc

        return self._recv_until(msg_id, method, timeout if timeout is not None else self.timeout)

    def _recv_until(self, expected_id: int, method: str, timeout: float) -> dict[str, Any]:
        """Wait for response with specific ID."""
        deadline = time.time() + timeout
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                raise CdpTimeoutError(f"CDP response timed out ({method})")
            data = self._recv(min(0.5, remaining))
            if data is None:
                continue
            if self._is_event(data):
                self._push_event(data)
                continue
            if data.get("id") == expected_id:
                if "error" in data:
                    err = data["error"]
                    message = err.get("message") if isinstance(err, dict) else None
                    raise CdpError(f"{method}: {message or err}")
                result = data.get("result")
                return result if isinstance(result, dict) else {}

    def pop_event(self, event_name: str, session_id: str | None = None) -> dict[str, Any] | None:
        """Pop the oldest queued event params for the given event name."""
        for i, ev in enumerate(self._event_queue):
            if ev.get("method") != event_name:
                continue
            if session_id is not None and ev.get("sessionId") != session_id:
                continue
            self._event_queue.pop(i)
            params = ev.get("params")
            return params if isinstance(params, dict) else {}
        return None

    def clear_events(self, event_name: str, session_id: str | None = None) -> None:
        self._event_queue = [
            ev
            for ev in self._event_queue
            if not (ev.get("method") == event_name and (session_id is None or ev.get("sessionId") == session_id))
        ]

    def wait_for_event(
        self, event_name: str, timeout: float = 10.0, session_id: str | None = None
    ) -> dict[str, Any] | None:
        """Wait for specific CDP event."""
        queued = self.pop_event(event_name, session_id)
        if queued is not None:
            return queued

        deadline = time.time() + timeout
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                return None
            data = self._recv(min(0.5, remaining))
            if data is None or not self._is_event(data):
                continue
            if data.get("method") == event_name and (session_id is None or data.get("sessionId") == session_id):
                sink = self._event_sink
                if sink is not None:
                    with suppress(Exception):
                        sink(data)
                params = data.get("params")
                return params if isinstance(params, dict) else {}
            self._push_event(data)

    def drain_events(self, *, max_messages: int = 50) -> int:
        """Deliver already-buffered events to the sink without blocking."""
        drained = 0
        for _ in range(max(0, int(max_messages))):
            data = self._recv(0.05)
            if data is None or not self._is_event(data):
                break
            self._push_event(data)
            drained += 1
        return drained

    def close(self) -> None:
        """Close the WebSocket connection."""
        self._closed = True
        # Raw socket shutdown; websocket-client's close handshake can block on a dead peer.
        sock = getattr(self.ws, "sock", None)
        if sock is not None:
            with suppress(OSError):
                sock.shutdown(socket.SHUT_RDWR)
            with suppress(OSError):
                sock.close()


class PageChannel:
    """Routes commands and events for one attached page target."""

    def __init__(self, conn: CdpConnection, session_id: str, target_id: str) -> None:
        self.conn = conn
        self.session_id = session_id
        self.target_id = target_id

    @property
    def timeout(self) -> float:
        return self.conn.timeout

    def send(self, method: str, params: dict[str, Any] | None = None, *, timeout: float | None = None) -> dict[str, Any]:
        return self.conn.send(method, params, session_id=self.session_id, timeout=timeout)

    def pop_event(self, event_name: str) -> dict[str, Any] | None:
        return self.conn.pop_event(event_name, self.session_id)

    def clear_events(self, event_name: str) -> None:
        self.conn.clear_events(event_name, self.session_id)

    def wait_for_event(self, event_name: str, timeout: float = 10.0) -> dict[str, Any] | None:
        return self.conn.wait_for_event(event_name, timeout, self.session_id)


__all__ = ["CdpConnection", "CdpError", "CdpTimeoutError", "CdpTransportError", "PageChannel"]
