"""
Session lifecycle for the one Steel browser session this server drives.

Architecture:
- SessionManager owns (session, automation handle, page) as a unit
- ensure_session() is the single entry point every tool call goes through
- handle_error() classifies a failed action: session trouble triggers one
  recreation (caller retries), anything else is surfaced unchanged

Liveness is verify-on-demand: the remote status is only fetched when an
action fails or probe() is called, never in the background. A session can
expire between the last check and the next command.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from .annotation import ANNOTATION_SCRIPT, BOOTSTRAP_SCRIPT, INVOKE_JS
from .automation import AutomationHandle, connect_automation
from .config import SteelConfig
from .http_client import HttpClientError
from .page import BrowserPage
from .server.redaction import redact_url
from .steel_client import SessionInfo, SteelClient
from .store import ConsoleLog

logger = logging.getLogger("mcp.steel.session")

ConnectFunc = Callable[[str, float], AutomationHandle]


class SessionCreationError(HttpClientError):
    """A session could not be created or its browser could not be reached."""


class SessionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    CREATING = "creating"
    LIVE = "live"
    STALE = "stale"
    FAILED = "failed"
    RELEASED = "released"


class SessionManager:
    """Creates, verifies, recreates and releases the current Steel session.

    All transitions run under one re-entrant lock, so two concurrent callers
    that both observe "no session" cannot create two sessions.
    """

    def __init__(
        self,
        config: SteelConfig,
        client: SteelClient | None = None,
        console_log: ConsoleLog | None = None,
        *,
        connect: ConnectFunc = connect_automation,
    ) -> None:
        self.config = config
        self.client = client if client is not None else SteelClient(config)
        self.console_log = console_log if console_log is not None else ConsoleLog(config.max_console_logs)
        self._connect = connect
        self._lock = threading.RLock()
        self._state = SessionState.UNINITIALIZED
        self._session: SessionInfo | None = None
        self._handle: AutomationHandle | None = None
        self._bootstrap_registered = False

    # ─────────────────────────────────────────────────────────────────────────
    # Accessors
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session_id(self) -> str | None:
        session = self._session
        return session.id if session is not None else None

    @property
    def handle(self) -> AutomationHandle | None:
        return self._handle

    @property
    def page(self) -> BrowserPage | None:
        handle = self._handle
        return handle.page if handle is not None else None

    # ─────────────────────────────────────────────────────────────────────────
    # Acquisition
    # ─────────────────────────────────────────────────────────────────────────

    def ensure_session(self) -> BrowserPage:
        """Return a ready page, creating a session when there is none."""
        return self.initialize()

    def initialize(self) -> BrowserPage:
        """Idempotent: an already live session is returned as is."""
        with self._lock:
            handle = self._handle
            if self._state is SessionState.LIVE and handle is not None:
                return handle.page
            logger.info("session_init state=%s", self._state.value)
            return self._create_new_session()

    def _create_new_session(self) -> BrowserPage:
        superseded = self._session
        self._discard_handle()
        self._session = None
        if superseded is not None:
            self._release_quietly(superseded.id, reason="superseded")

        self._state = SessionState.CREATING
        try:
            info = self.client.create_session(self.config.session_timeout_ms)
        except Exception as exc:
            self._state = SessionState.FAILED
            logger.error("session_create_failed error=%s", exc)
            raise SessionCreationError(f"Failed to create Steel session: {exc}") from exc

        if not info.is_live:
            self._state = SessionState.FAILED
            logger.error("session_not_live_on_create id=%s status=%s", info.id, info.status)
            self._release_quietly(info.id, reason="not_live")
            raise SessionCreationError(f"Steel session {info.id} was created with status {info.status!r}")

        try:
            handle = self._attach(info)
        except Exception as exc:
            self._state = SessionState.FAILED
            logger.error("session_connect_failed id=%s error=%s", info.id, exc)
            self._release_quietly(info.id, reason="orphaned")
            raise SessionCreationError(f"Failed to connect to Steel session {info.id}: {exc}") from exc

        self._session = info
        self._handle = handle
        self._state = SessionState.LIVE
        logger.info("session_live id=%s mode=%s", info.id, self.config.mode)
        return handle.page

    def _attach(self, info: SessionInfo) -> AutomationHandle:
        endpoint = self.config.transport_endpoint(info.id)
        logger.info("session_connect id=%s endpoint=%s", info.id, redact_url(endpoint))
        handle = self._connect(endpoint, self.config.cdp_timeout)
        try:
            handle.page.set_viewport(self.config.viewport_width, self.config.viewport_height)
            handle.on_console(self.console_log.append)
            self._bootstrap_registered = False
            self._inject(handle.page)
        except Exception:
            handle.close()
            raise
        return handle

    def _reconnect(self, info: SessionInfo) -> None:
        """Replace a broken transport while keeping the (still live) remote session."""
        self._discard_handle()
        self._state = SessionState.CREATING
        try:
            self._handle = self._attach(info)
        except Exception as exc:
            self._state = SessionState.FAILED
            logger.error("session_reconnect_failed id=%s error=%s", info.id, exc)
            raise SessionCreationError(f"Failed to reconnect to Steel session {info.id}: {exc}") from exc
        self._session = info
        self._state = SessionState.LIVE
        logger.info("session_reconnected id=%s", info.id)

    # ─────────────────────────────────────────────────────────────────────────
    # Annotation
    # ─────────────────────────────────────────────────────────────────────────

    def inject_annotation_script(self) -> int:
        """(Re-)label the current page; returns how many elements got a label."""
        with self._lock:
            handle = self._handle
            if handle is None:
                raise SessionCreationError("No active browser session")
            return self._inject(handle.page)

    def _inject(self, page: BrowserPage) -> int:
        if not self._bootstrap_registered:
            page.add_script_on_new_document(BOOTSTRAP_SCRIPT)
            self._bootstrap_registered = True
        page.eval_js(ANNOTATION_SCRIPT)
        count = page.eval_js(INVOKE_JS)
        return count if isinstance(count, int) else 0

    # ─────────────────────────────────────────────────────────────────────────
    # Failure classification
    # ─────────────────────────────────────────────────────────────────────────

    def handle_error(self, error: BaseException) -> bool:
        """Return True when ``error`` was session trouble and the session was rebuilt.

        Without a current session (creation never succeeded) there is nothing
        to verify; the error is surfaced and the next call creates afresh.
        """
        with self._lock:
            session = self._session
            if session is None:
                logger.info("handle_error no_session error=%s", error)
                return False
            try:
                info = self.client.retrieve_session(session.id)
            except Exception as exc:
                logger.warning("session_status_unavailable id=%s error=%s", session.id, exc)
                self._state = SessionState.STALE
                self._create_new_session()
                return True
            if not info.is_live:
                logger.warning("session_not_live id=%s status=%s", session.id, info.status)
                self._state = SessionState.STALE
                self._create_new_session()
                return True
            handle = self._handle
            if handle is None or not handle.is_connected():
                logger.warning("session_transport_lost id=%s", session.id)
                self._reconnect(info)
                return True
            logger.info("handle_error session_healthy id=%s error=%s", session.id, error)
            return False

    def probe(self) -> dict[str, Any]:
        """Explicit liveness check: remote status plus local transport state."""
        with self._lock:
            session = self._session
            handle = self._handle
            report: dict[str, Any] = {
                "state": self._state.value,
                "session_id": session.id if session is not None else None,
                "connected": bool(handle is not None and handle.is_connected()),
                "remote_status": None,
            }
            if session is None:
                return report
            try:
                report["remote_status"] = self.client.retrieve_session(session.id).status
            except HttpClientError as exc:
                report["error"] = str(exc)
            if self._state is SessionState.LIVE and (report["remote_status"] != "live" or not report["connected"]):
                self._state = SessionState.STALE
                report["state"] = self._state.value
            return report

    def drain_events(self) -> int:
        """Deliver console events that arrived while no command was running."""
        handle = self._handle
        if handle is None or not handle.is_connected():
            return 0
        with suppress(HttpClientError):
            return handle.drain_events()
        return 0

    # ─────────────────────────────────────────────────────────────────────────
    # Teardown
    # ─────────────────────────────────────────────────────────────────────────

    def cleanup(self) -> None:
        """Release the session (when configured), close the transport, reset."""
        with self._lock:
            session = self._session
            self._discard_handle()
            self._session = None
            if session is not None and self.config.release_on_cleanup:
                self._release_quietly(session.id, reason="cleanup")
            self._state = SessionState.RELEASED if session is not None else SessionState.UNINITIALIZED
            logger.info("session_cleanup id=%s", session.id if session is not None else None)

    def _discard_handle(self) -> None:
        handle = self._handle
        self._handle = None
        self._bootstrap_registered = False
        if handle is not None:
            with suppress(Exception):
                handle.close()

    def _release_quietly(self, session_id: str, *, reason: str) -> None:
        try:
            self.client.release_session(session_id)
        except Exception as exc:
            logger.warning("session_release_failed id=%s reason=%s error=%s", session_id, reason, exc)
