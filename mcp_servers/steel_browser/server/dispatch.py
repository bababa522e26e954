"""
Uniform envelope around every tool handler.

Per call, strictly in order:
acquire session → run handler → (stop on error result) → global wait →
re-annotate → screenshot appended as the last content item.

Exceptions anywhere in the envelope go to ``SessionManager.handle_error``:
a rebuilt session yields a "please retry" result (the action is never
re-run automatically), anything else is surfaced with its traceback.
"""

from __future__ import annotations

import logging
import time
import traceback
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .redaction import redact_tool_arguments
from .registry import ToolRegistry
from .types import ToolContext, ToolResult

if TYPE_CHECKING:
    from ..config import SteelConfig
    from ..session_manager import SessionManager
    from ..store import ResourceStore

logger = logging.getLogger("mcp.steel.dispatch")

RETRY_MESSAGE = "Browser session was recreated after a failure. Please retry the last action."


class ToolDispatcher:
    def __init__(
        self,
        registry: ToolRegistry,
        sessions: SessionManager,
        store: ResourceStore,
        config: SteelConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry = registry
        self.sessions = sessions
        self.store = store
        self.config = config
        self._sleep = sleep

    def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        args = arguments if isinstance(arguments, dict) else {}
        entry = self.registry.get(name)
        if entry is None:
            logger.info("tool_rejected tool=%s reason=unknown_tool", name)
            return ToolResult.error(f"Unknown tool: {name}")
        handler, check = entry
        if check is not None and (problem := check(args)):
            logger.info("tool_rejected tool=%s reason=%s", name, problem)
            return ToolResult.error(problem)

        logger.info("tool_start tool=%s args=%s", name, redact_tool_arguments(name, args))
        started = time.monotonic()
        try:
            result = self._run(handler, args)
        except Exception as exc:
            result = self._recover(name, exc)
        logger.info(
            "tool_done tool=%s is_error=%s images=%d ms=%d",
            name,
            result.is_error,
            len(result.images),
            int((time.monotonic() - started) * 1000),
        )
        return result

    def _run(self, handler: Any, args: dict[str, Any]) -> ToolResult:
        page = self.sessions.ensure_session()
        result = handler(ToolContext(page=page, config=self.config, store=self.store), args)
        if result.is_error:
            return result
        if self.config.global_wait_seconds > 0:
            self._sleep(self.config.global_wait_seconds)
        self.sessions.inject_annotation_script()
        result.append_image(page.screenshot())
        self.sessions.drain_events()
        return result

    def _recover(self, name: str, exc: Exception) -> ToolResult:
        logger.warning("tool_failed tool=%s error=%s", name, exc)
        try:
            recreated = self.sessions.handle_error(exc)
        except Exception as recovery_exc:
            logger.exception("session_recovery_failed tool=%s", name)
            return ToolResult.error(
                f"Error executing {name}: {exc}\nSession recovery also failed: {recovery_exc}"
            )
        if recreated:
            return ToolResult.error(RETRY_MESSAGE)
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return ToolResult.error(f"Error executing {name}: {exc}\n{stack}")
