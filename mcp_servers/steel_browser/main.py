"""
MCP server exposing a Steel browser session to an agent.

This module provides the main entry point and protocol handling.
Tool calls go through the dispatcher in server/dispatch.py; the session
itself is owned by session_manager.SessionManager.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from dotenv import load_dotenv

from .config import ConfigError, SteelConfig
from .server.contract import (
    DEFAULT_PROTOCOL_VERSION,
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    initialize_result,
    select_protocol,
    tools_list,
)
from .server.dispatch import ToolDispatcher
from .server.redaction import redact_jsonrpc_for_log
from .server.registry import create_default_registry
from .server.resources import ResourceNotFoundError, list_resources, read_resource
from .server.types import ToolResult
from .session_manager import SessionManager
from .steel_client import SteelClient
from .store import CONSOLE_LOGS_URI, ConsoleLog, ResourceStore


def _log_level() -> int:
    level = getattr(logging, (os.environ.get("STEEL_LOG_LEVEL") or "INFO").strip().upper(), None)
    return level if isinstance(level, int) else logging.INFO


logging.basicConfig(
    level=_log_level(),
    format="%(asctime)s %(levelname)s %(message)s",
)
logger = logging.getLogger("mcp.steel")

RESOURCE_NOT_FOUND = -32002
METHOD_NOT_FOUND = -32601
PARSE_ERROR = -32700

__all__ = [
    "SUPPORTED_PROTOCOL_VERSIONS",
    "LATEST_PROTOCOL_VERSION",
    "DEFAULT_PROTOCOL_VERSION",
    "McpServer",
    "main",
]


def _write_message(payload: dict[str, Any]) -> None:
    """Write JSON-RPC message to stdout."""
    data = json.dumps(payload, ensure_ascii=False)
    sys.stdout.buffer.write((data + "\n").encode())
    sys.stdout.buffer.flush()


def _read_message() -> dict[str, Any] | None:
    """Read one JSON-RPC message from stdin; ``None`` at EOF, ``{}`` for blank lines."""
    line = sys.stdin.buffer.readline()
    if not line:
        return None
    line = line.strip()
    if not line:
        return {}
    try:
        msg = json.loads(line.decode())
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("invalid_frame error=%s", exc)
        _write_message({"jsonrpc": "2.0", "id": None, "error": {"code": PARSE_ERROR, "message": "Parse error"}})
        return {}
    if not isinstance(msg, dict):
        return {}
    if os.environ.get("MCP_TRACE"):
        logger.info("recv %s", redact_jsonrpc_for_log(msg))
    return msg


def _notify(method: str, params: dict[str, Any] | None = None) -> None:
    message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if params:
        message["params"] = params
    _write_message(message)


class McpServer:
    """MCP server owning the store, the console log and the session manager."""

    def __init__(self, config: SteelConfig | None = None, *, sessions: SessionManager | None = None) -> None:
        self.config = config if config is not None else SteelConfig.from_env()
        self.store = ResourceStore(self.config.max_screenshots)
        self.console_log = sessions.console_log if sessions is not None else ConsoleLog(self.config.max_console_logs)
        self.sessions = sessions or SessionManager(self.config, SteelClient(self.config), self.console_log)
        self.registry = create_default_registry()
        self.dispatcher = ToolDispatcher(self.registry, self.sessions, self.store, self.config)

        self.store.subscribe(lambda: _notify("notifications/resources/list_changed"))
        self.console_log.subscribe(lambda _entry: _notify("notifications/resources/updated", {"uri": CONSOLE_LOGS_URI}))

    def _reply(self, request_id: Any, result: dict[str, Any]) -> None:
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": result})

    def _error(self, request_id: Any, code: int, message: str) -> None:
        _write_message({"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}})

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        """Handle initialize request."""
        requested = (params or {}).get("protocolVersion") if isinstance(params, dict) else None
        self._reply(request_id, initialize_result(select_protocol(requested)))

    def handle_list_tools(self, request_id: Any) -> None:
        """Handle tools/list request."""
        self._reply(request_id, {"tools": tools_list()})

    def handle_call_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> None:
        """Handle tools/call via the dispatcher envelope."""
        try:
            if not name:
                result = ToolResult.error("Missing tool name")
            else:
                result = self.dispatcher.call(name, arguments)
        except Exception as exc:
            logger.exception("tool_call_failed tool=%s", name)
            result = ToolResult.error(f"Error executing {name}: {exc}")
        self._reply(request_id, result.to_dict())

    def handle_list_resources(self, request_id: Any) -> None:
        self._reply(request_id, {"resources": list_resources(self.store, self.console_log)})

    def handle_read_resource(self, request_id: Any, uri: str) -> None:
        try:
            result = read_resource(uri, self.store, self.console_log)
        except ResourceNotFoundError as exc:
            self._error(request_id, RESOURCE_NOT_FOUND, str(exc))
            return
        self._reply(request_id, result)

    def dispatch(self, message: dict[str, Any]) -> None:
        """Dispatch incoming JSON-RPC message to appropriate handler."""
        if not message:
            return

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params") or {}

        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif isinstance(method, str) and method.startswith("notifications/"):
            # notifications/initialized and friends expect no reply
            return
        elif method == "ping":
            self._reply(request_id, {})
        elif method == "tools/list":
            self.handle_list_tools(request_id)
        elif method == "tools/call":
            name = params.get("name")
            arguments = params.get("arguments") or {}
            self.handle_call_tool(request_id, name or "", arguments)
        elif method == "resources/list":
            self.handle_list_resources(request_id)
        elif method == "resources/read":
            self.handle_read_resource(request_id, str(params.get("uri") or ""))
        else:
            self._error(request_id, METHOD_NOT_FOUND, f"Method {method} not found")

    def serve(self) -> None:
        """Serve frames until stdin closes, then release the session."""
        try:
            while True:
                message = _read_message()
                if message is None:
                    break
                self.dispatch(message)
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        """Log the final session status, then release the session."""
        status = self.sessions.probe()
        logger.info(
            "session_status state=%s id=%s connected=%s remote=%s",
            status["state"],
            status["session_id"],
            status["connected"],
            status["remote_status"],
        )
        self.sessions.cleanup()


def main() -> None:
    """Main entry point for MCP server."""
    load_dotenv()
    config = SteelConfig.from_env()
    try:
        config.validate()
    except ConfigError as exc:
        logger.error("config_error: %s", exc)
        sys.exit(1)
    logger.info("steel_mcp_start mode=%s base_url=%s", config.mode, config.base_url)
    McpServer(config).serve()


if __name__ == "__main__":
    main()
