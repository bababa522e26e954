from __future__ import annotations

import base64
import io
import logging
from typing import Any

from PIL import Image

from mcp_servers.steel_browser.config import SteelConfig
from mcp_servers.steel_browser.http_client import HttpClientError
from mcp_servers.steel_browser.server.dispatch import RETRY_MESSAGE, ToolDispatcher
from mcp_servers.steel_browser.server.registry import ToolRegistry, create_default_registry
from mcp_servers.steel_browser.server.types import ToolResult
from mcp_servers.steel_browser.session_manager import SessionManager
from mcp_servers.steel_browser.store import ConsoleLog, ResourceStore


def _dispatcher(manager: SessionManager, registry: ToolRegistry | None = None, **config: Any) -> ToolDispatcher:
    cfg = SteelConfig(local=True, base_url="http://localhost:3000", **config)
    sleeps: list[float] = []
    dispatcher = ToolDispatcher(registry or create_default_registry(), manager, ResourceStore(), cfg, sleep=sleeps.append)
    dispatcher.sleeps = sleeps  # type: ignore[attr-defined]
    return dispatcher


def test_success_appends_exactly_one_trailing_valid_image(manager) -> None:
    dispatcher = _dispatcher(manager)
    result = dispatcher.call("scroll_down", {"pixels": 200})

    assert not result.is_error
    assert [c.type for c in result.content] == ["text", "image"]
    image = result.content[-1]
    assert image.mime_type == "image/png"
    with Image.open(io.BytesIO(base64.b64decode(image.data))) as img:
        img.verify()


def test_error_result_skips_post_processing(manager) -> None:
    dispatcher = _dispatcher(manager, global_wait_seconds=2.0)
    page = manager.ensure_session()
    page.calls.clear()

    result = dispatcher.call("click", {"label": 99})

    assert result.is_error
    assert result.images == []
    assert ("screenshot",) not in page.calls
    assert dispatcher.sleeps == []


def test_steps_run_in_order_with_global_wait(manager) -> None:
    order: list[str] = []
    registry = ToolRegistry()

    def handler(ctx, args):
        order.append("act")
        return ToolResult.text("ok")

    registry.register("order_tool", handler)
    dispatcher = _dispatcher(manager, registry, global_wait_seconds=1.5)
    dispatcher._sleep = lambda seconds: order.append(f"wait:{seconds:g}")

    page = manager.ensure_session()
    original_eval = page.eval_js
    original_shot = page.screenshot

    def eval_js(expr):
        order.append("annotate")
        return original_eval(expr)

    def screenshot():
        order.append("screenshot")
        return original_shot()

    page.eval_js = eval_js
    page.screenshot = screenshot

    result = dispatcher.call("order_tool", {})
    assert not result.is_error
    assert order[0] == "act"
    assert order[1] == "wait:1.5"
    assert order[-1] == "screenshot"
    assert set(order[2:-1]) == {"annotate"}


def test_validation_error_does_not_touch_session(manager, steel_client) -> None:
    dispatcher = _dispatcher(manager)
    result = dispatcher.call("wait", {"seconds": 15})
    assert result.is_error
    assert "between 0 and 10" in result.first_text
    assert steel_client.created == []


def test_unknown_tool(manager, steel_client, caplog) -> None:
    caplog.set_level(logging.INFO, logger="mcp.steel.dispatch")
    result = _dispatcher(manager).call("teleport", {})
    assert "tool_rejected tool=teleport reason=unknown_tool" in caplog.text
    assert result.is_error
    assert result.first_text == "Unknown tool: teleport"
    assert steel_client.created == []


def test_session_failure_returns_retry_message(manager, steel_client, transport_error) -> None:
    dispatcher = _dispatcher(manager)
    page = manager.ensure_session()
    steel_client.statuses["sess-1"] = "released"
    page.screenshot_error = transport_error

    result = dispatcher.call("scroll_up", {})

    assert result.is_error
    assert result.first_text == RETRY_MESSAGE
    assert manager.session_id == "sess-2"


def test_action_error_on_healthy_session_is_surfaced(manager, steel_client) -> None:
    registry = ToolRegistry()

    def handler(ctx, args):
        raise ValueError("selector exploded")

    registry.register("broken", handler)
    dispatcher = _dispatcher(manager, registry)

    result = dispatcher.call("broken", {})

    assert result.is_error
    assert "selector exploded" in result.first_text
    assert "Traceback" in result.first_text
    assert manager.session_id == "sess-1"
    assert steel_client.created == ["sess-1"]


def test_creation_failure_is_surfaced_then_next_call_recovers(manager, steel_client) -> None:
    dispatcher = _dispatcher(manager)
    steel_client.create_error = HttpClientError("quota exceeded")

    first = dispatcher.call("go_back", {})
    assert first.is_error
    assert "quota exceeded" in first.first_text

    steel_client.create_error = None
    second = dispatcher.call("scroll_down", {})
    assert not second.is_error
    assert len(second.images) == 1


def test_recovery_failure_is_reported(manager, steel_client, transport_error) -> None:
    dispatcher = _dispatcher(manager)
    page = manager.ensure_session()
    page.screenshot_error = transport_error
    steel_client.statuses["sess-1"] = "failed"
    steel_client.create_error = HttpClientError("no capacity")

    result = dispatcher.call("scroll_down", {})
    assert result.is_error
    assert "no capacity" in result.first_text
