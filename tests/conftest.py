"""Hermetic fakes for the Steel API, the automation handle and the page."""

from __future__ import annotations

import io
from typing import Any

import pytest
from PIL import Image

from mcp_servers.steel_browser.annotation import INVOKE_JS
from mcp_servers.steel_browser.config import SteelConfig
from mcp_servers.steel_browser.http_client import HttpClientError
from mcp_servers.steel_browser.session_manager import SessionManager
from mcp_servers.steel_browser.steel_client import SessionInfo
from mcp_servers.steel_browser.store import ConsoleLog


def make_png(width: int = 8, height: int = 6, color: tuple[int, int, int] = (200, 40, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class FakePage:
    """Stands in for BrowserPage; elements are keyed by label number."""

    def __init__(self, elements: dict[int, dict[str, Any]] | None = None, *, html: str = "") -> None:
        self.elements = {k: dict(v) for k, v in (elements or {}).items()}
        self.html = html
        self.url = "about:blank"
        self.history: list[str] = []
        self.calls: list[Any] = []
        self.scripts: list[str] = []
        self.evaluated: list[str] = []
        self.png = make_png()
        self.viewport: tuple[int, int] | None = None
        self.screenshot_error: Exception | None = None

    def navigate(self, url: str, *, timeout: float = 60.0, wait_until: str = "domcontentloaded") -> str:
        self.calls.append(("navigate", url, timeout, wait_until))
        self.history.append(self.url)
        self.url = url
        return url

    def go_back(self, timeout: float = 10.0) -> str | None:
        self.calls.append(("go_back",))
        if not self.history:
            return None
        self.url = self.history.pop()
        return self.url

    def get_url(self) -> str:
        return self.url

    def eval_js(self, expression: str) -> Any:
        self.evaluated.append(expression)
        if expression == INVOKE_JS:
            self.calls.append(("annotate",))
            return len(self.elements)
        return True

    def add_script_on_new_document(self, source: str) -> str:
        self.scripts.append(source)
        return str(len(self.scripts))

    def set_viewport(self, width: int, height: int) -> None:
        self.viewport = (width, height)

    def screenshot(self) -> bytes:
        self.calls.append(("screenshot",))
        if self.screenshot_error is not None:
            raise self.screenshot_error
        return self.png

    def labeled_element(self, label: int) -> dict[str, Any] | None:
        element = self.elements.get(label)
        return dict(element) if element is not None else None

    def set_labeled_value(self, label: int, value: str) -> bool:
        if label not in self.elements:
            return False
        self.elements[label]["value"] = value
        return True

    def click(self, x: float, y: float, button: str = "left", click_count: int = 1) -> None:
        self.calls.append(("click", x, y))

    def scroll_by(self, pixels: int | None, *, up: bool = False) -> dict[str, Any]:
        self.calls.append(("scroll", pixels, up))
        return {"delta": pixels, "scrollY": 0}

    def get_content(self, selector: str | None = None) -> str:
        self.calls.append(("get_content", selector))
        return self.html


class FakeHandle:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.connected = True
        self.closed = False
        self.listeners: list[Any] = []

    def on_console(self, listener: Any) -> None:
        self.listeners.append(listener)

    def emit_console(self, entry: str) -> None:
        for listener in self.listeners:
            listener(entry)

    def is_connected(self) -> bool:
        return self.connected and not self.closed

    def drain_events(self) -> int:
        return 0

    def close(self) -> None:
        self.closed = True


class FakeSteelClient:
    """In-memory Steel session API."""

    def __init__(self) -> None:
        self.statuses: dict[str, str] = {}
        self.created: list[str] = []
        self.released: list[str] = []
        self.retrieved: list[str] = []
        self.create_error: Exception | None = None
        self.retrieve_error: Exception | None = None

    def create_session(self, timeout_ms: int | None = None) -> SessionInfo:
        if self.create_error is not None:
            raise self.create_error
        session_id = f"sess-{len(self.created) + 1}"
        self.created.append(session_id)
        self.statuses[session_id] = "live"
        return SessionInfo(id=session_id, status="live", timeout_ms=timeout_ms)

    def retrieve_session(self, session_id: str) -> SessionInfo:
        self.retrieved.append(session_id)
        if self.retrieve_error is not None:
            raise self.retrieve_error
        return SessionInfo(id=session_id, status=self.statuses.get(session_id, "failed"))

    def release_session(self, session_id: str) -> None:
        self.released.append(session_id)
        self.statuses[session_id] = "released"


class FakeConnector:
    """Replacement for connect_automation: hands out FakeHandles."""

    def __init__(self) -> None:
        self.endpoints: list[str] = []
        self.handles: list[FakeHandle] = []
        self.error: Exception | None = None

    def __call__(self, endpoint: str, timeout: float = 30.0) -> FakeHandle:
        self.endpoints.append(endpoint)
        if self.error is not None:
            raise self.error
        handle = FakeHandle(FakePage({1: {"tag": "a", "x": 10, "y": 20}}))
        self.handles.append(handle)
        return handle


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def page_factory() -> type[FakePage]:
    return FakePage


@pytest.fixture
def steel_config() -> SteelConfig:
    return SteelConfig(local=True, base_url="http://localhost:3000")


@pytest.fixture
def steel_client() -> FakeSteelClient:
    return FakeSteelClient()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def manager(steel_config: SteelConfig, steel_client: FakeSteelClient, connector: FakeConnector) -> SessionManager:
    return SessionManager(steel_config, steel_client, ConsoleLog(), connect=connector)  # type: ignore[arg-type]


@pytest.fixture
def transport_error() -> Exception:
    return HttpClientError("Browser connection lost: [Errno 104] Connection reset by peer")
