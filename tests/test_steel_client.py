from __future__ import annotations

import json
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread
from typing import Any

import pytest

from mcp_servers.steel_browser.config import SteelConfig
from mcp_servers.steel_browser.http_client import HttpClientError, request_json
from mcp_servers.steel_browser.steel_client import SessionInfo, SteelClient, normalize_status


class _SteelApi:
    """Throwaway Steel session API: records requests, answers from ``routes``."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}


@pytest.fixture
def steel_api(monkeypatch: pytest.MonkeyPatch) -> Iterator[tuple[_SteelApi, str]]:
    for name in ("http_proxy", "HTTP_PROXY", "https_proxy", "HTTPS_PROXY", "all_proxy", "ALL_PROXY"):
        monkeypatch.delenv(name, raising=False)
    api = _SteelApi()

    class Handler(BaseHTTPRequestHandler):
        def _handle(self) -> None:
            length = int(self.headers.get("Content-Length") or 0)
            raw = self.rfile.read(length) if length else b""
            api.requests.append(
                {
                    "method": self.command,
                    "path": self.path,
                    "headers": {k.lower(): v for k, v in self.headers.items()},
                    "body": json.loads(raw) if raw else None,
                }
            )
            status, payload = api.routes.get((self.command, self.path), (404, {"message": "not found"}))
            body = b"" if payload is None else json.dumps(payload).encode()
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        do_GET = _handle
        do_POST = _handle

        def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
            return

    server = HTTPServer(("127.0.0.1", 0), Handler)
    thread = Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield api, f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


def _client(base_url: str, api_key: str | None = "key-123") -> SteelClient:
    return SteelClient(SteelConfig(local=api_key is None, api_key=api_key, base_url=base_url, http_timeout=5.0))


def test_create_session_posts_timeout_with_auth_header(steel_api) -> None:
    api, base = steel_api
    api.routes[("POST", "/v1/sessions")] = (200, {"id": "s-1", "status": "live", "timeout": 900000})

    info = _client(base).create_session(900_000)

    assert info == SessionInfo(id="s-1", status="live", timeout_ms=900000)
    req = api.requests[0]
    assert req["body"] == {"timeout": 900000}
    assert req["headers"]["steel-api-key"] == "key-123"
    assert req["headers"]["content-type"] == "application/json"


def test_local_client_sends_no_auth_header(steel_api) -> None:
    api, base = steel_api
    api.routes[("POST", "/v1/sessions")] = (200, {"id": "s-1", "status": "live"})
    _client(base, api_key=None).create_session()
    assert "steel-api-key" not in api.requests[0]["headers"]
    assert api.requests[0]["body"] == {"timeout": 900000}


def test_retrieve_session_status(steel_api) -> None:
    api, base = steel_api
    api.routes[("GET", "/v1/sessions/s-1")] = (200, {"id": "s-1", "status": "released"})
    info = _client(base).retrieve_session("s-1")
    assert info.status == "released"
    assert not info.is_live


def test_release_session(steel_api) -> None:
    api, base = steel_api
    api.routes[("POST", "/v1/sessions/s-1/release")] = (200, {"success": True})
    _client(base).release_session("s-1")
    assert api.requests[0]["method"] == "POST"
    assert api.requests[0]["path"] == "/v1/sessions/s-1/release"


def test_http_error_carries_status(steel_api) -> None:
    _, base = steel_api
    with pytest.raises(HttpClientError) as excinfo:
        _client(base).retrieve_session("missing")
    assert excinfo.value.status == 404
    assert "not found" in str(excinfo.value)


def test_payload_without_id_is_rejected(steel_api) -> None:
    api, base = steel_api
    api.routes[("POST", "/v1/sessions")] = (200, {"status": "live"})
    with pytest.raises(HttpClientError, match="no session id"):
        _client(base).create_session()


def test_empty_body_is_none(steel_api) -> None:
    api, base = steel_api
    api.routes[("POST", "/v1/sessions/s-1/release")] = (200, None)
    assert request_json("POST", f"{base}/v1/sessions/s-1/release", body={}) is None


def test_unreachable_host_is_http_client_error() -> None:
    with pytest.raises(HttpClientError):
        request_json("GET", "http://127.0.0.1:9/v1/sessions/x", timeout=0.5)


def test_rejects_non_http_scheme() -> None:
    with pytest.raises(HttpClientError, match="http/https"):
        request_json("GET", "file:///etc/passwd")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("live", "live"), ("LIVE", "live"), ("released", "released"), ("failed", "failed"), ("idle", "failed"), (None, "failed")],
)
def test_normalize_status(raw: Any, expected: str) -> None:
    assert normalize_status(raw) == expected
