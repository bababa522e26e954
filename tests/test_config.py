from __future__ import annotations

import pytest

from mcp_servers.steel_browser.config import ConfigError, SteelConfig, parse_viewport

_ENV = [
    "STEEL_LOCAL",
    "STEEL_API_KEY",
    "STEEL_BASE_URL",
    "STEEL_CONNECT_URL",
    "GLOBAL_WAIT_SECONDS",
    "STEEL_SESSION_TIMEOUT_MS",
    "STEEL_RELEASE_ON_CLEANUP",
    "STEEL_VIEWPORT",
    "STEEL_CDP_TIMEOUT",
    "STEEL_HTTP_TIMEOUT",
    "STEEL_MAX_SCREENSHOTS",
    "STEEL_MAX_CONSOLE_LOGS",
    "STEEL_MAX_CONTENT_TOKENS",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_remote_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEEL_API_KEY", "key-123")
    cfg = SteelConfig.from_env()
    assert cfg.mode == "remote"
    assert cfg.base_url == "https://api.steel.dev"
    assert cfg.session_timeout_ms == 900_000
    assert (cfg.viewport_width, cfg.viewport_height) == (1280, 720)
    assert cfg.global_wait_seconds == 0.0
    assert cfg.release_on_cleanup is True
    cfg.validate()


def test_local_mode_default_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEEL_LOCAL", "true")
    cfg = SteelConfig.from_env()
    assert cfg.local
    assert cfg.base_url == "http://localhost:3000"
    cfg.validate()  # no key needed locally


def test_remote_without_key_is_fatal() -> None:
    with pytest.raises(ConfigError, match="STEEL_API_KEY"):
        SteelConfig.from_env().validate()


def test_non_http_base_url_is_rejected() -> None:
    with pytest.raises(ConfigError):
        SteelConfig(local=True, base_url="ftp://steel").validate()


def test_overrides_and_malformed_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEEL_LOCAL", "1")
    monkeypatch.setenv("STEEL_BASE_URL", "https://steel.internal:8443/")
    monkeypatch.setenv("GLOBAL_WAIT_SECONDS", "2.5")
    monkeypatch.setenv("STEEL_SESSION_TIMEOUT_MS", "soon")
    monkeypatch.setenv("STEEL_RELEASE_ON_CLEANUP", "false")
    monkeypatch.setenv("STEEL_VIEWPORT", "1920x1080")
    monkeypatch.setenv("STEEL_CDP_TIMEOUT", "-4")
    cfg = SteelConfig.from_env()
    assert cfg.base_url == "https://steel.internal:8443"
    assert cfg.global_wait_seconds == 2.5
    assert cfg.session_timeout_ms == 900_000
    assert cfg.release_on_cleanup is False
    assert (cfg.viewport_width, cfg.viewport_height) == (1920, 1080)
    assert cfg.cdp_timeout == 1.0


@pytest.mark.parametrize("raw", ["inf", "-inf", "nan", "1e400"])
def test_non_finite_wait_falls_back_to_default(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("STEEL_LOCAL", "true")
    monkeypatch.setenv("GLOBAL_WAIT_SECONDS", raw)
    monkeypatch.setenv("STEEL_HTTP_TIMEOUT", raw)
    cfg = SteelConfig.from_env()
    assert cfg.global_wait_seconds == 0.0
    assert cfg.http_timeout == 30.0


@pytest.mark.parametrize("raw", [None, "", "big", "0x10", "-1x5", "axb"])
def test_parse_viewport_falls_back(raw: str | None) -> None:
    assert parse_viewport(raw) == (1280, 720)


def test_local_endpoint_uses_ws_scheme() -> None:
    cfg = SteelConfig(local=True, base_url="http://localhost:3000")
    endpoint = cfg.transport_endpoint("abc")
    assert endpoint.startswith("ws://")
    assert endpoint == "ws://localhost:3000/?sessionId=abc"


def test_local_https_endpoint_uses_wss() -> None:
    cfg = SteelConfig(local=True, base_url="https://steel.internal/api")
    assert cfg.transport_endpoint("abc") == "wss://steel.internal/api?sessionId=abc"


def test_remote_endpoint_is_fixed_host_with_key() -> None:
    cfg = SteelConfig(local=False, api_key="key-123", base_url="https://api.steel.dev")
    endpoint = cfg.transport_endpoint("sess 1")
    assert endpoint.startswith("wss://connect.steel.dev")
    assert "apiKey=key-123" in endpoint
    assert "sessionId=sess+1" in endpoint
    # A custom base URL does not move the remote transport host.
    cfg.base_url = "https://elsewhere.example"
    assert cfg.transport_endpoint("x").startswith("wss://connect.steel.dev?")
