from __future__ import annotations

import math
import os
from dataclasses import dataclass
from urllib.parse import urlencode, urlsplit, urlunsplit

DEFAULT_REMOTE_BASE_URL = "https://api.steel.dev"
DEFAULT_LOCAL_BASE_URL = "http://localhost:3000"
DEFAULT_CONNECT_URL = "wss://connect.steel.dev"
DEFAULT_SESSION_TIMEOUT_MS = 900_000  # 15 minutes of server-side idle allowance


class ConfigError(Exception):
    pass


def _env_flag(name: str, default: bool) -> bool:
    raw = (os.environ.get(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    try:
        value = float(os.environ.get(name) or default)
    except ValueError:
        return default
    if not math.isfinite(value):
        return default
    return max(minimum, value)


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    try:
        value = int(os.environ.get(name) or default)
    except ValueError:
        return default
    return max(minimum, value)


def parse_viewport(raw: str | None, default: tuple[int, int] = (1280, 720)) -> tuple[int, int]:
    """Parse ``WIDTHxHEIGHT``; anything malformed yields the default."""
    text = (raw or "").strip().lower()
    if "x" not in text:
        return default
    w, _, h = text.partition("x")
    try:
        width, height = int(w), int(h)
    except ValueError:
        return default
    if width <= 0 or height <= 0:
        return default
    return width, height


@dataclass
class SteelConfig:
    local: bool = False
    api_key: str | None = None
    base_url: str = DEFAULT_REMOTE_BASE_URL
    connect_url: str = DEFAULT_CONNECT_URL
    global_wait_seconds: float = 0.0
    session_timeout_ms: int = DEFAULT_SESSION_TIMEOUT_MS
    release_on_cleanup: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    cdp_timeout: float = 30.0
    http_timeout: float = 30.0
    max_screenshots: int = 0
    max_console_logs: int = 0
    max_content_tokens: int = 150_000

    @property
    def mode(self) -> str:
        return "local" if self.local else "remote"

    @classmethod
    def from_env(cls) -> SteelConfig:
        local = _env_flag("STEEL_LOCAL", False)
        api_key = (os.environ.get("STEEL_API_KEY") or "").strip() or None
        base_url = (os.environ.get("STEEL_BASE_URL") or "").strip()
        if not base_url:
            base_url = DEFAULT_LOCAL_BASE_URL if local else DEFAULT_REMOTE_BASE_URL
        connect_url = (os.environ.get("STEEL_CONNECT_URL") or "").strip() or DEFAULT_CONNECT_URL
        width, height = parse_viewport(os.environ.get("STEEL_VIEWPORT"))
        return cls(
            local=local,
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            connect_url=connect_url,
            global_wait_seconds=_env_float("GLOBAL_WAIT_SECONDS", 0.0),
            session_timeout_ms=_env_int("STEEL_SESSION_TIMEOUT_MS", DEFAULT_SESSION_TIMEOUT_MS, minimum=1),
            release_on_cleanup=_env_flag("STEEL_RELEASE_ON_CLEANUP", True),
            viewport_width=width,
            viewport_height=height,
            cdp_timeout=_env_float("STEEL_CDP_TIMEOUT", 30.0, minimum=1.0),
            http_timeout=_env_float("STEEL_HTTP_TIMEOUT", 30.0, minimum=1.0),
            max_screenshots=_env_int("STEEL_MAX_SCREENSHOTS", 0),
            max_console_logs=_env_int("STEEL_MAX_CONSOLE_LOGS", 0),
            max_content_tokens=_env_int("STEEL_MAX_CONTENT_TOKENS", 150_000, minimum=1),
        )

    def validate(self) -> None:
        if not self.local and not self.api_key:
            raise ConfigError("STEEL_API_KEY is required when STEEL_LOCAL is not 'true'")
        scheme = urlsplit(self.base_url).scheme
        if scheme not in ("http", "https"):
            raise ConfigError(f"STEEL_BASE_URL must be http(s), got {self.base_url!r}")

    def transport_endpoint(self, session_id: str) -> str:
        """Websocket endpoint the automation layer connects to for ``session_id``."""
        if self.local:
            parts = urlsplit(self.base_url)
            scheme = "wss" if parts.scheme == "https" else "ws"
            query = urlencode({"sessionId": session_id})
            return urlunsplit((scheme, parts.netloc, parts.path or "/", query, ""))
        query = urlencode({"apiKey": self.api_key or "", "sessionId": session_id})
        return f"{self.connect_url.rstrip('/')}?{query}"
