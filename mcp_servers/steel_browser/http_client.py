from __future__ import annotations

import json
import ssl
import urllib.parse
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import HTTPSHandler, Request, build_opener

USER_AGENT = "steel-browser-mcp/0.1"


class HttpClientError(Exception):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def _build_request(
    method: str, url: str, body: dict[str, Any] | None, headers: dict[str, str] | None
) -> Request:
    data = json.dumps(body).encode() if body is not None else None
    merged = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if data is not None:
        merged["Content-Type"] = "application/json"
    merged.update(headers or {})
    return Request(url, data=data, headers=merged, method=method)


def request_json(
    method: str,
    url: str,
    *,
    body: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
) -> Any:
    """Perform an HTTP request and decode the JSON response (``None`` for empty bodies)."""
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise HttpClientError("Only http/https are supported")
    req = _build_request(method, url, body, headers)
    try:
        ctx = ssl.create_default_context()
        opener = build_opener(HTTPSHandler(context=ctx))
        with opener.open(req, timeout=timeout) as resp:
            raw = resp.read()
    except HTTPError as exc:
        detail = ""
        try:
            detail = exc.read().decode(errors="replace")[:500]
        except OSError:
            detail = ""
        msg = f"{method} {parsed.path} failed with HTTP {exc.code}"
        if detail:
            msg = f"{msg}: {detail}"
        raise HttpClientError(msg, status=exc.code) from exc
    except (TimeoutError, URLError, OSError) as exc:
        raise HttpClientError(str(exc)) from exc

    if not raw:
        return None
    try:
        return json.loads(raw.decode())
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HttpClientError(f"Invalid JSON from {parsed.path}: {exc}") from exc
