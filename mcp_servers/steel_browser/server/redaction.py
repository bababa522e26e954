"""Redaction utilities for logging.

Steel transport endpoints carry the API key as a query parameter, and tool
results carry base64 screenshots; neither belongs in a log line.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_SENSITIVE_KEYS = {
    "apikey",
    "api_key",
    "api-key",
    "steel-api-key",
    "x-api-key",
    "token",
    "access_token",
    "auth",
    "authorization",
    "password",
    "secret",
}

REDACTED = "<redacted>"
_MAX_LOGGED_TEXT = 200


def _is_sensitive(key: str) -> bool:
    return (key or "").strip().lower() in _SENSITIVE_KEYS


def redact_url(url: str) -> str:
    """Mask sensitive query values (``apiKey=...``) and drop ``user:pass@``.

    Returns the original URL unchanged when no redaction is needed.
    """
    if not isinstance(url, str) or not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    changed = False
    netloc = parts.netloc
    if "@" in netloc:
        netloc = netloc.split("@", 1)[1]
        changed = True

    query = parts.query
    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        out_pairs = [(k, REDACTED if _is_sensitive(k) and v else v) for k, v in pairs]
        if out_pairs != pairs:
            query = urlencode(out_pairs, safe="<>")
            changed = True

    if not changed:
        return url
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


def _shorten(text: str, limit: int = _MAX_LOGGED_TEXT) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}… <{len(text) - limit} more chars>"


def redact_tool_arguments(tool: str, args: dict[str, Any]) -> dict[str, Any]:
    """Tool arguments safe for a log line: URLs redacted, typed text shortened."""
    out: dict[str, Any] = {}
    for key, value in (args or {}).items():
        if isinstance(value, str):
            if key == "url":
                value = redact_url(value)
            elif tool == "type" and key == "text":
                value = f"<text len={len(value)}>"
            else:
                value = _shorten(value)
        out[key] = value
    return out


def redact_jsonrpc_for_log(payload: dict[str, Any]) -> dict[str, Any]:
    """Shallow-copied JSON-RPC frame with tool arguments and images redacted."""
    msg = dict(payload or {})
    params = msg.get("params")
    if msg.get("method") == "tools/call" and isinstance(params, dict):
        name = params.get("name")
        args = params.get("arguments")
        if isinstance(name, str) and isinstance(args, dict):
            msg["params"] = {**params, "arguments": redact_tool_arguments(name, args)}

    result = msg.get("result")
    if isinstance(result, dict) and isinstance(result.get("content"), list):
        content = []
        for item in result["content"]:
            if isinstance(item, dict) and item.get("type") == "image" and isinstance(item.get("data"), str):
                item = {**item, "data": f"<omitted image base64 len={len(item['data'])}>"}
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                item = {**item, "text": _shorten(item["text"])}
            content.append(item)
        msg["result"] = {**result, "content": content}
    return msg
