from __future__ import annotations

from mcp_servers.steel_browser.server.redaction import (
    redact_jsonrpc_for_log,
    redact_tool_arguments,
    redact_url,
)


def test_redact_url_keeps_normal_query() -> None:
    url = "https://example.com/search?q=hello&sort=asc"
    assert redact_url(url) == url


def test_redact_url_masks_transport_api_key() -> None:
    out = redact_url("wss://connect.steel.dev?apiKey=sk-live-123&sessionId=abc")
    assert "sk-live-123" not in out
    assert "apiKey=<redacted>" in out
    assert "sessionId=abc" in out


def test_redact_url_drops_userinfo() -> None:
    assert redact_url("https://user:pw@example.com/x") == "https://example.com/x"


def test_redact_tool_arguments_hides_typed_text() -> None:
    out = redact_tool_arguments("type", {"label": 3, "text": "hunter2"})
    assert out == {"label": 3, "text": "<text len=7>"}
    nav = redact_tool_arguments("navigate", {"url": "https://a.example/?token=t0k"})
    assert "t0k" not in nav["url"]


def test_redact_jsonrpc_omits_image_data() -> None:
    frame = {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {"content": [{"type": "text", "text": "ok"}, {"type": "image", "data": "A" * 50, "mimeType": "image/png"}]},
    }
    out = redact_jsonrpc_for_log(frame)
    assert out["result"]["content"][1]["data"] == "<omitted image base64 len=50>"
    assert frame["result"]["content"][1]["data"] == "A" * 50
