from __future__ import annotations

from mcp_servers.steel_browser.content import TRUNCATION_SUFFIX, sanitize_html, truncate_tokens


class CharEncoding:
    """One token per character."""

    def encode(self, text: str) -> list[str]:
        return list(text)

    def decode(self, tokens: list[str]) -> str:
        return "".join(tokens)


def test_sanitize_collapses_whitespace() -> None:
    html = "<html>\n  <body>\n\t<p>Hello\n\n   world</p>  </body>\n</html>"
    assert sanitize_html(html) == "<html><body><p>Hello world</p></body></html>"


def test_sanitize_empty() -> None:
    assert sanitize_html("") == ""


def test_truncate_under_limit_is_unchanged() -> None:
    assert truncate_tokens("abc", 3, encoding=CharEncoding()) == ("abc", False)


def test_truncate_over_limit_appends_suffix() -> None:
    text, truncated = truncate_tokens("abcdef", 4, encoding=CharEncoding())
    assert truncated
    assert text == "abcd" + TRUNCATION_SUFFIX
    assert TRUNCATION_SUFFIX == "... (truncated)"
