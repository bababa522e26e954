"""Page HTML → compact, token-bounded text for the ``get_content`` tool."""

from __future__ import annotations

import functools
import re
from typing import Any

import tiktoken

TRUNCATION_SUFFIX = "... (truncated)"
DEFAULT_ENCODING = "cl100k_base"

_BETWEEN_TAGS_RE = re.compile(r">\s+<")
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_html(html: str) -> str:
    """Drop whitespace between tags and collapse every other run to one space."""
    text = _BETWEEN_TAGS_RE.sub("><", html or "")
    return _WHITESPACE_RE.sub(" ", text).strip()


@functools.lru_cache(maxsize=4)
def get_encoding(name: str = DEFAULT_ENCODING) -> Any:
    return tiktoken.get_encoding(name)


def truncate_tokens(text: str, max_tokens: int, *, encoding: Any | None = None) -> tuple[str, bool]:
    """Cut ``text`` to ``max_tokens`` tokens; returns ``(text, truncated)``."""
    enc = encoding if encoding is not None else get_encoding()
    tokens = enc.encode(text)
    if len(tokens) <= max_tokens:
        return text, False
    return enc.decode(tokens[: max(0, int(max_tokens))]) + TRUNCATION_SUFFIX, True
