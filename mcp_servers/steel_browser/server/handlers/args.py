"""Argument checks shared by the handlers.

Each ``check_*`` returns an error message, or ``None`` when the arguments are
usable. The dispatcher runs them before touching the session; handlers run
them again so they stay safe to call directly.
"""

from __future__ import annotations

import math
from typing import Any

WAIT_MAX_SECONDS = 10.0


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def missing_string(args: dict[str, Any], key: str) -> str | None:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        return f"Missing required argument: {key}"
    return None


def optional_string(args: dict[str, Any], key: str) -> str | None:
    value = args.get(key)
    if value is not None and not isinstance(value, str):
        return f"Argument {key} must be a string"
    return None


def check_label(args: dict[str, Any]) -> str | None:
    label = args.get("label")
    if label is None:
        return "Missing required argument: label"
    if not is_number(label) or (isinstance(label, float) and not label.is_integer()) or label < 1:
        return f"Argument label must be a positive integer, got {label!r}"
    return None


def check_pixels(args: dict[str, Any]) -> str | None:
    pixels = args.get("pixels")
    if pixels is None:
        return None
    if not is_number(pixels) or pixels < 0:
        return f"Argument pixels must be a non-negative number, got {pixels!r}"
    return None


def check_seconds(args: dict[str, Any]) -> str | None:
    seconds = args.get("seconds")
    if seconds is None:
        return "Missing required argument: seconds"
    if not is_number(seconds):
        return f"Argument seconds must be a number, got {seconds!r}"
    if seconds < 0 or seconds > WAIT_MAX_SECONDS:
        return f"Wait time must be between 0 and {WAIT_MAX_SECONDS:g} seconds, got {seconds:g}"
    return None


def first_problem(*problems: str | None) -> str | None:
    return next((p for p in problems if p), None)
