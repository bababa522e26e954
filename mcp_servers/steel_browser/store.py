"""In-memory stores owned by the server: screenshots and console output."""

from __future__ import annotations

import io
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger("mcp.steel.store")

SCREENSHOT_SCHEME = "screenshot://"
CONSOLE_LOGS_URI = "console://logs"


def generate_screenshot_name() -> str:
    """Timestamp-based name, e.g. ``screenshot-2024-05-01T12-30-05-123Z``."""
    now = time.time()
    stamp = time.strftime("%Y-%m-%dT%H-%M-%S", time.gmtime(now))
    return f"screenshot-{stamp}-{int(now * 1000) % 1000:03d}Z"


@dataclass(frozen=True)
class Screenshot:
    name: str
    data: bytes
    width: int
    height: int
    mime_type: str = "image/png"

    @property
    def uri(self) -> str:
        return f"{SCREENSHOT_SCHEME}{self.name}"


def describe_image(data: bytes) -> tuple[str, int, int]:
    """Return ``(mime_type, width, height)``; raises ``ValueError`` for non-images."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            fmt = (img.format or "PNG").lower()
            width, height = img.size
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError(f"not a valid image: {exc}") from exc
    return f"image/{'jpeg' if fmt == 'jpg' else fmt}", width, height


class ResourceStore:
    """Name → screenshot map. Last write wins; no expiry unless ``capacity`` is set.

    ``capacity`` is an eviction hook: when positive, the oldest entries are
    dropped once more than ``capacity`` screenshots are held.
    """

    def __init__(self, capacity: int = 0) -> None:
        self.capacity = max(0, int(capacity))
        self._items: OrderedDict[str, Screenshot] = OrderedDict()
        self._lock = threading.Lock()
        self._listeners: list[Callable[[], None]] = []

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` after every change to the set of names."""
        self._listeners.append(listener)

    def put(self, name: str | None, data: bytes) -> Screenshot:
        mime_type, width, height = describe_image(data)
        key = (name or "").strip() or generate_screenshot_name()
        shot = Screenshot(name=key, data=data, width=width, height=height, mime_type=mime_type)
        with self._lock:
            self._items.pop(key, None)
            self._items[key] = shot
            evicted: list[str] = []
            while self.capacity and len(self._items) > self.capacity:
                old, _ = self._items.popitem(last=False)
                evicted.append(old)
        if evicted:
            logger.info("screenshots_evicted names=%s", evicted)
        for listener in list(self._listeners):
            listener()
        return shot

    def get(self, name: str) -> Screenshot | None:
        with self._lock:
            return self._items.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def list(self) -> list[Screenshot]:
        with self._lock:
            return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items


class ConsoleLog:
    """Append-only sequence of ``[type] text`` console lines."""

    def __init__(self, capacity: int = 0) -> None:
        self.capacity = max(0, int(capacity))
        self._entries: list[str] = []
        self._lock = threading.Lock()
        self._listeners: list[Callable[[str], None]] = []

    def subscribe(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)

    def append(self, entry: str) -> None:
        with self._lock:
            self._entries.append(entry)
            if self.capacity and len(self._entries) > self.capacity:
                del self._entries[: len(self._entries) - self.capacity]
        for listener in list(self._listeners):
            listener(entry)

    def entries(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def text(self) -> str:
        return "\n".join(self.entries())

    def __len__(self) -> int:
        return len(self._entries)
