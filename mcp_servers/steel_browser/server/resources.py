"""Resource surface: ``console://logs`` first, then ``screenshot://<name>``."""

from __future__ import annotations

import base64
from typing import Any

from ..store import CONSOLE_LOGS_URI, SCREENSHOT_SCHEME, ConsoleLog, ResourceStore


class ResourceNotFoundError(LookupError):
    def __init__(self, uri: str) -> None:
        super().__init__(f"Resource not found: {uri}")
        self.uri = uri


def list_resources(store: ResourceStore, console_log: ConsoleLog) -> list[dict[str, Any]]:
    resources: list[dict[str, Any]] = [
        {"uri": CONSOLE_LOGS_URI, "mimeType": "text/plain", "name": "Browser console logs"}
    ]
    for shot in store.list():
        resources.append({"uri": shot.uri, "mimeType": shot.mime_type, "name": f"Screenshot: {shot.name}"})
    return resources


def read_resource(uri: str, store: ResourceStore, console_log: ConsoleLog) -> dict[str, Any]:
    """Return the ``resources/read`` result for ``uri``."""
    if uri == CONSOLE_LOGS_URI:
        return {"contents": [{"uri": uri, "mimeType": "text/plain", "text": console_log.text()}]}
    if isinstance(uri, str) and uri.startswith(SCREENSHOT_SCHEME):
        shot = store.get(uri[len(SCREENSHOT_SCHEME) :])
        if shot is not None:
            blob = base64.b64encode(shot.data).decode("ascii")
            return {"contents": [{"uri": uri, "mimeType": shot.mime_type, "blob": blob}]}
    raise ResourceNotFoundError(uri)
