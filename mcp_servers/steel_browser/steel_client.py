"""
Client for the Steel session API (cloud or self-hosted).

Only the three calls the session manager needs are implemented:
create, retrieve and release.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from .config import SteelConfig
from .http_client import HttpClientError, request_json

logger = logging.getLogger("mcp.steel.client")

SESSION_STATUSES = ("live", "released", "failed")


def normalize_status(raw: Any) -> str:
    status = str(raw or "").strip().lower()
    return status if status in SESSION_STATUSES else "failed"


@dataclass(frozen=True)
class SessionInfo:
    id: str
    status: str
    timeout_ms: int | None = None

    @property
    def is_live(self) -> bool:
        return self.status == "live"

    @classmethod
    def from_payload(cls, payload: Any) -> SessionInfo:
        if not isinstance(payload, dict):
            raise HttpClientError("Session API returned a non-object payload")
        session_id = payload.get("id")
        if not isinstance(session_id, str) or not session_id:
            raise HttpClientError("Session API payload has no session id")
        timeout = payload.get("timeout")
        return cls(
            id=session_id,
            status=normalize_status(payload.get("status")),
            timeout_ms=int(timeout) if isinstance(timeout, (int, float)) else None,
        )


class SteelClient:
    """Thin wrapper over the session endpoints of a Steel instance."""

    def __init__(self, config: SteelConfig) -> None:
        self.config = config

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{path}"

    def _headers(self) -> dict[str, str]:
        if self.config.api_key:
            return {"steel-api-key": self.config.api_key}
        return {}

    def create_session(self, timeout_ms: int | None = None) -> SessionInfo:
        body = {"timeout": int(timeout_ms or self.config.session_timeout_ms)}
        payload = request_json(
            "POST",
            self._url("/v1/sessions"),
            body=body,
            headers=self._headers(),
            timeout=self.config.http_timeout,
        )
        info = SessionInfo.from_payload(payload)
        logger.info("session_created id=%s status=%s timeout_ms=%s", info.id, info.status, body["timeout"])
        return info

    def retrieve_session(self, session_id: str) -> SessionInfo:
        payload = request_json(
            "GET",
            self._url(f"/v1/sessions/{quote(session_id, safe='')}"),
            headers=self._headers(),
            timeout=self.config.http_timeout,
        )
        return SessionInfo.from_payload(payload)

    def release_session(self, session_id: str) -> None:
        request_json(
            "POST",
            self._url(f"/v1/sessions/{quote(session_id, safe='')}/release"),
            body={},
            headers=self._headers(),
            timeout=self.config.http_timeout,
        )
        logger.info("session_released id=%s", session_id)
