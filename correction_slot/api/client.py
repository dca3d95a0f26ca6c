"""Authenticated HTTP access to the 42 intra API."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from correction_slot.constants import HTTP_TIMEOUT_SEC

if TYPE_CHECKING:
    from correction_slot.auth.models import Token

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """A request to the API failed or returned something unusable."""


class IntraClient:
    """HTTP client bound to one OAuth token."""

    def __init__(
        self,
        base_url: str,
        token: Token,
        transport: httpx.BaseTransport | None = None,
        timeout: float = HTTP_TIMEOUT_SEC,
    ):
        self.token = token
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": token.authorization_header(),
                "Accept": "application/json",
                "User-Agent": "correction-slot (python)",
            },
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "IntraClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get(self, path: str, params: dict[str, Any] | None = None) -> bytes:
        """Issue one GET and return the fully read body."""
        logger.debug("GET %s %s", path, params or {})
        try:
            response = self._client.get(path, params=params)
            body = response.read()
        except httpx.HTTPError as exc:
            raise ApiError(f"GET {path} failed: {exc}") from exc
        if not response.is_success:
            text = body.decode("utf-8", "ignore")
            raise ApiError(_friendly_error(response.status_code, text))
        return body

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        body = self.get(path, params=params)
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ApiError(f"GET {path} returned invalid JSON: {exc}") from exc


def _friendly_error(status_code: int, raw: str) -> str:
    if status_code == 401:
        return "HTTP 401: access token rejected. Delete the token file and log in again."
    return f"HTTP {status_code}: {raw}"
