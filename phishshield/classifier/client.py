"""HTTP client for the PhishShield classification service."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from ..constants import (
    ENDPOINT_CHECK_URL,
    ENDPOINT_HEALTH,
    ENDPOINT_REPORT_URL,
    LIST_ENDPOINTS,
)
from ..models import Verdict
from .errors import (
    ClassifierAPIError,
    ClassifierRejected,
    ClassifierUnavailable,
    MalformedResponse,
)

logger = logging.getLogger(__name__)


class ClassifierClient:
    """
    Talks to the remote classification service.

    Provides:
    - Shared httpx client with a request timeout
    - Uniform translation of transport, status and payload problems into
      ClassifierError subclasses

    The service decides the risk tier; this client never scores URLs itself.
    """

    user_agent: str = "PhishShield/1.0"

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout_seconds),
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.request(method, path, json=payload)
        except httpx.TimeoutException as e:
            raise ClassifierUnavailable(f"Request to {path} timed out") from e
        except httpx.HTTPError as e:
            raise ClassifierUnavailable(f"Request to {path} failed: {e}") from e

    @staticmethod
    def _decode(resp: httpx.Response) -> dict[str, Any]:
        """Parse a JSON object body; an `error` field wins over the HTTP status."""
        try:
            data = resp.json()
        except (json.JSONDecodeError, ValueError):
            data = None

        if isinstance(data, dict) and data.get("error"):
            raise ClassifierRejected(str(data["error"]))
        if not resp.is_success:
            raise ClassifierAPIError(resp.status_code, resp.reason_phrase or "error", resp.text[:500])
        if not isinstance(data, dict):
            raise MalformedResponse("Response body is not a JSON object")
        return data

    async def check_url(self, url: str) -> dict[str, Any]:
        """POST /api/check-url and return the raw verdict payload."""
        resp = await self._request("POST", ENDPOINT_CHECK_URL, {"url": url})
        return self._decode(resp)

    async def classify(self, url: str) -> Verdict:
        """Classify a URL and parse the result into a Verdict."""
        data = await self.check_url(url)
        try:
            return Verdict.from_response(url, data)
        except ValueError as e:
            raise MalformedResponse(str(e)) from e

    async def health(self) -> bool:
        """GET / and report whether the service answered with 2xx."""
        try:
            resp = await self._request("GET", ENDPOINT_HEALTH)
        except ClassifierUnavailable as e:
            logger.warning("Classifier health probe failed: %s", e)
            return False
        return resp.is_success

    async def _post_action(self, path: str, url: str) -> dict[str, Any]:
        resp = await self._request("POST", path, {"url": url})
        data = self._decode(resp)
        if not data.get("ok"):
            raise ClassifierRejected(str(data.get("error") or "Unknown error"))
        return data

    async def report_url(self, url: str) -> dict[str, Any]:
        """Submit a URL for manual review."""
        return await self._post_action(ENDPOINT_REPORT_URL, url)

    async def add_to_list(self, url: str, list_type: str) -> dict[str, Any]:
        """Add a URL to the service's whitelist or blacklist."""
        path = LIST_ENDPOINTS.get((list_type or "").strip().lower())
        if path is None:
            raise ValueError(f"Unknown list type: {list_type}")
        return await self._post_action(path, url)
