"""Shared HTTP plumbing for the lanes backend services."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type

import httpx

from laneops.core.config import Settings
from laneops.core.context import ANONYMOUS, AuthContext
from laneops.core.errors import CollaboratorError

logger = logging.getLogger(__name__)


class LaneServiceClient:
    """
    Base client for the lanes backend.

    One ``httpx.AsyncClient`` is reused per instance. Credentials come from
    the injected ``AuthContext``. Failures are raised as ``error_cls``; no
    request is retried.
    """

    error_cls: Type[CollaboratorError] = CollaboratorError
    service_name = "lanes backend"

    def __init__(
        self,
        base_url: str,
        auth: AuthContext = ANONYMOUS,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            base_url: Backend root, e.g. http://localhost:8080
            auth: Credentials attached to every request
            timeout: Request timeout in seconds
            http_client: Pre-built client (tests pass one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings: Settings, auth: AuthContext = ANONYMOUS, **kwargs: Any):
        return cls(
            base_url=settings.lanes_api_base_url,
            auth=auth,
            timeout=settings.request_timeout_seconds,
            **kwargs,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _get_default_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        headers.update(self.auth.headers())
        return headers

    async def _send(
        self,
        method: str,
        endpoint: str,
        json_data: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        client = await self._get_client()
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{self.service_name} request: {method} {url}")

        try:
            response = await client.request(
                method,
                url,
                headers=self._get_default_headers(),
                json=json_data,
                params=params,
            )
        except httpx.HTTPError as e:
            logger.error(f"{self.service_name} transport error on {method} {endpoint}: {e}")
            raise self.error_cls(f"{self.service_name} unreachable: {e}") from e

        if response.status_code >= 400:
            logger.error(f"{self.service_name} error: {response.status_code} - {response.text}")
            detail = response.text.strip() or response.reason_phrase
            raise self.error_cls(
                f"{self.service_name} error {response.status_code}: {detail}",
                status_code=response.status_code,
            )
        return response

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make an authenticated request and decode the JSON body."""
        response = await self._send(method, endpoint, json_data=json_data, params=params)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise self.error_cls(f"{self.service_name} returned invalid JSON: {e}") from e

    async def _request_text(self, method: str, endpoint: str, json_data: Any = None) -> str:
        response = await self._send(method, endpoint, json_data=json_data)
        return response.text
