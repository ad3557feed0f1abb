"""HTTP fetch client shared by every ingestion of a crawl run.

This module provides the FederationClient class, a thin wrapper around a
pooled ``httpx.AsyncClient``. It only performs plain GET requests with
default headers and reports the status code and text body; interpreting
them is left to the resolver and the directory paginator.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from room_indexer.core.errors import TransportError
from room_indexer.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_MULTIPLE_CHOICES = 300


@dataclass(frozen=True)
class FetchResult:
    """Status code and decoded text body of one GET request."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return HTTP_OK <= self.status < HTTP_MULTIPLE_CHOICES


class FederationClient:
    """Async GET client wrapping one shared connection pool.

    The client may be handed an existing ``httpx.AsyncClient`` (tests pass
    one built on ``httpx.MockTransport``); otherwise it creates its own on
    first use and owns it until ``close``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout_seconds = (
            settings.http_timeout_seconds if timeout_seconds is None else timeout_seconds
        )

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_seconds),
                follow_redirects=True,
            )
        return self._client

    async def get(self, url: str) -> FetchResult:
        """GET ``url`` and return its status and text body.

        Raises:
            TransportError: if the URL is invalid or the request could not be completed.
        """
        client = self._ensure_client()
        start_time = time.monotonic()
        try:
            response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            # Hostnames come from remote alias data and may not form a valid URL.
            raise TransportError(f"GET {url} failed: {exc}", url=url) from exc

        logger.debug(
            "GET %s -> %d (%.3fs)", url, response.status_code, time.monotonic() - start_time
        )
        return FetchResult(status=response.status_code, body=response.text)

    async def close(self) -> None:
        """Close the underlying connection pool if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> FederationClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
