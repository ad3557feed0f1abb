"""Paginated traversal of a server's public room directory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from urllib.parse import quote

from pydantic import ValidationError

from room_indexer.core.errors import ResponseParseError, TransportError
from room_indexer.core.settings import settings
from room_indexer.schemas.directory import PublicRoomsPage
from room_indexer.services.federation import FederationClient

logger = logging.getLogger(__name__)

PUBLIC_ROOMS_PATH = "/_matrix/client/v3/publicRooms"


def public_rooms_url(address: str, limit: int, since: str | None = None) -> str:
    """Build the directory request URL for one page."""
    url = f"https://{address}{PUBLIC_ROOMS_PATH}?limit={limit}"
    if since is not None:
        url += f"&since={quote(since, safe='')}"
    return url


class DirectoryPaginator:
    """Walks the public room listing of one resolved address page by page.

    Iterating yields each parsed page in order. Each request after the
    first carries the previous page's ``next_batch`` token, and the walk
    stops after the first page without one. Any transport, status or parse
    failure raises out of the iteration; nothing is retried.

    A paginator can only be iterated once.
    """

    def __init__(
        self,
        client: FederationClient,
        address: str,
        *,
        limit: int | None = None,
    ) -> None:
        self.client = client
        self.address = address
        self.limit = settings.directory_page_limit if limit is None else limit
        self.pages_fetched = 0
        self._started = False

    def __aiter__(self) -> AsyncIterator[PublicRoomsPage]:
        if self._started:
            raise RuntimeError(f"Directory of {self.address} has already been traversed")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[PublicRoomsPage]:
        since: str | None = None
        while True:
            page = await self._fetch_page(since)
            self.pages_fetched += 1
            logger.debug(
                "Fetched page %d of %s (%d rooms)",
                self.pages_fetched,
                self.address,
                len(page.chunk),
            )
            yield page

            if page.is_last:
                logger.info(
                    "Directory of %s exhausted after %d page(s)", self.address, self.pages_fetched
                )
                return
            since = page.next_batch

    async def _fetch_page(self, since: str | None) -> PublicRoomsPage:
        url = public_rooms_url(self.address, self.limit, since)
        result = await self.client.get(url)

        if not result.ok:
            raise TransportError(
                f"Directory request {url} answered {result.status}",
                url=url,
                status=result.status,
            )

        try:
            return PublicRoomsPage.model_validate_json(result.body)
        except ValidationError as exc:
            logger.error("Unparsable directory page from %s: %s, body: %s", url, exc, result.body)
            raise ResponseParseError(
                f"Directory response from {url} did not parse: {exc}",
                url=url,
                body=result.body,
            ) from exc
