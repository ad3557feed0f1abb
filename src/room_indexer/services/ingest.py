"""Per-server ingestion of a public room directory.

This module provides the ServerIngestor class that replaces the stored room
set of one server with a fresh copy of its directory. The whole replacement
runs in a single database transaction: every page is fetched and validated
first, then written and committed together, or nothing about the server changes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from room_indexer.core.errors import CrawlError, StoreError
from room_indexer.models import Room
from room_indexer.repositories.room_repo import RoomRepository
from room_indexer.schemas.directory import PublicRoomEntry, PublicRoomsPage
from room_indexer.services.aliases import server_from_alias
from room_indexer.services.directory import DirectoryPaginator
from room_indexer.services.federation import FederationClient
from room_indexer.services.resolver import resolve_server_address

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Summary of one committed server ingestion."""

    host: str
    address: str
    pages: int = 0
    rooms: int = 0
    rooms_removed: int = 0
    new_servers: int = 0


def room_from_entry(server: str, entry: PublicRoomEntry) -> Room:
    """Map a directory entry onto a Room row owned by ``server``."""
    return Room(
        id=entry.room_id,
        server=server,
        alias=entry.canonical_alias,
        title=entry.name,
        topic=entry.topic,
        avatar=entry.avatar_url,
        members=max(0, entry.num_joined_members),
    )


class ServerIngestor:
    """Crawls one server's directory into the room store.

    The HTTP client and the session factory are shared by every ingestion
    of a crawl run; each call to ``ingest`` opens its own session and
    transaction.
    """

    def __init__(
        self,
        client: FederationClient,
        session_factory: Callable[[], Session],
        *,
        page_limit: int | None = None,
    ) -> None:
        """Initialize the ingestor.

        Args:
            client: Fetch client used for the well-known lookup and directory pages.
            session_factory: Callable returning a new SQLAlchemy session.
            page_limit: Optional override of the directory page size.
        """
        self.client = client
        self.session_factory = session_factory
        self.page_limit = page_limit

    async def ingest(self, host: str) -> IngestResult:
        """Replace the stored rooms of ``host`` with its current directory.

        Every page is fetched and validated before the store is touched, so
        the write transaction covers only the delete, inserts and commit and
        never holds a database lock across network round trips.

        Raises:
            TransportError: if a directory page could not be fetched.
            ResponseParseError: if a directory page did not parse.
            StoreError: if a database operation failed.
        """
        address = await resolve_server_address(self.client, host)
        result = IngestResult(host=host, address=address)
        paginator = DirectoryPaginator(self.client, address, limit=self.page_limit)

        pages = [page async for page in paginator]
        result.pages = paginator.pages_fetched

        with self.session_factory() as db:
            try:
                await asyncio.to_thread(self._replace_rooms, db, host, pages, result)
            except SQLAlchemyError as exc:
                await asyncio.to_thread(db.rollback)
                logger.error("Store error while ingesting %s: %s", host, exc)
                raise StoreError(f"Failed to store rooms for {host}: {exc}") from exc
            except CrawlError:
                await asyncio.to_thread(db.rollback)
                raise

        logger.info(
            "Ingested %s via %s: %d room(s) on %d page(s), %d new server(s)",
            host,
            address,
            result.rooms,
            result.pages,
            result.new_servers,
        )
        return result

    def _replace_rooms(
        self,
        db: Session,
        host: str,
        pages: list[PublicRoomsPage],
        result: IngestResult,
    ) -> None:
        """Swap the stored rooms of ``host`` for ``pages`` in one transaction."""
        repo = RoomRepository(db)
        registered: set[str] = set()
        result.rooms_removed = repo.delete_rooms(host)
        for page in pages:
            rooms, new_servers = self._store_page(repo, host, page, registered)
            result.rooms += rooms
            result.new_servers += new_servers
        db.commit()

    def _store_page(
        self,
        repo: RoomRepository,
        host: str,
        page: PublicRoomsPage,
        registered: set[str],
    ) -> tuple[int, int]:
        """Write one page of rooms and register the servers their aliases name."""
        new_servers = 0
        for entry in page.chunk:
            repo.insert_room(room_from_entry(host, entry))

            if not entry.canonical_alias:
                continue
            candidate = server_from_alias(entry.canonical_alias)
            if candidate is None or candidate in registered:
                continue

            registered.add(candidate)
            if repo.upsert_server_if_absent(candidate):
                new_servers += 1
                logger.debug("Discovered server %s via %s", candidate, entry.canonical_alias)

        repo.flush()
        return len(page.chunk), new_servers
