"""Data access helpers for servers and rooms."""
from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from room_indexer.core.errors import StoreError
from room_indexer.models import Room, Server

__all__ = ["RoomRepository"]


class RoomRepository:
    """Thin wrapper around database access for the room index.

    The repository never commits; the caller owns the transaction of the
    session it passes in.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def list_servers(self) -> list[Server]:
        """Return every known server ordered by host."""
        result = self.session.execute(select(Server).order_by(Server.host))
        return list(result.scalars())

    def upsert_server_if_absent(self, host: str) -> bool:
        """Register ``host`` unless it is already known.

        Uses ``INSERT ... ON CONFLICT DO NOTHING`` so an existing row,
        including its blacklist flag, is left exactly as it was.

        Returns:
            True if a new row was inserted.
        """
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            raise StoreError(f"Server registration is not supported on dialect {dialect!r}")

        stmt = (
            insert(Server)
            .values(host=host, last_tried=None, last_error=None, blacklist=False)
            .on_conflict_do_nothing(index_elements=[Server.host])
        )
        result = self.session.execute(stmt)
        return bool(result.rowcount)

    def delete_rooms(self, server: str) -> int:
        """Delete every room listed for ``server`` and return the row count."""
        result = self.session.execute(delete(Room).where(Room.server == server))
        return result.rowcount or 0

    def insert_room(self, room: Room) -> Room:
        """Stage a room row for insertion; it is written on the next flush."""
        self.session.add(room)
        return room

    def flush(self) -> None:
        """Write staged rows so constraint violations surface now."""
        self.session.flush()

    def list_rooms(self, server: str) -> list[Room]:
        """Return the rooms currently stored for ``server``."""
        result = self.session.execute(
            select(Room).where(Room.server == server).order_by(Room.id)
        )
        return list(result.scalars())
