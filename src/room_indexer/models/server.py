"""SQLAlchemy model for known federation servers."""
from sqlalchemy import BigInteger, Boolean, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from room_indexer.db.session import Base


class Server(Base):
    """A federation participant discovered through a room alias.

    Rows are only ever inserted (insert-if-absent); the crawl path never
    updates them.
    """

    __tablename__ = "servers"

    # Nominal hostname as it appeared in an alias, not the delegated address.
    host: Mapped[str] = mapped_column(Text, primary_key=True)
    # Epoch seconds of the last crawl attempt. Not written by the crawler yet.
    last_tried: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Not consulted before launch yet; registration must never reset it.
    blacklist: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    def __repr__(self) -> str:
        return f"Server(host={self.host!r}, blacklist={self.blacklist!r})"
