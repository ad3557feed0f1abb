"""SQLAlchemy model for public room listings."""
from sqlalchemy import CheckConstraint, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from room_indexer.db.session import Base


class Room(Base):
    """One public room as observed on one server during its latest crawl."""

    __tablename__ = "rooms"
    __table_args__ = (CheckConstraint("members >= 0", name="ck_rooms_members_non_negative"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    # Nominal hostname of the server whose directory listed this room.
    server: Mapped[str] = mapped_column(Text, primary_key=True)
    alias: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    topic: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    members: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"Room(id={self.id!r}, server={self.server!r}, alias={self.alias!r})"
