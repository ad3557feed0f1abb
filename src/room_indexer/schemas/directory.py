"""Pydantic schemas for the federation documents consumed by the crawler."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ServerWellKnown(BaseModel):
    """Delegation document served at ``/.well-known/matrix/server``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    server: str | None = Field(default=None, alias="m.server")


class PublicRoomEntry(BaseModel):
    """One entry of a public room directory ``chunk``."""

    model_config = ConfigDict(extra="ignore")

    room_id: str
    canonical_alias: str | None = None
    name: str | None = None
    topic: str | None = None
    avatar_url: str | None = None
    num_joined_members: int
    guest_can_join: bool
    world_readable: bool
    join_rule: str | None = None
    room_type: str | None = None


class PublicRoomsPage(BaseModel):
    """One page of ``/_matrix/client/v3/publicRooms``."""

    model_config = ConfigDict(extra="ignore")

    chunk: list[PublicRoomEntry]
    next_batch: str | None = None
    prev_batch: str | None = None
    total_room_count_estimate: int | None = None

    @property
    def is_last(self) -> bool:
        """Return True when the server offered no continuation token."""
        return not self.next_batch
