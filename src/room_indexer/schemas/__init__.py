# src/room_indexer/schemas/__init__.py
"""
Pydantic schemas for the federation documents read during a crawl.
"""

from .directory import PublicRoomEntry, PublicRoomsPage, ServerWellKnown

__all__ = ["PublicRoomEntry", "PublicRoomsPage", "ServerWellKnown"]
