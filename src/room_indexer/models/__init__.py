# src/room_indexer/models/__init__.py
"""SQLAlchemy models for the room index."""

from .room import Room
from .server import Server

__all__ = ["Room", "Server"]
