"""Persistence helpers for the room index."""
