"""Database session configuration."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from room_indexer.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import room_indexer.models  # noqa: E402,F401


def _connect_args(url: str, sqlite_timeout: float) -> dict[str, Any]:
    # Ingestions run their store calls on worker threads; concurrent writers
    # wait up to ``sqlite_timeout`` seconds for the database lock.
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": sqlite_timeout}
    return {}


def build_engine(url: str, *, echo: bool = False, sqlite_timeout: float = 30.0) -> Engine:
    """Create an engine for ``url`` with the connection options the crawler needs."""
    return create_engine(
        url,
        pool_pre_ping=True,
        echo=echo,
        connect_args=_connect_args(url, sqlite_timeout),
    )


engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=engine)
