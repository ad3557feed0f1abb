# tests/conftest.py
from __future__ import annotations

import json
import os
from collections.abc import Callable, Generator, Iterator
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from room_indexer.db.session import Base
from room_indexer.models import Room, Server
from room_indexer.services.federation import FederationClient

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    """Session factory bound to the test engine; tables are emptied afterwards."""
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def room_entry(room_id: str, alias: str | None = None, members: int = 1, **extra: Any) -> dict[str, Any]:
    """Build one directory ``chunk`` entry as a server would send it."""
    entry: dict[str, Any] = {
        "room_id": room_id,
        "num_joined_members": members,
        "guest_can_join": False,
        "world_readable": True,
    }
    if alias is not None:
        entry["canonical_alias"] = alias
    entry.update(extra)
    return entry


class FakeFederation:
    """Programmable stand-in for remote servers behind ``httpx.MockTransport``.

    Directory pages are registered per address and served in order of the
    ``since`` token; well-known documents are registered per hostname.
    Every request is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.well_known: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.directories: dict[str, dict[str | None, Callable[[httpx.Request], httpx.Response]]] = {}

    def set_well_known(self, host: str, body: Any = None, *, status: int = 200, raw: str | None = None,
                       error: Exception | None = None) -> None:
        self.well_known[host] = self._responder(body, status=status, raw=raw, error=error)

    def add_page(
        self,
        address: str,
        rooms: list[dict[str, Any]],
        *,
        since: str | None = None,
        next_batch: str | None = None,
    ) -> None:
        body: dict[str, Any] = {"chunk": rooms}
        if next_batch is not None:
            body["next_batch"] = next_batch
        self.directories.setdefault(address, {})[since] = self._responder(body)

    def add_raw_page(self, address: str, *, since: str | None = None, status: int = 200,
                     raw: str | None = None, error: Exception | None = None) -> None:
        self.directories.setdefault(address, {})[since] = self._responder(
            None, status=status, raw=raw, error=error
        )

    def directory_requests(self, address: str | None = None) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.url.path == "/_matrix/client/v3/publicRooms"
            and (address is None or request.url.host == address)
        ]

    @staticmethod
    def _responder(body: Any, *, status: int = 200, raw: str | None = None,
                   error: Exception | None = None) -> Callable[[httpx.Request], httpx.Response]:
        def respond(request: httpx.Request) -> httpx.Response:
            if error is not None:
                if isinstance(error, httpx.RequestError):
                    error.request = request
                raise error
            text = raw if raw is not None else json.dumps(body)
            return httpx.Response(status, text=text)

        return respond

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if request.url.path == "/.well-known/matrix/server":
            responder = self.well_known.get(host)
            if responder is None:
                return httpx.Response(404, text="Not found")
            return responder(request)

        if request.url.path == "/_matrix/client/v3/publicRooms":
            since = parse_qs(urlsplit(str(request.url)).query).get("since", [None])[0]
            responder = self.directories.get(host, {}).get(since)
            if responder is None:
                raise httpx.ConnectError(f"no route to {host}", request=request)
            return responder(request)

        return httpx.Response(404, text="Not found")


@pytest.fixture()
def federation() -> FakeFederation:
    return FakeFederation()


@pytest_asyncio.fixture()
async def federation_client(federation: FakeFederation) -> Any:
    transport = httpx.MockTransport(federation.handle)
    async with httpx.AsyncClient(transport=transport) as http:
        yield FederationClient(http)


@pytest.fixture()
def room_factory() -> Callable[..., dict[str, Any]]:
    return room_entry


@pytest.fixture()
def stored_rooms(session_factory: sessionmaker[Session]) -> Callable[[str], list[Room]]:
    def _stored_rooms(server: str) -> list[Room]:
        with session_factory() as session:
            return session.query(Room).filter(Room.server == server).order_by(Room.id).all()

    return _stored_rooms


@pytest.fixture()
def stored_servers(session_factory: sessionmaker[Session]) -> Callable[[], dict[str, Server]]:
    def _stored_servers() -> dict[str, Server]:
        with session_factory() as session:
            return {server.host: server for server in session.query(Server).all()}

    return _stored_servers
