"""Crawl round scheduling across every known server.

This module provides the CrawlScheduler class that loads the known server
set, launches one ingestion per server and waits for all of them. Launches
are spaced by a LaunchThrottle so outbound request bursts are staggered
across servers; once launched, ingestions run concurrently and
independently of each other.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from room_indexer.core.errors import StoreError
from room_indexer.core.settings import settings
from room_indexer.models import Server
from room_indexer.repositories.room_repo import RoomRepository
from room_indexer.services.ingest import IngestResult

# Configure logger for this module
logger = logging.getLogger(__name__)

IngestFn = Callable[[str], Awaitable[IngestResult]]


class LaunchThrottle:
    """Spaces successive launches at least ``interval`` seconds apart.

    The first call to ``wait`` returns immediately. Each later call sleeps
    only for what remains of the interval since the previous slot, so time
    spent by the caller between launches counts toward the spacing.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.interval = max(0.0, float(interval))
        self._clock = clock
        self._sleep = sleep
        self._next_slot: float | None = None

    async def wait(self) -> None:
        """Suspend until the next launch slot opens, then reserve it."""
        now = self._clock()
        if self._next_slot is not None and self._next_slot > now:
            await self._sleep(self._next_slot - now)
            now = self._clock()
        self._next_slot = max(now, self._next_slot or now) + self.interval


@dataclass
class CrawlReport:
    """Outcome of one crawl round, per server."""

    succeeded: dict[str, IngestResult] = field(default_factory=dict)
    failed: dict[str, BaseException] = field(default_factory=dict)

    @property
    def servers(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def rooms(self) -> int:
        return sum(result.rooms for result in self.succeeded.values())

    @property
    def new_servers(self) -> int:
        return sum(result.new_servers for result in self.succeeded.values())


class IngestionGroup:
    """Launches independent ingestions and joins them all.

    A failing ingestion never cancels its siblings; failures are collected
    into the report instead of being raised.
    """

    def __init__(self, throttle: LaunchThrottle) -> None:
        self.throttle = throttle
        self._tasks: dict[str, asyncio.Task[IngestResult]] = {}

    async def launch(self, host: str, ingest: IngestFn) -> None:
        await self.throttle.wait()
        logger.info("Launching ingestion of %s", host)
        self._tasks[host] = asyncio.create_task(ingest(host), name=f"ingest:{host}")

    async def join(self) -> CrawlReport:
        report = CrawlReport()
        hosts = list(self._tasks)
        outcomes = await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        for host, outcome in zip(hosts, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Ingestion of %s failed: %r", host, outcome)
                report.failed[host] = outcome
            else:
                report.succeeded[host] = outcome
        self._tasks.clear()
        return report


class CrawlScheduler:
    """Runs one crawl round over the known server set."""

    def __init__(
        self,
        ingest: IngestFn,
        session_factory: Callable[[], Session],
        *,
        launch_interval: float | None = None,
        throttle: LaunchThrottle | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            ingest: Coroutine function crawling one server, usually ``ServerIngestor.ingest``.
            session_factory: Callable returning a new SQLAlchemy session.
            launch_interval: Seconds between launches; defaults to the configured value.
            throttle: Optional pre-built throttle, mainly for tests.
        """
        self.ingest = ingest
        self.session_factory = session_factory
        if throttle is None:
            interval = (
                settings.crawl_launch_interval_seconds
                if launch_interval is None
                else launch_interval
            )
            throttle = LaunchThrottle(interval)
        self.throttle = throttle

    def load_servers(self, start_host: str) -> list[Server]:
        """Return the known servers, or an unpersisted seed when none are known.

        Raises:
            StoreError: if the server table could not be read.
        """
        try:
            with self.session_factory() as db:
                servers = RoomRepository(db).list_servers()
        except SQLAlchemyError as exc:
            logger.error("Could not load known servers: %s", exc)
            raise StoreError(f"Could not load known servers: {exc}") from exc

        if not servers:
            logger.info("No known servers, seeding crawl with %s", start_host)
            return [Server(host=start_host, last_tried=None, last_error=None, blacklist=False)]
        return servers

    async def run(self, start_host: str) -> CrawlReport:
        """Crawl every known server once and report per-server outcomes.

        Only a failure to load the server set is raised; individual
        ingestion failures end up in ``CrawlReport.failed``.
        """
        servers = await asyncio.to_thread(self.load_servers, start_host)
        report = await self.dispatch(server.host for server in servers)
        logger.info(
            "Crawl round finished: %d server(s), %d failed, %d room(s), %d new server(s)",
            report.servers,
            len(report.failed),
            report.rooms,
            report.new_servers,
        )
        return report

    async def dispatch(self, hosts: Iterable[str]) -> CrawlReport:
        """Launch one ingestion per host through the throttle and join them all."""
        group = IngestionGroup(self.throttle)
        for host in hosts:
            await group.launch(host, self.ingest)
        return await group.join()
