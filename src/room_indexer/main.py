# src/room_indexer/main.py
"""Command line entry point for the room indexer."""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy.orm import Session, sessionmaker

from room_indexer.core.errors import StoreError
from room_indexer.core.logging import configure_logging
from room_indexer.core.settings import settings
from room_indexer.db.session import SessionLocal, create_tables
from room_indexer.repositories.room_repo import RoomRepository
from room_indexer.services.crawler import CrawlReport, CrawlScheduler
from room_indexer.services.federation import FederationClient
from room_indexer.services.ingest import ServerIngestor


async def crawl(start_host: str, session_factory: sessionmaker[Session] = SessionLocal) -> CrawlReport:
    """Run one crawl round from ``start_host`` with freshly built shared clients."""
    async with FederationClient() as client:
        ingestor = ServerIngestor(client, session_factory)
        scheduler = CrawlScheduler(ingestor.ingest, session_factory)
        return await scheduler.run(start_host)


def _cmd_init_db(_: argparse.Namespace) -> int:
    create_tables()
    print("Database initialized.")
    return 0


def _cmd_crawl(args: argparse.Namespace) -> int:
    start_host = args.start or settings.seed_server
    try:
        report = asyncio.run(crawl(start_host))
    except StoreError as exc:
        print(f"[room-indexer] ERROR: {exc}", file=sys.stderr)
        return 1

    print(
        f"Crawled {report.servers} server(s): {len(report.succeeded)} ok, "
        f"{len(report.failed)} failed, {report.rooms} room(s), "
        f"{report.new_servers} new server(s)"
    )
    for host, error in sorted(report.failed.items()):
        print(f"  {host}: {error}")
    return 0


def _cmd_servers(_: argparse.Namespace) -> int:
    with SessionLocal() as db:
        servers = RoomRepository(db).list_servers()
    for server in servers:
        flag = " (blacklisted)" if server.blacklist else ""
        print(f"{server.host}{flag}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="room-indexer",
        description="Discover and index public rooms across federated servers",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this invocation (e.g. DEBUG).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {settings.app_version}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create the servers and rooms tables.")
    init_db.set_defaults(handler=_cmd_init_db)

    crawl_cmd = subparsers.add_parser("crawl", help="Run one crawl round over known servers.")
    crawl_cmd.add_argument(
        "start",
        nargs="?",
        default=None,
        help="Seed server used when no servers are known yet (defaults to SEED_SERVER).",
    )
    crawl_cmd.set_defaults(handler=_cmd_crawl)

    servers_cmd = subparsers.add_parser("servers", help="List known servers.")
    servers_cmd.set_defaults(handler=_cmd_servers)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or settings.log_level)
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
