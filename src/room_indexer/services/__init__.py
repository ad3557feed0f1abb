# src/room_indexer/services/__init__.py
"""Discovery and ingestion services for the room index."""

from .crawler import CrawlReport, CrawlScheduler, LaunchThrottle
from .federation import FederationClient, FetchResult
from .ingest import IngestResult, ServerIngestor

__all__ = [
    "CrawlReport", "CrawlScheduler", "LaunchThrottle",
    "FederationClient", "FetchResult",
    "IngestResult", "ServerIngestor",
]
