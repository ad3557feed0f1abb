"""Exception hierarchy for crawl failures.

Resolution failures never appear here: the well-known lookup always falls
back to the nominal hostname instead of raising.
"""

from __future__ import annotations


class CrawlError(RuntimeError):
    """Base exception raised for crawl-related failures."""


class StoreError(CrawlError):
    """Raised when the room store cannot be reached or a write fails."""


class TransportError(CrawlError):
    """Raised when a remote server cannot be reached or answers with a non-2xx status."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ResponseParseError(CrawlError):
    """Raised when a response body does not match the expected document shape.

    The raw body is kept so that callers can log it for diagnosis.
    """

    def __init__(self, message: str, *, url: str | None = None, body: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.body = body
