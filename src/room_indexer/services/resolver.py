"""Well-known delegation lookup for federation servers."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from room_indexer.core.errors import TransportError
from room_indexer.schemas.directory import ServerWellKnown
from room_indexer.services.federation import FederationClient

logger = logging.getLogger(__name__)

WELL_KNOWN_PATH = "/.well-known/matrix/server"


def well_known_url(hostname: str) -> str:
    return f"https://{hostname}{WELL_KNOWN_PATH}"


async def resolve_server_address(client: FederationClient, hostname: str) -> str:
    """Return the address ``hostname`` delegates to, or ``hostname`` itself.

    Network failures, non-2xx answers, bodies that are not a well-known
    document and documents without an ``m.server`` value all produce the
    same fallback. The failure kind is only logged, never returned, so a
    lookup problem cannot stop the directory crawl.
    """
    url = well_known_url(hostname)
    try:
        result = await client.get(url)
    except TransportError as exc:
        logger.debug("Well-known lookup for %s failed: %s", hostname, exc)
        return hostname

    if not result.ok:
        logger.debug("Well-known lookup for %s returned %d", hostname, result.status)
        return hostname

    try:
        document = ServerWellKnown.model_validate_json(result.body)
    except ValidationError as exc:
        logger.debug("Well-known document for %s is malformed: %s", hostname, exc)
        return hostname

    delegated = document.server
    if not delegated:
        return hostname

    if delegated != hostname:
        logger.info("Server %s delegates to %s", hostname, delegated)
    return delegated
