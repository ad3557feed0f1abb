"""Server reference extraction from room aliases."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

ALIAS_SEPARATOR = ":"


def server_from_alias(alias: str) -> str | None:
    """Return the server part of ``alias`` (``#name:server``), if any.

    Everything after the first ``:`` is the server part, ports included.
    An alias without a separator yields None; one ending in the separator
    is logged as invalid and also yields None.
    """
    _, sep, server = alias.partition(ALIAS_SEPARATOR)
    if not sep:
        return None
    if not server:
        logger.warning("An invalid alias was provided. Alias %s", alias)
        return None
    return server
