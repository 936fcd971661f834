"""
Trust chain resolution for parsed Forwarded hops.
"""

import logging
from collections.abc import Callable, Sequence

from .parser import HopRecord

logger = logging.getLogger("forwarded.resolver")

UNKNOWN = "unknown"

TrustPredicate = Callable[[str, HopRecord], bool]


def resolve_trusted_hop(peer: str | None, hops: Sequence[HopRecord], trust: TrustPredicate) -> HopRecord:
    """
    Find the hop whose claims should be believed.

    Starts from the transport peer and walks the hops from the one nearest
    to this server back towards the origin. Each hop is accepted only if the
    trust predicate approves it given the address of the currently trusted
    party. The walk stops at the first rejection.

    Args:
        peer: Address of the directly connected client, None if unknown
        hops: Hop records in header order (origin first)
        trust: Callable ``(claimed_address, hop) -> bool``

    Returns:
        Copy of the last accepted hop, or ``{"for": peer}`` if none accepted
    """
    trusted: HopRecord = {"for": peer or UNKNOWN}

    for index, hop in enumerate(reversed(hops)):
        address = trusted.get("for", UNKNOWN)
        if not trust(address, hop):
            logger.debug(
                "Hop %r not trusted by %s, ignoring %d remaining hop(s)",
                hop,
                address,
                len(hops) - index,
            )
            break

        logger.debug("Hop %r trusted by %s", hop, address)
        trusted = hop

    return dict(trusted)
