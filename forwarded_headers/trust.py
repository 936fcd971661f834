# forwarded_headers/trust.py - Ready-made trust predicates
"""
Trust predicates for :func:`forwarded_headers.resolver.resolve_trusted_hop`.

A trust predicate is any callable ``(claimed_address, hop) -> bool``. The
helpers here cover the common policies; applications with other needs can
pass their own function.
"""

import hmac
import ipaddress
import logging
from collections.abc import Iterable

from .parser import HopRecord
from .resolver import TrustPredicate

logger = logging.getLogger("forwarded.trust")

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network
IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


def parse_address(value: str) -> IPAddress | None:
    """
    Parse a node identifier from a ``for`` directive.

    Accepts ``1.2.3.4``, ``1.2.3.4:8080``, ``2001:db8::1`` and
    ``[2001:db8::1]:8080``. Returns None for ``unknown``, obfuscated
    identifiers (``_hidden``) and anything else that is not an IP address.
    """
    value = value.strip()

    if value.startswith("["):
        end = value.find("]")
        if end == -1:
            return None
        value = value[1:end]
    elif value.count(":") == 1:
        value = value.split(":", 1)[0]

    try:
        return ipaddress.ip_address(value)
    except ValueError:
        return None


def trust_networks(networks: Iterable[str]) -> TrustPredicate:
    """
    Trust hops reported by proxies inside the given networks.

    Args:
        networks: IP addresses or CIDR ranges, e.g. ``["10.0.0.0/8", "::1"]``

    Raises:
        ValueError: If an entry is not a valid address or network
    """
    parsed: list[IPNetwork] = [ipaddress.ip_network(network.strip(), strict=False) for network in networks]

    def predicate(address: str, hop: HopRecord) -> bool:
        ip = parse_address(address)
        if ip is None:
            return False
        return any(ip in network for network in parsed)

    return predicate


def trust_secret(secret: str, directive: str = "secret") -> TrustPredicate:
    """
    Trust hops that carry a shared secret directive.

    Proxies add e.g. ``secret=...`` to their hop; the value is compared in
    constant time.
    """
    if not secret:
        raise ValueError("Secret cannot be empty")

    expected = secret.encode()

    def predicate(address: str, hop: HopRecord) -> bool:
        value = hop.get(directive)
        if value is None:
            return False
        return hmac.compare_digest(value.encode(), expected)

    return predicate


def trust_all_of(*predicates: TrustPredicate) -> TrustPredicate:
    """Trust a hop only if every predicate does."""

    def predicate(address: str, hop: HopRecord) -> bool:
        return all(check(address, hop) for check in predicates)

    return predicate


def trust_any_of(*predicates: TrustPredicate) -> TrustPredicate:
    """Trust a hop if at least one predicate does."""

    def predicate(address: str, hop: HopRecord) -> bool:
        return any(check(address, hop) for check in predicates)

    return predicate


def trust_nobody(address: str, hop: HopRecord) -> bool:
    """Trust no hop; requests resolve to the transport peer."""
    return False
