"""
Translate legacy X-Forwarded-* headers into a single Forwarded header.
"""

import logging
import re
from collections.abc import Callable, Mapping, Sequence

logger = logging.getLogger("forwarded.encoder")

HeaderMap = Sequence[tuple[str, str]]

DEFAULT_HEADER_MAP: list[tuple[str, str]] = [
    ("X-Forwarded-For", "for"),
    ("X-Forwarded-Proto", "proto"),
    ("X-Forwarded-Host", "host"),
    ("X-Forwarded-Port", "port"),
]

IPV6_PATTERN = re.compile(r"^([A-Fa-f0-9:]+:+)+[A-Fa-f0-9]+$")
_NEEDS_QUOTES = re.compile(r"[,;:=]")


def as_header_map(header_map: HeaderMap | Mapping[str, str] | None) -> list[tuple[str, str]]:
    """Normalize a dict or a sequence of pairs into an ordered list of pairs."""
    if header_map is None:
        return list(DEFAULT_HEADER_MAP)
    if isinstance(header_map, Mapping):
        return list(header_map.items())
    return [(header, directive) for header, directive in header_map]


def collect_directives(header_map: HeaderMap, get_header: Callable[[str], str | None]) -> dict[str, str]:
    """
    Read legacy headers into directives.

    The first present header wins for each directive; later mappings to a
    directive that is already set are not looked up.

    Args:
        header_map: Ordered ``(header name, directive)`` pairs
        get_header: Returns the combined header value, or None if absent

    Returns:
        Ordered dict of directive to raw header value
    """
    directives: dict[str, str] = {}

    for header, directive in header_map:
        if directive in directives:
            continue
        value = get_header(header)
        if value is None:
            continue
        directives[directive] = value

    return directives


def format_value(value: str) -> str:
    """Quote a directive value where the Forwarded syntax requires it."""
    if IPV6_PATTERN.match(value):
        return f'"[{value}]"'
    if _NEEDS_QUOTES.search(value):
        return f'"{value}"'
    return value


def format_pair(key: str, value: str) -> str:
    return f"{key}={format_value(value)}"


def format_forwarded(directives: Mapping[str, str]) -> str:
    """
    Serialize directives into a Forwarded header value.

    A comma separated ``for`` value describes several hops. The first address
    is paired with the other directives; each further address becomes a
    ``for``-only hop, in order.

    Example:
        >>> format_forwarded({"for": "30.16.61.2, 10.0.0.2", "proto": "https"})
        'for=30.16.61.2;proto=https, for=10.0.0.2'
    """
    directives = dict(directives)
    extra_for: list[str] = []

    if "," in directives.get("for", ""):
        addresses = [address.strip() for address in directives["for"].split(",")]
        directives["for"] = addresses[0]
        extra_for = addresses[1:]

    header = ";".join(format_pair(key, value) for key, value in directives.items())
    for address in extra_for:
        header += ", " + format_pair("for", address)

    return header


def encode_forwarded(header_map: HeaderMap, get_header: Callable[[str], str | None]) -> str | None:
    """
    Build the Forwarded header from legacy headers.

    Returns:
        Header value, or None when no legacy header is present and the
        Forwarded header must be removed
    """
    directives = collect_directives(header_map, get_header)
    if not directives:
        return None

    header = format_forwarded(directives)
    logger.debug("Encoded legacy headers %s as Forwarded: %s", sorted(directives), header)
    return header
