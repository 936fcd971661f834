"""
Parsing of the `Forwarded` header (RFC 7239).

A header value is a comma separated list of hops, each hop a semicolon
separated list of ``key=value`` pairs:

    for=30.16.61.2;proto=https;host=example.com, for=10.0.0.2

Parsing is permissive. Segments that contain no usable pair become an empty
hop instead of failing the whole header. Blank segments are not hops at all.
"""

import logging
import re

logger = logging.getLogger("forwarded.parser")

HopRecord = dict[str, str]

_KEY_PATTERN = re.compile(r"^\w+$")
_QUOTED_PATTERN = re.compile(r'^"(.*)"$', re.DOTALL)


def _split_top_level(text: str, separator: str) -> list[str]:
    """
    Split text on a separator character, ignoring separators inside quotes.

    A backslash inside a quoted string escapes the next character, so an
    escaped quote does not close the string.
    """
    parts = []
    current: list[str] = []
    in_quotes = False
    escaped = False

    for char in text:
        if escaped:
            current.append(char)
            escaped = False
            continue

        if in_quotes and char == "\\":
            current.append(char)
            escaped = True
        elif char == '"':
            current.append(char)
            in_quotes = not in_quotes
        elif char == separator and not in_quotes:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)

    parts.append("".join(current))
    return parts


def split_hops(header: str) -> list[str]:
    """Split a Forwarded header into hop segments on top-level commas."""
    return _split_top_level(header, ",")


def split_pairs(segment: str) -> list[str]:
    """Split a hop segment into ``key=value`` pieces on top-level semicolons."""
    return _split_top_level(segment, ";")


def _parse_pair(piece: str) -> tuple[str, str] | None:
    key, sep, raw_value = piece.partition("=")
    if not sep:
        return None

    key = key.strip()
    if not _KEY_PATTERN.match(key):
        return None

    raw_value = raw_value.strip()
    quoted = _QUOTED_PATTERN.match(raw_value)
    if quoted:
        value = quoted.group(1)
    elif '"' in raw_value:
        # Unbalanced or embedded quote
        return None
    else:
        value = raw_value

    if not value:
        return None

    return key.lower(), value


def parse_hop(segment: str) -> HopRecord:
    """
    Parse one hop segment into a hop record.

    Directive names are lower-cased. When a name repeats within the hop the
    later value replaces the earlier one.

    Args:
        segment: Text of a single hop, e.g. ``for=10.0.0.2;proto=https``

    Returns:
        Ordered dict of directive name to value, empty if nothing parsed
    """
    hop: HopRecord = {}

    for piece in split_pairs(segment):
        if not piece.strip():
            continue
        pair = _parse_pair(piece)
        if pair is None:
            logger.debug("Ignoring malformed Forwarded pair: %r", piece)
            continue
        key, value = pair
        hop[key] = value

    return hop


def parse_forwarded(header: str | None) -> list[HopRecord]:
    """
    Parse a Forwarded header value into hop records.

    Args:
        header: Raw header value, possibly None or empty

    Returns:
        Hop records in header order (closest to the origin first)
    """
    if header is None or not header.strip():
        return []

    # Empty segments (trailing comma, ",,") are not hops
    return [parse_hop(segment) for segment in split_hops(header) if segment.strip()]
