"""
Apply a resolved Forwarded hop to the request URI.
"""

from dataclasses import dataclass, replace
from typing import Any

from starlette.datastructures import URL

from .parser import HopRecord

DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
}


def default_port(scheme: str) -> int | None:
    """Well-known port for a scheme, None if it has none."""
    return DEFAULT_PORTS.get(scheme.lower())


def _split_host_port(host: str) -> tuple[str, int | None]:
    """Split ``host[:port]``, keeping IPv6 literals bracketed."""
    if host.startswith("["):
        end = host.find("]")
        if end != -1:
            rest = host[end + 1 :]
            if rest.startswith(":") and rest[1:].isdigit():
                return host[: end + 1], int(rest[1:])
            return host[: end + 1], None
        return host, None

    name, sep, port = host.rpartition(":")
    if sep and port.isdigit() and ":" not in name:
        return name, int(port)
    return host, None


@dataclass(frozen=True)
class OriginalURI:
    """
    URI of the request as the original client sent it.

    ``port`` is None when the URI carries no explicit port. ``host`` is kept
    as given; a Forwarded ``host`` directive may contain a port suffix and is
    not split.
    """

    scheme: str
    host: str
    port: int | None = None
    path: str = "/"
    query: str = ""

    @classmethod
    def from_asgi_scope(cls, scope: dict[str, Any]) -> "OriginalURI":
        """Build the URI the ASGI server received."""
        url = URL(scope=scope)
        host = url.hostname or ""
        if ":" in host:
            host = f"[{host}]"
        port = url.port
        if port is not None and port == default_port(url.scheme):
            port = None
        return cls(scheme=url.scheme, host=host, port=port, path=url.path or "/", query=url.query)

    @classmethod
    def from_wsgi_environ(cls, environ: dict[str, Any]) -> "OriginalURI":
        """Build the URI the WSGI server received (PEP 3333 reconstruction)."""
        scheme = environ.get("wsgi.url_scheme", "http")

        if environ.get("HTTP_HOST"):
            host, port = _split_host_port(environ["HTTP_HOST"])
        else:
            host = environ.get("SERVER_NAME", "")
            server_port = str(environ.get("SERVER_PORT", ""))
            port = int(server_port) if server_port.isdigit() else None

        if port is not None and port == default_port(scheme):
            port = None

        path = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
        return cls(scheme=scheme, host=host, port=port, path=path or "/", query=environ.get("QUERY_STRING", ""))

    def with_scheme(self, scheme: str) -> "OriginalURI":
        return replace(self, scheme=scheme)

    def with_host(self, host: str) -> "OriginalURI":
        return replace(self, host=host)

    def with_port(self, port: int | None) -> "OriginalURI":
        return replace(self, port=port)

    def with_path(self, path: str) -> "OriginalURI":
        return replace(self, path=path)

    def __str__(self) -> str:
        netloc = self.host if self.port is None else f"{self.host}:{self.port}"
        url = f"{self.scheme}://{netloc}{self.path}"
        if self.query:
            url += f"?{self.query}"
        return url


def rewrite_uri(uri: OriginalURI, hop: HopRecord) -> OriginalURI:
    """
    Apply the proto, host, port and path directives of a hop to a URI.

    A numeric port equal to the default port of the resulting scheme is
    dropped so the URI has no redundant ``:80`` or ``:443``. Non-numeric
    ports are ignored.

    Args:
        uri: URI as received by this server
        hop: Resolved (trusted) hop record

    Returns:
        New URI with the hop's claims applied
    """
    if "proto" in hop:
        uri = uri.with_scheme(hop["proto"])
    if "host" in hop:
        uri = uri.with_host(hop["host"])
    port = hop.get("port")
    if port is not None and port.isascii() and port.isdigit():
        number = int(port)
        uri = uri.with_port(None if number == default_port(uri.scheme) else number)
    if "path" in hop:
        uri = uri.with_path(hop["path"])
    return uri


def client_ip(hop: HopRecord) -> str | None:
    """Client address claimed by a hop; None when it makes no claim."""
    return hop.get("for")


def apply_hop(uri: OriginalURI, hop: HopRecord) -> tuple[str | None, OriginalURI]:
    """Return ``(client_ip, original_uri)`` for a resolved hop."""
    return client_ip(hop), rewrite_uri(uri, hop)
