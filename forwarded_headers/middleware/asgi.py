"""
ASGI middleware for the Forwarded header in FastAPI, Starlette, etc.
"""

import logging
from collections.abc import Mapping

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

from forwarded_headers.config import ConfigError, validate_header_map
from forwarded_headers.encoder import HeaderMap, as_header_map, encode_forwarded
from forwarded_headers.parser import parse_forwarded
from forwarded_headers.resolver import TrustPredicate, resolve_trusted_hop
from forwarded_headers.rewriter import OriginalURI, apply_hop

logger = logging.getLogger("forwarded.middleware")

_PROCESSED_SCOPES = {"http", "websocket"}


def _header_line(headers: Headers, name: str) -> str | None:
    values = headers.getlist(name)
    if not values:
        return None
    return ", ".join(values)


class ForwardedMiddleware:
    """
    ASGI middleware that resolves the trusted Forwarded hop.

    Sets ``client_ip`` and ``original_uri`` in the request state, available
    as ``request.state.client_ip`` and ``request.state.original_uri``.

    Example:
        from fastapi import FastAPI
        from forwarded_headers import ForwardedMiddleware, trust_networks

        app = FastAPI()
        app.add_middleware(ForwardedMiddleware, trust=trust_networks(["10.0.0.0/8"]))
    """

    def __init__(self, app: ASGIApp, trust: TrustPredicate):
        """
        Initialize the middleware.

        Args:
            app: ASGI application callable
            trust: Callable ``(claimed_address, hop) -> bool``
        """
        if not callable(trust):
            raise TypeError(f"trust must be callable, got {type(trust).__name__}")
        self.app = app
        self.trust = trust

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in _PROCESSED_SCOPES:
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        client = scope.get("client")
        peer = client[0] if client else None

        hops = parse_forwarded(_header_line(headers, "forwarded"))
        hop = resolve_trusted_hop(peer, hops, self.trust)
        client_ip, original_uri = apply_hop(OriginalURI.from_asgi_scope(scope), hop)

        logger.debug("Resolved client %s, original URI %s", client_ip, original_uri)

        state = scope.setdefault("state", {})
        state["client_ip"] = client_ip
        state["original_uri"] = original_uri

        await self.app(scope, receive, send)


class CompatMiddleware:
    """
    ASGI middleware that converts X-Forwarded-* headers to a Forwarded header.

    Any incoming Forwarded header is replaced. When none of the legacy
    headers is present the Forwarded header is removed.

    Example:
        app.add_middleware(CompatMiddleware, header_map=[("X-Real-IP", "for")])
    """

    def __init__(self, app: ASGIApp, header_map: HeaderMap | Mapping[str, str] | None = None):
        """
        Initialize the middleware.

        Args:
            app: ASGI application callable
            header_map: Ordered ``(header, directive)`` pairs (default: X-Forwarded-For/Proto/Host/Port)
        """
        self.app = app
        self.header_map = as_header_map(header_map)

        is_valid, errors = validate_header_map(self.header_map)
        if not is_valid:
            raise ConfigError(errors)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in _PROCESSED_SCOPES:
            await self.app(scope, receive, send)
            return

        headers = MutableHeaders(scope=scope)
        forwarded = encode_forwarded(self.header_map, lambda name: _header_line(headers, name))

        if forwarded is None:
            del headers["forwarded"]
        else:
            headers["forwarded"] = forwarded

        await self.app(scope, receive, send)
