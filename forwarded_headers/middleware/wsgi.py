"""
WSGI middleware for the Forwarded header.

Wraps Flask, Django or any other WSGI application. Resolved values are put
in the environ under ``forwarded.client_ip`` and ``forwarded.original_uri``.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from forwarded_headers.config import ConfigError, validate_header_map
from forwarded_headers.encoder import HeaderMap, as_header_map, encode_forwarded
from forwarded_headers.parser import parse_forwarded
from forwarded_headers.resolver import TrustPredicate, resolve_trusted_hop
from forwarded_headers.rewriter import OriginalURI, apply_hop

logger = logging.getLogger("forwarded.middleware")

CLIENT_IP_KEY = "forwarded.client_ip"
ORIGINAL_URI_KEY = "forwarded.original_uri"

# PEP 3333: these two are not prefixed with HTTP_
_UNPREFIXED = {"CONTENT_TYPE", "CONTENT_LENGTH"}


def environ_key(header: str) -> str:
    """
    Convert a header name to its WSGI environ key.

    Example: "X-Forwarded-For" -> "HTTP_X_FORWARDED_FOR"
    """
    key = header.upper().replace("-", "_")
    return key if key in _UNPREFIXED else f"HTTP_{key}"


class ForwardedWSGIMiddleware:
    """
    WSGI middleware that resolves the trusted Forwarded hop.

    Usage:
        from flask import Flask
        from forwarded_headers.middleware.wsgi import ForwardedWSGIMiddleware
        from forwarded_headers.trust import trust_networks

        app = Flask(__name__)
        app.wsgi_app = ForwardedWSGIMiddleware(app.wsgi_app, trust=trust_networks(["10.0.0.0/8"]))

        # In a view: request.environ["forwarded.client_ip"]
    """

    def __init__(self, app: Callable, trust: TrustPredicate):
        """
        Initialize WSGI middleware.

        Args:
            app: The WSGI application to wrap
            trust: Callable ``(claimed_address, hop) -> bool``
        """
        if not callable(trust):
            raise TypeError(f"trust must be callable, got {type(trust).__name__}")
        self.app = app
        self.trust = trust

    def __call__(self, environ: dict[str, Any], start_response: Callable) -> Any:
        peer = environ.get("REMOTE_ADDR") or None

        hops = parse_forwarded(environ.get("HTTP_FORWARDED"))
        hop = resolve_trusted_hop(peer, hops, self.trust)
        client_ip, original_uri = apply_hop(OriginalURI.from_wsgi_environ(environ), hop)

        logger.debug("Resolved client %s, original URI %s", client_ip, original_uri)

        environ[CLIENT_IP_KEY] = client_ip
        environ[ORIGINAL_URI_KEY] = original_uri

        return self.app(environ, start_response)


class CompatWSGIMiddleware:
    """
    WSGI middleware that converts X-Forwarded-* headers to a Forwarded header.

    Sets ``HTTP_FORWARDED`` in the environ, or removes it when none of the
    legacy headers is present.
    """

    def __init__(self, app: Callable, header_map: HeaderMap | Mapping[str, str] | None = None):
        """
        Initialize WSGI middleware.

        Args:
            app: The WSGI application to wrap
            header_map: Ordered ``(header, directive)`` pairs (default: X-Forwarded-For/Proto/Host/Port)
        """
        self.app = app
        self.header_map = as_header_map(header_map)

        is_valid, errors = validate_header_map(self.header_map)
        if not is_valid:
            raise ConfigError(errors)

    def __call__(self, environ: dict[str, Any], start_response: Callable) -> Any:
        forwarded = encode_forwarded(self.header_map, lambda name: environ.get(environ_key(name)))

        if forwarded is None:
            environ.pop("HTTP_FORWARDED", None)
        else:
            environ["HTTP_FORWARDED"] = forwarded

        return self.app(environ, start_response)
