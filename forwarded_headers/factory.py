"""
Factory functions for easy Forwarded middleware integration.
"""

from collections.abc import Callable

from starlette.types import ASGIApp

from forwarded_headers.config import ForwardedSettings, load_settings
from forwarded_headers.middleware import CompatMiddleware, ForwardedMiddleware
from forwarded_headers.resolver import TrustPredicate


def enable_forwarded(
    app: ASGIApp,
    trust: TrustPredicate | None = None,
    settings: ForwardedSettings | None = None,
    compat: bool = False,
) -> ASGIApp:
    """
    Enable Forwarded header handling for an ASGI application.

    Adds :class:`ForwardedMiddleware` and, with ``compat=True``, a
    :class:`CompatMiddleware` in front of it so X-Forwarded-* headers are
    translated first.

    Args:
        app: ASGI application (FastAPI, Starlette, etc.)
        trust: Trust predicate; built from settings if None
        settings: Settings; loaded from environment/FORWARDED_CONFIG if None
        compat: Also convert X-Forwarded-* headers to Forwarded

    Returns:
        The same application with middleware added, or the wrapped app for a
        plain ASGI callable

    Example:
        from fastapi import FastAPI, Request
        from forwarded_headers import enable_forwarded

        app = FastAPI()
        enable_forwarded(app)

        @app.get("/")
        def read_root(request: Request):
            return {"client": request.state.client_ip}
    """
    if settings is None:
        settings = load_settings()
    if trust is None:
        trust = settings.trust_predicate()

    if hasattr(app, "add_middleware"):
        # FastAPI/Starlette: the last added middleware runs first
        app.add_middleware(ForwardedMiddleware, trust=trust)
        if compat:
            app.add_middleware(CompatMiddleware, header_map=settings.header_map)
        return app

    wrapped: Callable = ForwardedMiddleware(app, trust=trust)
    if compat:
        wrapped = CompatMiddleware(wrapped, header_map=settings.header_map)
    return wrapped
