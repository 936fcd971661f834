"""ASGI and WSGI middleware for Forwarded header handling"""

from .asgi import CompatMiddleware, ForwardedMiddleware
from .wsgi import CompatWSGIMiddleware, ForwardedWSGIMiddleware

__all__ = ["ForwardedMiddleware", "CompatMiddleware", "ForwardedWSGIMiddleware", "CompatWSGIMiddleware"]
