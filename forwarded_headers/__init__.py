"""
forwarded-headers - Forwarded header (RFC 7239) handling for Python web apps
Parses proxy hop chains, resolves the trusted hop and translates X-Forwarded-* headers
"""

__version__ = "1.0.0"

from .config import ConfigError, ForwardedSettings, load_settings
from .encoder import DEFAULT_HEADER_MAP, encode_forwarded, format_forwarded
from .factory import enable_forwarded
from .middleware import CompatMiddleware, CompatWSGIMiddleware, ForwardedMiddleware, ForwardedWSGIMiddleware
from .parser import parse_forwarded
from .resolver import resolve_trusted_hop
from .rewriter import OriginalURI, apply_hop, rewrite_uri
from .trust import trust_all_of, trust_any_of, trust_networks, trust_nobody, trust_secret

__all__ = [
    "ForwardedMiddleware",
    "CompatMiddleware",
    "ForwardedWSGIMiddleware",
    "CompatWSGIMiddleware",
    "enable_forwarded",
    "ForwardedSettings",
    "ConfigError",
    "load_settings",
    "DEFAULT_HEADER_MAP",
    "encode_forwarded",
    "format_forwarded",
    "parse_forwarded",
    "resolve_trusted_hop",
    "OriginalURI",
    "apply_hop",
    "rewrite_uri",
    "trust_networks",
    "trust_secret",
    "trust_all_of",
    "trust_any_of",
    "trust_nobody",
    "__version__",
]
