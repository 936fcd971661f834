"""
Flask integration example with forwarded-headers.

This demonstrates the WSGI middleware with a Flask application. Trusted
proxies and an optional shared secret are read from forwarded.yml
(FORWARDED_CONFIG) or the FORWARDED_TRUSTED_PROXIES / FORWARDED_TRUSTED_SECRET
environment variables.

Usage:
    pip install forwarded-headers[examples]
    FORWARDED_TRUSTED_PROXIES=127.0.0.1 python examples/example_flask.py

    curl -H 'Forwarded: for=30.16.61.2;proto=https' http://127.0.0.1:5000/
"""

from flask import Flask, jsonify, request

from forwarded_headers.config import load_settings
from forwarded_headers.middleware.wsgi import CompatWSGIMiddleware, ForwardedWSGIMiddleware
from forwarded_headers.structured_logging import setup_logging

setup_logging()
settings = load_settings()

app = Flask(__name__)

# CompatWSGIMiddleware is the outer layer, so it runs before resolution
app.wsgi_app = CompatWSGIMiddleware(
    ForwardedWSGIMiddleware(app.wsgi_app, trust=settings.trust_predicate()),
    header_map=settings.header_map,
)


@app.route("/")
def index():
    """Root endpoint with resolved client information."""
    return jsonify(
        {
            "client_ip": request.environ.get("forwarded.client_ip"),
            "original_uri": str(request.environ.get("forwarded.original_uri")),
        }
    )


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=5000, debug=True)
