"""
FastAPI middleware integration example with forwarded-headers.

This demonstrates resolving the original client behind trusted proxies.
Requests from 127.0.0.1 are treated as coming from a trusted proxy.

Usage:
    pip install forwarded-headers[examples]
    python examples/example_fastapi_middleware.py

    curl -H 'Forwarded: for=30.16.61.2;proto=https;host=example.com' http://127.0.0.1:8000/
    curl -H 'X-Forwarded-For: 30.16.61.2, 127.0.0.1' http://127.0.0.1:8000/
"""

import uvicorn
from fastapi import FastAPI, Request

from forwarded_headers.middleware.asgi import CompatMiddleware, ForwardedMiddleware
from forwarded_headers.structured_logging import setup_logging
from forwarded_headers.trust import trust_networks

setup_logging()

app = FastAPI(title="My App behind a proxy")

# Middleware added last runs first: X-Forwarded-* is translated before resolving
app.add_middleware(ForwardedMiddleware, trust=trust_networks(["127.0.0.1", "::1"]))
app.add_middleware(CompatMiddleware)


@app.get("/")
async def root(request: Request):
    """Root endpoint with resolved client information"""
    return {
        "client_ip": request.state.client_ip,
        "original_uri": str(request.state.original_uri),
        "forwarded": request.headers.get("forwarded"),
    }


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok"}


if __name__ == "__main__":
    print("Starting FastAPI with Forwarded middleware...")
    print("\nEndpoints:")
    print("  GET / - Resolved client and original URI")
    print("  GET /health - Health check")

    uvicorn.run(app, host="127.0.0.1", port=8000)
