"""
Gemini Proxy Server

FastAPI application exposing the proxy handler over HTTP.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import Response
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import ProxyConfig, load_config
from .llm import ProxyHandler
from .ratelimit import RateLimiter

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("gemini-proxy")


def build_handler(config: ProxyConfig) -> ProxyHandler:
    """Create a handler with its own process-local rate limiter."""
    rate_limiter = None
    if config.rate_limit.enabled:
        rate_limiter = RateLimiter(
            limit=config.rate_limit.limit,
            window_seconds=config.rate_limit.window_seconds,
        )
    return ProxyHandler(upstream=config.upstream, rate_limiter=rate_limiter)


# =============================================================================
# Application Factory
# =============================================================================

def create_app(config: ProxyConfig = None, handler: Optional[ProxyHandler] = None) -> FastAPI:
    """Create FastAPI application."""
    config = config or ProxyConfig()
    handler = handler or build_handler(config)

    app = FastAPI(
        title="Gemini Proxy",
        description="Rate-limited relay for the Gemini generateContent API",
        version=__version__,
    )

    # Store components in app state
    app.state.config = config
    app.state.handler = handler

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Routes
    # =========================================================================

    @app.get("/")
    async def root():
        """Service info."""
        return {
            "service": "Gemini Proxy",
            "version": __version__,
            "status": "running",
            "path": config.server.path,
            "upstream": handler.endpoint,
            "rate_limit": {
                "enabled": handler.rate_limiter is not None,
                "limit": config.rate_limit.limit,
                "window_seconds": config.rate_limit.window_seconds,
            },
        }

    @app.get("/health")
    async def health():
        """Health check."""
        return {"status": "healthy", "stats": handler.stats}

    @app.api_route(config.server.path, methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def proxy(request: Request):
        """Relay a prompt to Gemini."""
        body = await request.body()
        result = await handler.handle(request.method, body)
        return Response(
            content=result.to_json(),
            status_code=result.status_code,
            headers=result.headers,
        )

    return app


# =============================================================================
# Main
# =============================================================================

def main(config_path: str = None, host: str = None, port: int = None, reload: bool = None):
    """Run the Gemini Proxy server."""
    import uvicorn

    config = load_config(config_path) if config_path else ProxyConfig()
    if host is not None:
        config.server.host = host
    if port is not None:
        config.server.port = port
    if reload is not None:
        config.server.reload = reload

    app = create_app(config)

    logger.info(f"Starting Gemini Proxy on {config.server.host}:{config.server.port}")
    logger.info(f"  Route: {config.server.path}")
    logger.info(f"  Upstream: {app.state.handler.endpoint}")
    logger.info(
        f"  Rate limit: {'enabled' if config.rate_limit.enabled else 'disabled'} "
        f"({config.rate_limit.limit}/{config.rate_limit.window_seconds:g}s)"
    )

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
        log_level="info"
    )


if __name__ == "__main__":
    main()
