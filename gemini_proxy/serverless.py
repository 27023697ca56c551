"""
Serverless entry point.

Function-as-a-service hosts call `handler(event, context)` with an event
carrying `httpMethod` and `body`, and expect `statusCode`, a string `body`
and `headers` back. The rate limiter below lives as long as the process:
a cold start opens a fresh window, and each instance counts on its own.
"""

import asyncio
import base64
import binascii
import logging
from typing import Optional, Dict, Any

from .config import ProxyConfig
from .llm import ProxyHandler
from .ratelimit import RateLimiter

logger = logging.getLogger("gemini-proxy.serverless")

_config = ProxyConfig()
rate_limiter = RateLimiter(
    limit=_config.rate_limit.limit,
    window_seconds=_config.rate_limit.window_seconds,
)
proxy_handler = ProxyHandler(upstream=_config.upstream, rate_limiter=rate_limiter)


def _event_body(event: Dict[str, Any]) -> Optional[str | bytes]:
    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body)
        except (binascii.Error, TypeError, ValueError):
            logger.warning("Discarding body flagged base64 that failed to decode")
            return None
    return body


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Handle one invocation and return the serverless response dict."""
    event = event or {}
    response = asyncio.run(
        proxy_handler.handle(event.get("httpMethod", ""), _event_body(event))
    )
    return response.to_event()
