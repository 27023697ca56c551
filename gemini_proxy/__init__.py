"""
Gemini Proxy - Rate-limited relay for the Gemini generateContent API

Two entry points:
1. HTTP server - FastAPI app mounting the proxy handler on a route
2. Serverless handler - event/response function for function-as-a-service hosts
"""

__version__ = "0.1.0"
__author__ = "Gemini Proxy Contributors"

from .config import ProxyConfig, load_config
from .server import create_app

__all__ = [
    "__version__",
    "ProxyConfig",
    "load_config",
    "create_app",
]
