"""
Rate Limiting

Process-local fixed-window call budget for the proxy handler.
"""

from .limiter import RateLimiter, RateState

__all__ = ["RateLimiter", "RateState"]
