"""
Fixed-Window Rate Limiter

Bounds the number of proxied calls per time window within one process.
State lives only in memory: a cold start (new process) begins a fresh window,
and separate instances each keep their own count.

Window semantics:
    - First hit opens the window at clock()
    - A hit more than `window_seconds` after the window opened resets it
    - Every hit increments the count; hits beyond `limit` are rejected
"""

import time
import logging
import threading
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable

logger = logging.getLogger("gemini-proxy.ratelimit")


@dataclass
class RateState:
    """Calls counted since the current window opened."""
    count: int = 0
    window_start: Optional[float] = None


class RateLimiter:
    """
    Mutex-guarded fixed-window counter.

    The clock is injectable so tests can drive the window deterministically.
    Rejected hits still count toward the window, so a flood keeps being
    rejected until the window expires.
    """

    def __init__(
        self,
        limit: int = 120,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit < 0:
            raise ValueError("limit must be >= 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._state = RateState()
        self._lock = threading.Lock()

    def hit(self) -> bool:
        """Record one call. Returns False when the call exceeds the budget."""
        with self._lock:
            now = self._clock()
            state = self._state

            if state.window_start is None:
                state.window_start = now
            elif now - state.window_start > self.window_seconds:
                state.count = 0
                state.window_start = now

            state.count += 1
            count = state.count

        if count > self.limit:
            logger.warning(f"Rate limit exceeded: {count}/{self.limit} in window")
            return False
        return True

    def reset(self):
        """Forget the current window."""
        with self._lock:
            self._state = RateState()

    @property
    def state(self) -> RateState:
        with self._lock:
            return RateState(
                count=self._state.count,
                window_start=self._state.window_start,
            )

    @property
    def stats(self) -> Dict[str, Any]:
        state = self.state
        return {
            "limit": self.limit,
            "window_seconds": self.window_seconds,
            "count": state.count,
            "window_start": state.window_start,
        }
