"""Shared fixtures: fake clock and a stubbed Gemini upstream."""

import json

import httpx
import pytest

from gemini_proxy.config import UpstreamConfig
from gemini_proxy.llm import ProxyHandler
from gemini_proxy.ratelimit import RateLimiter


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class StubUpstream:
    """Records outbound requests and answers with a canned response."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = {"candidates": []}
        self.error = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_payload(self):
        return json.loads(self.requests[-1].content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return StubUpstream()


@pytest.fixture
def limiter(clock):
    return RateLimiter(limit=120, window_seconds=60.0, clock=clock)


@pytest.fixture
def handler(upstream, limiter):
    """Handler with a key set, a stubbed upstream and a fake-clock limiter."""
    return ProxyHandler(
        upstream=UpstreamConfig(),
        rate_limiter=limiter,
        environ={"GEMINI_API_KEY": "test-key"},
        transport=upstream.transport,
    )
