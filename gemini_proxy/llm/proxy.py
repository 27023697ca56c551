"""
Gemini HTTP Relay

Forwards a JSON prompt to the Gemini generateContent API and relays the
response. Hosting-platform neutral: takes a method and raw body, returns a
ProxyResponse that the FastAPI route or the serverless entry point renders.

Request flow:
    method check -> body parse -> prompt check -> API key -> rate budget
    -> upstream POST -> verbatim JSON or translated error
"""

import os
import logging
from typing import Optional, Dict, Any, Mapping, Union
from urllib.parse import quote

import httpx

from ..config import UpstreamConfig
from ..ratelimit import RateLimiter
from .errors import (
    ProxyError,
    ConfigError,
    InternalError,
    MethodNotAllowed,
    MissingPrompt,
    RateLimitExceeded,
    UpstreamError,
)
from .models import GenerateContentRequest, PromptRequest, ProxyResponse, parse_body

logger = logging.getLogger("gemini-proxy.handler")


class ProxyHandler:
    """
    Rate-limited relay for generateContent.

    The rate limiter is owned by the hosting process and shared by reference,
    so every handler built around the same limiter draws from one budget.
    Pass `rate_limiter=None` to disable local limiting.
    """

    def __init__(
        self,
        upstream: Optional[UpstreamConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        environ: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.upstream = upstream or UpstreamConfig()
        self.rate_limiter = rate_limiter
        self.environ = environ if environ is not None else os.environ
        self.transport = transport

        # Stats
        self.requests_total = 0
        self.requests_rejected = 0
        self.rate_limited = 0
        self.upstream_errors = 0
        self.internal_errors = 0

    @property
    def endpoint(self) -> str:
        """generateContent URL without the key."""
        base = self.upstream.base_url.rstrip("/")
        return f"{base}/models/{self.upstream.model}:generateContent"

    def build_url(self, api_key: str) -> str:
        return f"{self.endpoint}?key={quote(api_key, safe='')}"

    async def handle(self, method: str, body: Optional[Union[str, bytes, Dict[str, Any]]] = None) -> ProxyResponse:
        """Process one inbound request. Never raises."""
        self.requests_total += 1
        try:
            return await self._process(method, body)
        except ProxyError as e:
            self._count_error(e)
            return ProxyResponse(status_code=e.status_code, body=e.to_body())
        except Exception as e:
            logger.exception(f"Proxy error: {e}")
            self.internal_errors += 1
            error = InternalError(str(e))
            return ProxyResponse(status_code=error.status_code, body=error.to_body())

    async def _process(self, method: str, body: Optional[Union[str, bytes, Dict[str, Any]]]) -> ProxyResponse:
        if (method or "").upper() != "POST":
            raise MethodNotAllowed()

        request = PromptRequest.from_dict(parse_body(body))
        if not request.prompt:
            raise MissingPrompt()

        api_key = self.environ.get(self.upstream.api_key_env)
        if not api_key:
            logger.warning(f"API key variable {self.upstream.api_key_env} is not set")
            raise ConfigError("Server misconfigured: GEMINI_API_KEY missing")

        url = self.build_url(api_key)
        payload = GenerateContentRequest.from_prompt(request).to_payload()

        if self.rate_limiter is not None and not self.rate_limiter.hit():
            raise RateLimitExceeded()

        result = await self._forward(url, payload)
        return ProxyResponse(status_code=200, body=result)

    async def _forward(self, url: str, payload: Dict[str, Any]) -> Any:
        """POST payload upstream and return the decoded JSON body."""
        try:
            async with httpx.AsyncClient(
                timeout=self.upstream.timeout,
                transport=self.transport,
            ) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            raise InternalError(str(e) or e.__class__.__name__) from e

        if not response.is_success:
            text = response.text
            logger.error(f"Gemini API error {response.status_code}: {text}")
            raise UpstreamError(text, upstream_status=response.status_code)

        return response.json()

    def _count_error(self, error: ProxyError):
        if isinstance(error, RateLimitExceeded):
            self.rate_limited += 1
        elif isinstance(error, UpstreamError):
            self.upstream_errors += 1
        elif isinstance(error, InternalError):
            logger.error(f"Proxy error: {error.details}")
            self.internal_errors += 1
        else:
            self.requests_rejected += 1

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "requests_total": self.requests_total,
            "requests_rejected": self.requests_rejected,
            "rate_limited": self.rate_limited,
            "upstream_errors": self.upstream_errors,
            "internal_errors": self.internal_errors,
            "rate_limit": self.rate_limiter.stats if self.rate_limiter else None,
        }
