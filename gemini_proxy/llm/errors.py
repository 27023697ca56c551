"""
Proxy error taxonomy.

Every failure the handler can hit maps to one of these; the handler turns
them into structured JSON responses instead of letting them escape.
"""

from typing import Optional, Dict, Any


class ProxyError(Exception):
    """Base error carrying the HTTP status and error body for the caller."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> Dict[str, Any]:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ClientError(ProxyError):
    """Caller must fix the request."""
    status_code = 400


class MethodNotAllowed(ClientError):
    status_code = 405

    def __init__(self):
        super().__init__("Only POST allowed")


class MissingPrompt(ClientError):
    status_code = 400

    def __init__(self):
        super().__init__("Missing prompt")


class RateLimitExceeded(ClientError):
    status_code = 429

    def __init__(self):
        super().__init__("Rate limit exceeded (demo).")


class ConfigError(ProxyError):
    """Deployment is missing something the operator must provide."""
    status_code = 500


class UpstreamError(ProxyError):
    """Upstream answered with a non-success status."""
    status_code = 502

    def __init__(self, details: str, upstream_status: Optional[int] = None):
        super().__init__("Gemini returned error", details=details)
        self.upstream_status = upstream_status


class InternalError(ProxyError):
    """Network failure or any unexpected exception."""
    status_code = 500

    def __init__(self, details: str):
        super().__init__("AI proxy error", details=details)
