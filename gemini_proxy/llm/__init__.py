"""
LLM API Proxy

HTTP relay for the Gemini generateContent API with:
- Request validation
- Local rate limiting
- Error translation
"""

from .errors import ProxyError
from .models import PromptRequest, ProxyResponse
from .proxy import ProxyHandler

__all__ = ["ProxyHandler", "ProxyError", "PromptRequest", "ProxyResponse"]
