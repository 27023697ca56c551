"""
Configuration management for Gemini Proxy.

Supports YAML configuration with environment variable expansion.
The API key is never stored here: only the name of the environment
variable holding it, which the handler reads on every call.
"""

import os
import re
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any

import yaml


DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8787
    reload: bool = False
    path: str = "/api/gemini-proxy"


@dataclass
class UpstreamConfig:
    """Gemini API endpoint configuration."""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    api_key_env: str = DEFAULT_API_KEY_ENV
    timeout: float = 120.0


@dataclass
class RateLimitConfig:
    """Per-process call budget."""
    enabled: bool = True
    # Coarse per-instance cap. Older docs quoted 8/minute; 120 is what is enforced.
    limit: int = 120
    window_seconds: float = 60.0


@dataclass
class ProxyConfig:
    """Root configuration for Gemini Proxy."""
    server: ServerConfig = field(default_factory=ServerConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values."""
    if isinstance(value, str):
        # Match ${VAR} or $VAR patterns
        pattern = r'\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)'

        def replace(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        return re.sub(pattern, replace, value)
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(v) for v in value]
    return value


def as_bool(value: Any, default: bool = False) -> bool:
    """Coerce a config flag; env-expanded values arrive as strings."""
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
        # Unset ${VAR} stays literal
        return default
    return bool(value)


def parse_config(data: Dict[str, Any]) -> ProxyConfig:
    """Build a ProxyConfig from an already-expanded dict."""
    server_data = data.get("server") or {}
    server = ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=int(server_data.get("port", 8787)),
        reload=as_bool(server_data.get("reload"), False),
        path=server_data.get("path", "/api/gemini-proxy"),
    )

    upstream_data = data.get("upstream") or {}
    upstream = UpstreamConfig(
        base_url=upstream_data.get("base_url", DEFAULT_BASE_URL),
        model=upstream_data.get("model", DEFAULT_MODEL),
        api_key_env=upstream_data.get("api_key_env", DEFAULT_API_KEY_ENV),
        timeout=float(upstream_data.get("timeout", 120.0)),
    )

    rate_data = data.get("rate_limit") or {}
    rate_limit = RateLimitConfig(
        enabled=as_bool(rate_data.get("enabled"), True),
        limit=int(rate_data.get("limit", 120)),
        window_seconds=float(rate_data.get("window_seconds", 60.0)),
    )

    return ProxyConfig(server=server, upstream=upstream, rate_limit=rate_limit)


def load_config(path: str | Path) -> ProxyConfig:
    """Load configuration from YAML file."""
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return parse_config(expand_env_vars(raw))


def create_default_config() -> str:
    """Generate default configuration YAML."""
    return f"""# Gemini Proxy Configuration

server:
  host: 0.0.0.0
  port: 8787
  path: /api/gemini-proxy

# Gemini generateContent endpoint
upstream:
  base_url: {DEFAULT_BASE_URL}
  model: {DEFAULT_MODEL}
  # Name of the environment variable holding the API key (read per request)
  api_key_env: {DEFAULT_API_KEY_ENV}
  timeout: 120

# Per-process call budget (resets on restart, not shared between instances)
rate_limit:
  enabled: true
  limit: 120
  window_seconds: 60
"""
