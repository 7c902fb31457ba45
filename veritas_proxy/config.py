"""
Configuration management for Veritas API Proxy.

Supports YAML configuration with environment variable expansion.
Without a config file, settings come from the environment alone.
"""

import os
import re
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Any

import yaml


DEFAULT_PORT = 3000
DEFAULT_TRENDING_TIMEOUT = 10.0
DEFAULT_TRANSPORT_TIMEOUT = 120.0

# Provider names accepted by trending.crypto_providers
KNOWN_CRYPTO_PROVIDERS = ("coincap", "lunar", "gecko")


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    reload: bool = False


@dataclass
class UpstreamConfig:
    """Outbound transport configuration."""
    # Applies to routes without an explicit bound
    transport_timeout: float = DEFAULT_TRANSPORT_TIMEOUT


@dataclass
class TrendingConfig:
    """Trending-data routes configuration."""
    timeout: float = DEFAULT_TRENDING_TIMEOUT
    crypto_providers: List[str] = field(default_factory=lambda: ["coincap"])
    lunarcrush_api_key: Optional[str] = None


@dataclass
class ProxyConfig:
    """Root configuration for Veritas API Proxy."""
    server: ServerConfig = field(default_factory=ServerConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    trending: TrendingConfig = field(default_factory=TrendingConfig)

    def validate(self) -> "ProxyConfig":
        """Check cross-field constraints, raising ValueError on the first problem."""
        if not self.trending.crypto_providers:
            raise ValueError("trending.crypto_providers must name at least one provider")
        unknown = [p for p in self.trending.crypto_providers if p not in KNOWN_CRYPTO_PROVIDERS]
        if unknown:
            raise ValueError(
                f"Unknown crypto provider(s): {', '.join(unknown)}. "
                f"Expected any of: {', '.join(KNOWN_CRYPTO_PROVIDERS)}"
            )
        if self.trending.timeout <= 0:
            raise ValueError("trending.timeout must be positive")
        if self.upstream.transport_timeout <= 0:
            raise ValueError("upstream.transport_timeout must be positive")
        if not 0 < self.server.port < 65536:
            raise ValueError(f"Invalid port: {self.server.port}")
        return self


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


def parse_provider_list(value: Any) -> List[str]:
    """Accept either a YAML list or a comma-separated string."""
    if isinstance(value, str):
        return [p.strip().lower() for p in value.split(",") if p.strip()]
    return [str(p).strip().lower() for p in value or []]


def parse_config(data: Dict[str, Any]) -> ProxyConfig:
    """Build a ProxyConfig from an already-expanded dict."""
    server_data = data.get("server") or {}
    server = ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=int(server_data.get("port", DEFAULT_PORT)),
        log_level=str(server_data.get("log_level", "INFO")).upper(),
        reload=bool(server_data.get("reload", False)),
    )

    upstream_data = data.get("upstream") or {}
    upstream = UpstreamConfig(
        transport_timeout=float(
            upstream_data.get("transport_timeout", DEFAULT_TRANSPORT_TIMEOUT)
        ),
    )

    trending_data = data.get("trending") or {}
    trending = TrendingConfig(
        timeout=float(trending_data.get("timeout", DEFAULT_TRENDING_TIMEOUT)),
        crypto_providers=parse_provider_list(
            trending_data.get("crypto_providers", ["coincap"])
        ),
        lunarcrush_api_key=trending_data.get("lunarcrush_api_key") or None,
    )

    return ProxyConfig(server=server, upstream=upstream, trending=trending)


def apply_env_overrides(config: ProxyConfig) -> ProxyConfig:
    """PORT always wins over the file, as a hosting platform sets it."""
    port = os.environ.get("PORT")
    if port:
        config.server.port = int(port)
    return config


def config_from_env() -> ProxyConfig:
    """Build configuration purely from environment variables."""
    env = os.environ
    data: Dict[str, Any] = {
        "server": {
            "host": env.get("HOST") or "0.0.0.0",
            "port": env.get("PORT") or DEFAULT_PORT,
            "log_level": env.get("LOG_LEVEL") or "INFO",
        },
        "trending": {
            "timeout": env.get("TRENDING_TIMEOUT") or DEFAULT_TRENDING_TIMEOUT,
            "crypto_providers": env.get("TRENDING_CRYPTO_PROVIDERS") or "coincap",
            "lunarcrush_api_key": env.get("LUNARCRUSH_API_KEY"),
        },
    }
    return parse_config(data).validate()


def load_config(path: str | Path) -> ProxyConfig:
    """Load configuration from YAML file."""
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    # Expand environment variables
    data = expand_env_vars(raw)

    config = parse_config(data)
    return apply_env_overrides(config).validate()


def create_default_config() -> str:
    """Generate default configuration YAML."""
    return """# Veritas API Proxy Configuration

server:
  host: 0.0.0.0
  port: 3000
  log_level: INFO

upstream:
  # Bound for chat, stock and coin routes (seconds)
  transport_timeout: 120

trending:
  # Bound for /api/trending/* routes (seconds)
  timeout: 10
  # coincap          -> single CoinCap asset list, relayed as-is
  # [lunar, gecko]   -> LunarCrush + CoinGecko, merged as {lunar, gecko}
  crypto_providers:
    - coincap
  # lunarcrush_api_key: ${LUNARCRUSH_API_KEY}
"""
