"""
Veritas API Proxy - Forwarding gateway for chat, stock and crypto APIs

Routes:
1. /api/claude - Anthropic Messages API with caller-supplied key
2. /api/stock, /api/crypto - Yahoo Finance and CoinGecko lookups
3. /api/trending/* - screener and coin lists with a bounded timeout
"""

__version__ = "0.1.0"

from .config import ProxyConfig, load_config
from .server import create_app

__all__ = [
    "__version__",
    "ProxyConfig",
    "load_config",
    "create_app",
]
