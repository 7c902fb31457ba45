"""Outbound HTTP: fixed targets and the injectable client."""

from .client import UpstreamClient, UpstreamResult
from .targets import UpstreamTarget, CRYPTO_PROVIDERS

__all__ = [
    "UpstreamClient",
    "UpstreamResult",
    "UpstreamTarget",
    "CRYPTO_PROVIDERS",
]
