"""
Route table

A plain list mapping (method, path pattern) to a gateway handler. The
table is built once and handed to create_app, which registers each entry.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List

from .gateway import ForwardingGateway


@dataclass(frozen=True)
class Route:
    """One entry in the route table."""
    method: str
    path: str
    handler: Callable[..., Awaitable[Any]]
    name: str

    @property
    def timeout_bound(self) -> bool:
        """Whether the handler bounds its upstream calls, as marked in the gateway."""
        return getattr(self.handler, "timeout_bound", False)

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "path": self.path,
            "name": self.name,
            "timeout_bound": self.timeout_bound,
        }


def build_route_table(gateway: ForwardingGateway) -> List[Route]:
    """Routes served by the proxy, bound to one gateway instance."""
    return [
        Route("GET", "/", gateway.status, "status"),
        Route("POST", "/api/claude", gateway.claude, "claude"),
        Route("GET", "/api/stock/{ticker}", gateway.stock, "stock"),
        Route("GET", "/api/crypto/{coin_id}", gateway.crypto, "crypto"),
        Route("GET", "/api/trending/gainers", gateway.trending_gainers, "gainers"),
        Route("GET", "/api/trending/active", gateway.trending_active, "active"),
        Route("GET", "/api/trending/crypto", gateway.trending_crypto, "trending_crypto"),
    ]
