"""
Upstream HTTP client

Thin wrapper over httpx that issues one outbound call, optionally bounded
by a total timeout, and reports the outcome as an UpstreamResult instead
of raising. Tests substitute an httpx.MockTransport.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import DEFAULT_TRANSPORT_TIMEOUT

logger = logging.getLogger("veritas-proxy.upstream")


@dataclass
class UpstreamResult:
    """Outcome of a single outbound call."""
    response: Optional[httpx.Response] = None
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and self.response is not None


class UpstreamClient:
    """
    Issues outbound requests.

    Usage:
        client = UpstreamClient()
        result = await client.call_with_timeout(request, 10.0)
        if result.success:
            data = result.response.json()
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        transport_timeout: float = DEFAULT_TRANSPORT_TIMEOUT,
    ):
        self.transport = transport
        self.transport_timeout = transport_timeout

    async def call_with_timeout(
        self,
        request: httpx.Request,
        timeout: Optional[float] = None,
    ) -> UpstreamResult:
        """
        Send a request.

        With a timeout, the whole exchange (connect, send, read) must finish
        within that many seconds or it is cancelled. Without one, only the
        transport's per-phase timeout applies.
        """
        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=self.transport_timeout,
            ) as client:
                if timeout is None:
                    response = await client.send(request)
                else:
                    response = await asyncio.wait_for(client.send(request), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{request.method} {request.url.host} aborted after {timeout}s")
            return UpstreamResult(
                error=f"Request to {request.url.host} timed out after {timeout}s",
                timed_out=True,
            )
        except httpx.TimeoutException as e:
            return UpstreamResult(
                error=f"Request to {request.url.host} timed out: {e}",
                timed_out=True,
            )
        except httpx.HTTPError as e:
            return UpstreamResult(error=str(e) or type(e).__name__)

        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        return UpstreamResult(response=response)
