"""
Forwarding Gateway

One handler per route. Each handler validates its input, builds a single
outbound request from a fixed target, awaits it (bounded for trending
routes) and relays the upstream JSON. Failures are raised as ProxyError
subclasses and rendered by the application's exception handlers.
"""

import logging
from typing import Optional, Dict, Any

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from .config import ProxyConfig
from .errors import UpstreamError, ValidationError
from .models import ClaudeProxyRequest, AnthropicMessagesRequest
from .upstream import UpstreamClient, CRYPTO_PROVIDERS
from .upstream.targets import (
    ANTHROPIC_KEY_PREFIX,
    ANTHROPIC_MESSAGES,
    ANTHROPIC_MODEL,
    COINGECKO_COIN,
    YAHOO_CHART,
    YAHOO_GAINERS,
    YAHOO_MOST_ACTIVE,
    UpstreamTarget,
)

logger = logging.getLogger("veritas-proxy.gateway")

STATUS_MESSAGE = "Veritas API Proxy is running"
INVALID_KEY_MESSAGE = f"Invalid API key format. Key must start with {ANTHROPIC_KEY_PREFIX}"
INTERNAL_ERROR = "Internal server error"


def timeout_bound(handler):
    """Mark a handler whose upstream calls use trending.timeout."""
    handler.timeout_bound = True
    return handler


def count_quotes(data: Any) -> int:
    """Number of quotes in a Yahoo screener response."""
    try:
        return len(data["finance"]["result"][0]["quotes"])
    except (KeyError, IndexError, TypeError):
        return 0


def count_assets(data: Any) -> int:
    """Number of assets in a crypto list response (CoinCap/LunarCrush wrap it in "data")."""
    if isinstance(data, dict):
        data = data.get("data")
    return len(data) if isinstance(data, list) else 0


class ForwardingGateway:
    """
    Request forwarder for the Veritas API routes.

    Stateless apart from configuration and the injected client; credentials
    are forwarded per request and never retained.
    """

    def __init__(self, config: ProxyConfig, client: Optional[UpstreamClient] = None):
        self.config = config
        self.client = client or UpstreamClient(
            transport_timeout=config.upstream.transport_timeout,
        )

    # -------------------------------------------------------------------------
    # Shared forwarding steps
    # -------------------------------------------------------------------------

    async def _send(
        self,
        request: httpx.Request,
        target: UpstreamTarget,
        timeout: Optional[float] = None,
        endpoint: Optional[str] = None,
        summary: Optional[str] = None,
        require_ok: bool = False,
    ) -> httpx.Response:
        result = await self.client.call_with_timeout(request, timeout)
        if not result.success:
            raise UpstreamError(result.error, endpoint=endpoint, summary=summary)

        response = result.response
        if require_ok and not response.is_success:
            raise UpstreamError(
                f"{target.provider} API returned {response.status_code}",
                endpoint=endpoint,
                summary=summary,
            )
        return response

    @staticmethod
    def _parse(
        response: httpx.Response,
        target: UpstreamTarget,
        endpoint: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Invalid JSON from {target.provider}: {e}",
                endpoint=endpoint,
                summary=summary,
            )

    @staticmethod
    def _build(
        target: UpstreamTarget,
        endpoint: Optional[str] = None,
        summary: Optional[str] = None,
        json_body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        **path_params: str,
    ) -> httpx.Request:
        # Non-ASCII header values and unusable URLs fail here, before any I/O
        try:
            return target.build_request(json_body=json_body, headers=headers, **path_params)
        except (httpx.InvalidURL, ValueError) as e:
            raise UpstreamError(
                f"Could not build request to {target.provider}: {e}",
                endpoint=endpoint,
                summary=summary,
            )

    async def _fetch_json(
        self,
        target: UpstreamTarget,
        timeout: Optional[float] = None,
        endpoint: Optional[str] = None,
        require_ok: bool = False,
        headers: Optional[Dict[str, str]] = None,
        **path_params: str,
    ) -> Any:
        request = self._build(target, endpoint=endpoint, headers=headers, **path_params)
        response = await self._send(
            request, target, timeout=timeout, endpoint=endpoint, require_ok=require_ok
        )
        return self._parse(response, target, endpoint=endpoint)

    # -------------------------------------------------------------------------
    # Route handlers
    # -------------------------------------------------------------------------

    async def status(self) -> Dict[str, str]:
        """Liveness check."""
        return {"status": STATUS_MESSAGE}

    async def claude(self, request: Request) -> JSONResponse:
        """Forward a chat request to Anthropic with the caller's own key."""
        try:
            body = await request.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        api_key = body.get("apiKey")
        if not isinstance(api_key, str) or not api_key.startswith(ANTHROPIC_KEY_PREFIX):
            raise ValidationError(INVALID_KEY_MESSAGE)

        proxy_request = ClaudeProxyRequest.model_validate(body)
        payload = AnthropicMessagesRequest.from_proxy_request(
            proxy_request, model=ANTHROPIC_MODEL
        ).to_payload()
        outbound = self._build(
            ANTHROPIC_MESSAGES,
            summary=INTERNAL_ERROR,
            json_body=payload,
            headers={"x-api-key": api_key},
        )

        response = await self._send(outbound, ANTHROPIC_MESSAGES, summary=INTERNAL_ERROR)
        data = self._parse(response, ANTHROPIC_MESSAGES, summary=INTERNAL_ERROR)

        if not response.is_success:
            logger.warning(f"Anthropic returned {response.status_code}")

        # Upstream status is relayed as-is, error statuses included
        return JSONResponse(content=data, status_code=response.status_code)

    async def stock(self, ticker: str) -> Any:
        """Daily chart for one ticker."""
        return await self._fetch_json(YAHOO_CHART, ticker=ticker)

    async def crypto(self, coin_id: str) -> Any:
        """Coin detail without localization, tickers or community data."""
        return await self._fetch_json(COINGECKO_COIN, coin_id=coin_id)

    @timeout_bound
    async def trending_gainers(self) -> Any:
        data = await self._fetch_json(
            YAHOO_GAINERS,
            timeout=self.config.trending.timeout,
            endpoint="gainers",
            require_ok=True,
        )
        logger.info(f"Gainers fetched: {count_quotes(data)} stocks")
        return data

    @timeout_bound
    async def trending_active(self) -> Any:
        data = await self._fetch_json(
            YAHOO_MOST_ACTIVE,
            timeout=self.config.trending.timeout,
            endpoint="active",
            require_ok=True,
        )
        logger.info(f"Most active fetched: {count_quotes(data)} stocks")
        return data

    @timeout_bound
    async def trending_crypto(self) -> Any:
        """
        Trending coins from the configured provider set.

        A single provider is relayed as-is; several are fetched one after
        another and merged under their provider names.
        """
        results: Dict[str, Any] = {}
        for name in self.config.trending.crypto_providers:
            target = CRYPTO_PROVIDERS[name]
            data = await self._fetch_json(
                target,
                timeout=self.config.trending.timeout,
                endpoint="crypto",
                require_ok=True,
                headers=self._provider_headers(name),
            )
            logger.info(f"Crypto fetched from {target.provider}: {count_assets(data)} assets")
            results[name] = data

        if len(results) == 1:
            return next(iter(results.values()))
        return results

    def _provider_headers(self, name: str) -> Optional[Dict[str, str]]:
        if name == "lunar" and self.config.trending.lunarcrush_api_key:
            return {"Authorization": f"Bearer {self.config.trending.lunarcrush_api_key}"}
        return None
