"""
Upstream targets

Each target is a fixed URL template plus method, query and headers.
Request-derived pieces (path parameters, injected credentials, body)
are supplied when the outbound request is built.
"""

import json
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import httpx


ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
ANTHROPIC_KEY_PREFIX = "sk-ant-"


@dataclass
class UpstreamTarget:
    """A fixed outbound endpoint."""
    provider: str  # human-readable, used in error messages
    method: str
    url: str  # may contain {placeholders} for path parameters
    params: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)

    def build_request(
        self,
        json_body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        **path_params: str,
    ) -> httpx.Request:
        """Build the outbound request; path parameters are inserted verbatim."""
        url = self.url.format(**path_params)
        merged_headers = {**self.headers, **(headers or {})}
        return httpx.Request(
            self.method,
            url,
            params=self.params or None,
            headers=merged_headers,
            json=json_body,
        )


def screener_query(*operands: Dict[str, Any]) -> str:
    """Encode a Yahoo screener filter as compact JSON."""
    return json.dumps({"operator": "AND", "operands": list(operands)}, separators=(",", ":"))


US_REGION = {"operator": "or", "operands": [{"operator": "EQ", "operands": ["region", "us"]}]}
LARGE_CAP = {"operator": "gt", "operands": ["intradaymarketcap", 2000000000]}
NASDAQ = {"operator": "eq", "operands": ["exchange", "NMS"]}


def screener_target(sort_field: str, query: str) -> UpstreamTarget:
    return UpstreamTarget(
        provider="Yahoo",
        method="GET",
        url="https://query1.finance.yahoo.com/v1/finance/screener",
        params={
            "crumb": "",
            "lang": "en-US",
            "region": "US",
            "formatted": "true",
            "corsDomain": "finance.yahoo.com",
            "count": "10",
            "offset": "0",
            "quoteType": "EQUITY",
            "sortField": sort_field,
            "sortType": "DESC",
            "query": query,
        },
    )


ANTHROPIC_MESSAGES = UpstreamTarget(
    provider="Anthropic",
    method="POST",
    url="https://api.anthropic.com/v1/messages",
    headers={
        "Content-Type": "application/json",
        "anthropic-version": ANTHROPIC_VERSION,
    },
)

YAHOO_CHART = UpstreamTarget(
    provider="Yahoo",
    method="GET",
    url="https://query1.finance.yahoo.com/v8/finance/chart/{ticker}",
    params={"interval": "1d", "range": "1d"},
)

COINGECKO_COIN = UpstreamTarget(
    provider="CoinGecko",
    method="GET",
    url="https://api.coingecko.com/api/v3/coins/{coin_id}",
    params={
        "localization": "false",
        "tickers": "false",
        "community_data": "false",
        "developer_data": "false",
    },
)

YAHOO_GAINERS = screener_target("percentchange", screener_query(US_REGION, LARGE_CAP, NASDAQ))
YAHOO_MOST_ACTIVE = screener_target("dayvolume", screener_query(US_REGION, LARGE_CAP))

TRACKED_COINS = ("bitcoin", "ethereum", "solana", "ripple", "cardano", "dogecoin")

CRYPTO_PROVIDERS: Dict[str, UpstreamTarget] = {
    "coincap": UpstreamTarget(
        provider="CoinCap",
        method="GET",
        url="https://api.coincap.io/v2/assets",
        params={"limit": "6"},
    ),
    "lunar": UpstreamTarget(
        provider="LunarCrush",
        method="GET",
        url="https://lunarcrush.com/api4/public/coins/list/v1",
        params={"sort": "alt_rank", "limit": "6"},
    ),
    "gecko": UpstreamTarget(
        provider="CoinGecko",
        method="GET",
        url="https://api.coingecko.com/api/v3/coins/markets",
        params={
            "vs_currency": "usd",
            "ids": ",".join(TRACKED_COINS),
            "order": "market_cap_desc",
            "price_change_percentage": "24h",
        },
    ),
}
