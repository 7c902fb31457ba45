"""Shared fixtures: an in-process mock upstream and an app wired to it."""

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from veritas_proxy.config import ProxyConfig
from veritas_proxy.server import create_app
from veritas_proxy.upstream import UpstreamClient


class MockUpstream:
    """
    Mock upstream server backed by httpx.MockTransport.

    Records every outbound request. Responses are chosen per host,
    falling back to the default status/body.
    """

    def __init__(
        self,
        status_code: int = 200,
        body: Any = None,
        delay: Optional[float] = None,
    ):
        self.requests: List[httpx.Request] = []
        self.status_code = status_code
        self.body = {"ok": True} if body is None else body
        self.delay = delay
        self.by_host: Dict[str, Tuple[int, Any]] = {}
        self.raise_for_host: Dict[str, Exception] = {}

    def respond(self, host: str, status_code: int, body: Any) -> None:
        self.by_host[host] = (status_code, body)

    def fail(self, host: str, error: Exception) -> None:
        self.raise_for_host[host] = error

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if request.url.host in self.raise_for_host:
            raise self.raise_for_host[request.url.host]

        status_code, body = self.by_host.get(request.url.host, (self.status_code, self.body))
        if isinstance(body, bytes):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, json=body)

    def client(self) -> UpstreamClient:
        return UpstreamClient(transport=httpx.MockTransport(self.handler))

    def json_bodies(self) -> List[Any]:
        return [json.loads(r.content) for r in self.requests if r.content]


@pytest.fixture
def upstream():
    return MockUpstream()


@pytest.fixture
def config():
    return ProxyConfig()


@pytest.fixture
def make_client(config):
    """Build a TestClient for the given mock upstream (and optional config)."""

    def _make(mock: MockUpstream, cfg: Optional[ProxyConfig] = None, routes=None) -> TestClient:
        app = create_app(cfg or config, client=mock.client(), routes=routes)
        return TestClient(app, raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client, upstream):
    return make_client(upstream)
