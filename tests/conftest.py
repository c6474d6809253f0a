# AITable MCP Server
# File: tests/conftest.py
# Version: v1

"""Shared fixtures: a routed fake upstream behind httpx.MockTransport.

Nothing in the suite talks to a real AITable tenant. Routes are keyed by
method and URL (without query string); unrouted requests get a 404, which is
also how the meta endpoints "fail" in fallback tests.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest

from aitable_mcp.client import AITableClient
from aitable_mcp.config import AITableConfig

META_URL = "https://meta.test"
FUSION_URL = "https://fusion.test/fusion/v1"


def fusion_ok(data: Any) -> Dict[str, Any]:
    """A successful fusion envelope."""
    return {"success": True, "code": 200, "message": "SUCCESS", "data": data}


def fusion_fail(code: int = 404, message: str = "NOT_FOUND") -> Dict[str, Any]:
    return {"success": False, "code": code, "message": message, "data": None}


class FakeUpstream:
    """Programmable HTTP backend.

    ``add()`` queues responses for one route. Each queued response is served
    once; the last one keeps being served for further calls. A response can
    be an ``httpx.Response``, plain JSON data (served with 200), or a
    callable taking the request and returning either of those.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[httpx.Request] = []

    def add(self, method: str, url: str, *responses: Any) -> "FakeUpstream":
        self.routes.setdefault((method.upper(), url), []).extend(responses)
        return self

    def meta(self, method: str, path: str, *responses: Any) -> "FakeUpstream":
        return self.add(method, f"{META_URL}{path}", *responses)

    def fusion(self, method: str, path: str, *responses: Any) -> "FakeUpstream":
        return self.add(method, f"{FUSION_URL}{path}", *responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = request.url
        key = (request.method, f"{url.scheme}://{url.host}{url.path}")

        queue = self.routes.get(key)
        if not queue:
            return httpx.Response(404, json={"error": "NOT_FOUND", "path": url.path})

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def requests_to(self, method: str, path_suffix: str) -> List[httpx.Request]:
        return [
            r
            for r in self.calls
            if r.method == method and r.url.path.endswith(path_suffix)
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def config() -> AITableConfig:
    return AITableConfig(
        api_key="test-key",
        base_url=META_URL,
        fusion_url=FUSION_URL,
        timeout_seconds=5,
    )


@pytest.fixture
def make_client(upstream: FakeUpstream, config: AITableConfig) -> Callable[[], AITableClient]:
    def _make() -> AITableClient:
        return AITableClient(config=config, transport=upstream.transport())

    return _make


@pytest.fixture
def client(make_client) -> AITableClient:
    return make_client()
