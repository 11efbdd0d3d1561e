"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from hello_mcp.jsonrpc import Dispatcher
from hello_mcp.server import ToolRegistry
from hello_mcp_server.config import Settings
from hello_mcp_server.tools import build_tools

UPSTREAM_URL = "http://upstream.test/fixtures"

UpstreamHandler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio only."""
    return "asyncio"


@pytest.fixture()
def settings() -> Settings:
    """Provide settings that never read the developer's .env file."""
    return Settings(
        api_base=UPSTREAM_URL,
        api_code="secret-code",
        tool_timeout=5.0,
        upstream_timeout=1.0,
        _env_file=None,
    )


@pytest.fixture()
def upstream_json() -> UpstreamHandler:
    """Upstream that answers with a small JSON fixture list."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"fixtures": [{"id": 1, "home": "Ada FC"}]})

    return handler


def make_dispatcher(
    settings: Settings, upstream: UpstreamHandler | None = None
) -> Dispatcher:
    """Build a dispatcher whose upstream calls go to ``upstream``."""
    transport = httpx.MockTransport(upstream) if upstream is not None else None
    registry = ToolRegistry()
    registry.register_tools(*build_tools(settings, transport=transport))
    registry.freeze()
    return Dispatcher(registry, tool_timeout=settings.tool_timeout)


@pytest.fixture()
def dispatcher(settings: Settings, upstream_json: UpstreamHandler) -> Dispatcher:
    """Dispatcher wired to the JSON upstream."""
    return make_dispatcher(settings, upstream_json)


def tool_call(name: str, arguments: object = None, request_id: object = 1) -> dict:
    """Build a tools/call request envelope."""
    params: dict[str, object] = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": params,
    }
