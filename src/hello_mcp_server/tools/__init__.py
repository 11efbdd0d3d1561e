"""Tool registration helpers for the hello MCP server."""

from __future__ import annotations

import httpx

from hello_mcp.tools import ToolDefinition
from hello_mcp_server.config import Settings
from hello_mcp_server.tools.external import fetch_external_data_tool
from hello_mcp_server.tools.greeting import greet_tool

SERVER_NAME = "hello-mcp"
INSTRUCTIONS = (
    "Greeting and upstream fixture tools exposed over the Model Context Protocol."
)


def build_tools(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> list[ToolDefinition]:
    """Instantiate all tool definitions from the provided settings."""
    return [
        greet_tool(),
        fetch_external_data_tool(
            settings.api_base,
            settings.api_code,
            timeout=settings.upstream_timeout,
            transport=transport,
        ),
    ]
