"""Stateless HTTP Model Context Protocol server with greeting and upstream tools."""

from hello_mcp_server.config import Settings, get_settings
from hello_mcp_server.errors import MCPError
from hello_mcp_server.http_app import create_app
from hello_mcp_server.tools import build_tools

__all__ = [
    "MCPError",
    "Settings",
    "build_tools",
    "create_app",
    "get_settings",
]
