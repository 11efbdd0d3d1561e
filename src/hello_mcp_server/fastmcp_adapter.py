"""Adapters for exposing the hello MCP tools via FastMCP (stdio transport)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent

from hello_mcp.server import invoke_tool
from hello_mcp.tools import InvalidParamsError, ToolDefinition
from hello_mcp_server.config import Settings
from hello_mcp_server.tools import INSTRUCTIONS, SERVER_NAME, build_tools


class ToolDefinitionAdapter(Tool):
    """Expose a :class:`ToolDefinition` as a FastMCP tool."""

    def __init__(
        self, definition: ToolDefinition, *, timeout: float | None = None
    ) -> None:
        """Create a FastMCP tool wrapper for the provided definition."""
        super().__init__(
            name=definition.name,
            title=definition.title,
            description=definition.description,
            parameters=definition.input_schema,
            tags=set(),
        )
        self._definition = definition
        self._timeout = timeout

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        """Validate arguments and delegate to the shared invoker."""
        try:
            validated_arguments = self._definition.validate(arguments)
        except InvalidParamsError as error:
            problems = "; ".join(
                f"{issue.path or '<arguments>'}: expected {issue.expected}, "
                f"got {issue.actual}"
                for issue in error.issues
            )
            raise ToolError(f"{error} ({problems})") from error

        outcome = await invoke_tool(
            self._definition, validated_arguments, timeout=self._timeout
        )
        if outcome.is_error:
            raise ToolError(outcome.text)
        return ToolResult(
            content=[
                TextContent(type="text", text=block.text) for block in outcome.content
            ]
        )


def to_fastmcp_tools(
    tool_definitions: Sequence[ToolDefinition], *, timeout: float | None = None
) -> list[Tool]:
    """Convert tool definitions into FastMCP-compatible tools."""
    return [
        ToolDefinitionAdapter(definition, timeout=timeout)
        for definition in tool_definitions
    ]


def build_fastmcp_app(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> tuple[FastMCP, list[ToolDefinition]]:
    """Create a FastMCP server instance with all tools registered."""
    app = FastMCP(name=SERVER_NAME, instructions=INSTRUCTIONS)
    tool_definitions = build_tools(settings, transport=transport)
    for tool in to_fastmcp_tools(tool_definitions, timeout=settings.tool_timeout):
        app.add_tool(tool)
    return app, tool_definitions
