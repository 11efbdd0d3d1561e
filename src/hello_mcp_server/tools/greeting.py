"""Greeting tool."""

from __future__ import annotations

from hello_mcp.tools import ToolDefinition, ToolOutcome, ToolParameters


class GreetParams(ToolParameters):
    """Parameters for the greet tool."""

    name: str | None = None


def greet_tool() -> ToolDefinition:
    """Create the greet tool definition."""

    def handler(raw_params: dict[str, object]) -> ToolOutcome:
        # Arguments arrive validated; an empty name falls back to the default.
        name = raw_params.get("name") or "World"
        return ToolOutcome.success(f"Hello, {name}!")

    return ToolDefinition(
        name="greet",
        title="Greet",
        description="Return a friendly greeting",
        parameters_model=GreetParams,
        handler=handler,
    )
