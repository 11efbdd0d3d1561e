"""hello_mcp package initialization."""

__version__ = "1.0.0"

from hello_mcp.jsonrpc import Dispatcher, JsonRpcResponse  # noqa: E402
from hello_mcp.server import ToolRegistry, invoke_tool  # noqa: E402
from hello_mcp.tools import (  # noqa: E402
    TextContent,
    ToolDefinition,
    ToolError,
    ToolOutcome,
    ToolParameters,
)

__all__ = [
    "Dispatcher",
    "JsonRpcResponse",
    "TextContent",
    "ToolDefinition",
    "ToolError",
    "ToolOutcome",
    "ToolParameters",
    "ToolRegistry",
    "__version__",
    "invoke_tool",
]
