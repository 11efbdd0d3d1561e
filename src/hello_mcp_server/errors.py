"""Custom error types for MCP tooling."""

from __future__ import annotations

from typing import NoReturn

from hello_mcp.tools import ToolError


class MCPError(ToolError):
    """Declared tool failure tagged with a machine-readable type.

    Raised inside a handler, it reaches the caller as an error result whose
    text is ``message``; ``error_type`` and ``details`` only go to the logs.
    """

    def __init__(
        self, error_type: str, message: str, details: object | None = None
    ) -> None:
        """Create a typed MCP error."""
        super().__init__(message, details)
        self.error_type = error_type

    def log_context(self) -> dict[str, object]:
        """Include the error type with the logged details."""
        return {"error_type": self.error_type, "details": self.details}


def raise_mcp_error(
    error_type: str, message: str, details: object | None = None
) -> NoReturn:
    """Raise an :class:`MCPError` with a structured payload."""
    raise MCPError(error_type=error_type, message=message, details=details)
