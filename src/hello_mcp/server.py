"""Tool registry and invoker for the MCP dispatch core.

The registry is populated once at start-up and frozen before the HTTP binding
serves its first request, so concurrent readers never need a lock. The invoker
runs a tool handler and folds every way it can end into a :class:`ToolOutcome`.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import structlog

from hello_mcp.tools import ToolDefinition, ToolError, ToolOutcome

logger = structlog.get_logger(__name__)


class DuplicateToolError(ValueError):
    """Raised when a tool name is registered twice."""


class RegistryFrozenError(RuntimeError):
    """Raised when registering into a frozen registry."""


class ToolNotFoundError(KeyError):
    """Raised when looking up a tool name that is not registered."""

    def __init__(self, name: str) -> None:
        """Remember the missing tool name."""
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Tool '{self.name}' not found"


class ToolRegistry:
    """In-memory registry of MCP tools.

    Tools are added during initialization and the registry is then frozen. No
    removal operation exists; definitions live for the process lifetime.
    """

    def __init__(self) -> None:
        """Initialize an empty, unfrozen registry."""
        self._tools: dict[str, ToolDefinition] = {}
        self._frozen = False

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a tool with the registry.

        Args:
            tool: Tool definition to register.

        Raises:
            DuplicateToolError: If a tool with the same name is already registered.
            RegistryFrozenError: If the registry has been frozen.

        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register '{tool.name}': registry is frozen"
            )
        if tool.name in self._tools:
            raise DuplicateToolError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def register_tools(self, *tools: ToolDefinition) -> None:
        """Register multiple tools at once.

        Args:
            *tools: Collection of tool definitions to register.

        """
        for tool in tools:
            self.register_tool(tool)

    def freeze(self) -> None:
        """Make the registry read-only. Calling it again is a no-op."""
        if not self._frozen:
            self._frozen = True
            logger.debug("registry.frozen", tools=self.available_tools())

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def tools(self) -> Mapping[str, ToolDefinition]:
        """Read-only view of the registered tools."""
        return MappingProxyType(self._tools)

    def lookup(self, name: str) -> ToolDefinition:
        """Resolve a tool by name.

        Raises:
            ToolNotFoundError: If the tool name is not registered.

        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def available_tools(self) -> list[str]:
        """List the names of registered tools.

        Returns:
            Sorted list of tool names.

        """
        return sorted(self._tools)

    def list_tools(self) -> list[dict[str, Any]]:
        """Entries for an MCP ``tools/list`` result, in registration order."""
        return [tool.metadata() for tool in self._tools.values()]

    def to_catalog(self) -> dict[str, dict[str, Any]]:
        """Produce a catalog for discovery.

        Returns:
            Mapping of tool names to their metadata.

        """
        return {name: tool.metadata() for name, tool in self._tools.items()}

    def __len__(self) -> int:
        return len(self._tools)


class HandlerTimeoutError(Exception):
    """A timeout raised by the handler itself, not by the invoker deadline."""


async def _call_handler(tool: ToolDefinition, arguments: dict[str, Any]) -> Any:
    try:
        result = tool.handler(arguments)
        if inspect.isawaitable(result):
            result = await result
    except (TimeoutError, asyncio.TimeoutError) as error:
        raise HandlerTimeoutError(str(error)) from error
    return result


async def invoke_tool(
    tool: ToolDefinition,
    arguments: dict[str, Any],
    *,
    timeout: float | None = None,
) -> ToolOutcome:
    """Run a tool handler and normalize how it ended into a ToolOutcome.

    Args:
        tool: Resolved tool definition.
        arguments: Arguments already checked by :meth:`ToolDefinition.validate`.
        timeout: Upper bound in seconds for the handler, ``None`` for no bound.

    Returns:
        The handler's outcome, or an error outcome when the handler raised
        :class:`ToolError`, failed unexpectedly, returned something other than
        a ToolOutcome, or did not finish within ``timeout``.

    """
    log = logger.bind(tool=tool.name)
    try:
        result = await asyncio.wait_for(_call_handler(tool, arguments), timeout)
    except asyncio.TimeoutError:
        log.warning("tool.timeout", timeout=timeout)
        return ToolOutcome.error(
            f"Tool '{tool.name}' timed out after {timeout} seconds."
        )
    except ToolError as error:
        log.info("tool.declared_error", error=error.message, **error.log_context())
        return ToolOutcome.error(error.message)
    except Exception:
        log.exception("tool.unexpected_error")
        return ToolOutcome.error(f"Tool '{tool.name}' failed unexpectedly.")

    if not isinstance(result, ToolOutcome):
        log.error("tool.invalid_result", result_type=type(result).__name__)
        return ToolOutcome.error(f"Tool '{tool.name}' failed unexpectedly.")
    return result
