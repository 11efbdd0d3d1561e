"""Tests for the tool registry and invoker."""

from __future__ import annotations

import asyncio

import pytest

from hello_mcp.server import (
    DuplicateToolError,
    RegistryFrozenError,
    ToolNotFoundError,
    ToolRegistry,
    invoke_tool,
)
from hello_mcp.tools import ToolDefinition, ToolError, ToolOutcome, ToolParameters
from hello_mcp_server.errors import MCPError
from hello_mcp_server.tools.greeting import greet_tool


def _tool(name: str, handler: object) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=f"{name} test tool",
        parameters_model=ToolParameters,
        handler=handler,  # type: ignore[arg-type]
    )


class TestToolRegistry:
    """Behavioral coverage for ToolRegistry."""

    def test_register_and_list_tools(self) -> None:
        """Registers a tool and ensures it appears in the catalog."""
        # Arrange
        registry = ToolRegistry()
        greet = greet_tool()

        # Act
        registry.register_tool(greet)

        # Assert
        assert registry.available_tools() == ["greet"]
        catalog = registry.to_catalog()
        assert catalog["greet"]["description"] == greet.description
        assert catalog["greet"]["inputSchema"]["properties"]["name"]

    def test_prevents_duplicate_tool_names(self) -> None:
        """Duplicate tool registrations raise a DuplicateToolError."""
        # Arrange
        registry = ToolRegistry()
        registry.register_tool(greet_tool())

        # Act / Assert
        with pytest.raises(DuplicateToolError):
            registry.register_tool(greet_tool())
        assert len(registry) == 1

    def test_frozen_registry_rejects_registration(self) -> None:
        """Nothing can be added once the registry is frozen."""
        registry = ToolRegistry()
        registry.register_tool(greet_tool())
        registry.freeze()

        with pytest.raises(RegistryFrozenError):
            registry.register_tool(_tool("late", lambda _: ToolOutcome.success()))
        assert registry.frozen is True
        assert registry.available_tools() == ["greet"]

    def test_lookup_returns_the_same_definition_every_time(self) -> None:
        """Lookups are stable for the lifetime of the registry."""
        registry = ToolRegistry()
        greet = greet_tool()
        registry.register_tool(greet)
        registry.freeze()

        assert all(registry.lookup("greet") is greet for _ in range(5))

    def test_lookup_unknown_tool_errors(self) -> None:
        """Unknown tool names raise ToolNotFoundError."""
        registry = ToolRegistry()

        with pytest.raises(ToolNotFoundError) as error_info:
            registry.lookup("missing")

        assert str(error_info.value) == "Tool 'missing' not found"

    def test_tools_view_is_read_only(self) -> None:
        """The exposed mapping cannot be used to mutate the registry."""
        registry = ToolRegistry()
        registry.register_tool(greet_tool())

        with pytest.raises(TypeError):
            registry.tools["other"] = greet_tool()  # type: ignore[index]

    def test_list_tools_keeps_registration_order(self) -> None:
        """tools/list entries follow registration order and carry titles."""
        registry = ToolRegistry()
        registry.register_tools(
            _tool("zeta", lambda _: ToolOutcome.success()), greet_tool()
        )

        entries = registry.list_tools()

        assert [entry["name"] for entry in entries] == ["zeta", "greet"]
        assert entries[1]["title"] == "Greet"
        assert "title" not in entries[0]


class TestInvokeTool:
    """Fault normalization at the invoker boundary."""

    @pytest.mark.anyio()
    async def test_sync_handler_success(self) -> None:
        outcome = await invoke_tool(greet_tool(), {"name": "Ada"})

        assert outcome == ToolOutcome.success("Hello, Ada!")

    @pytest.mark.anyio()
    async def test_async_handler_success(self) -> None:
        async def handler(_: dict[str, object]) -> ToolOutcome:
            await asyncio.sleep(0)
            return ToolOutcome.success("done")

        outcome = await invoke_tool(_tool("async", handler), {})

        assert outcome.is_error is False
        assert outcome.text == "done"

    @pytest.mark.anyio()
    async def test_declared_error_outcome_is_passed_through(self) -> None:
        tool = _tool("declared", lambda _: ToolOutcome.error("quota exceeded"))

        outcome = await invoke_tool(tool, {})

        assert outcome.is_error is True
        assert outcome.text == "quota exceeded"

    @pytest.mark.anyio()
    async def test_raised_tool_error_becomes_error_outcome(self) -> None:
        def handler(_: dict[str, object]) -> ToolOutcome:
            raise MCPError("NotFound", "Fixture 'x' not found", {"id": "x"})

        outcome = await invoke_tool(_tool("raises", handler), {})

        assert outcome == ToolOutcome.error("Fixture 'x' not found")

    @pytest.mark.anyio()
    async def test_plain_tool_error_is_supported(self) -> None:
        def handler(_: dict[str, object]) -> ToolOutcome:
            raise ToolError("upstream said no")

        outcome = await invoke_tool(_tool("raises", handler), {})

        assert outcome.text == "upstream said no"

    @pytest.mark.anyio()
    async def test_unexpected_fault_is_contained(self) -> None:
        def handler(_: dict[str, object]) -> ToolOutcome:
            return {"missing": "key"}["other"]  # type: ignore[return-value]

        outcome = await invoke_tool(_tool("broken", handler), {})

        assert outcome.is_error is True
        assert outcome.text == "Tool 'broken' failed unexpectedly."
        assert "other" not in outcome.text

    @pytest.mark.anyio()
    async def test_non_outcome_result_is_a_fault(self) -> None:
        outcome = await invoke_tool(_tool("sloppy", lambda _: "hello"), {})

        assert outcome == ToolOutcome.error("Tool 'sloppy' failed unexpectedly.")

    @pytest.mark.anyio()
    async def test_slow_handler_is_bounded_by_timeout(self) -> None:
        async def handler(_: dict[str, object]) -> ToolOutcome:
            await asyncio.sleep(10)
            return ToolOutcome.success("too late")

        outcome = await invoke_tool(_tool("slow", handler), {}, timeout=0.01)

        assert outcome.is_error is True
        assert outcome.text == "Tool 'slow' timed out after 0.01 seconds."

    @pytest.mark.anyio()
    @pytest.mark.parametrize("timeout", [None, 5.0])
    async def test_handler_timeout_is_a_fault_not_a_deadline(
        self, timeout: float | None
    ) -> None:
        async def handler(_: dict[str, object]) -> ToolOutcome:
            raise TimeoutError("socket read timed out")

        outcome = await invoke_tool(_tool("sock", handler), {}, timeout=timeout)

        assert outcome == ToolOutcome.error("Tool 'sock' failed unexpectedly.")
