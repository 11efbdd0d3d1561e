"""JSON-RPC 2.0 framing and dispatch for MCP tool calls.

A :class:`Dispatcher` turns one inbound message into exactly one
:class:`JsonRpcResponse` (or ``None`` for a notification). Each request walks
``received -> parsed -> resolved -> validated -> invoked -> responded`` and any
step may stop early with a protocol error. Tool failures never stop it: they
come back from the invoker as error outcomes and are sent as results.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hello_mcp import __version__
from hello_mcp.server import ToolNotFoundError, ToolRegistry, invoke_tool
from hello_mcp.tools import InvalidParamsError

logger = structlog.get_logger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000

LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = (LATEST_PROTOCOL_VERSION, "2025-03-26", "2024-11-05")

RequestId = Union[str, int, None]


# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request or notification message."""

    model_config = ConfigDict(extra="ignore", strict=True)

    jsonrpc: Literal["2.0"]
    method: str
    id: RequestId = None
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        """A message without an ``id`` member expects no response."""
        return "id" not in self.model_fields_set


@dataclass(frozen=True)
class JsonRpcError:
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


@dataclass(frozen=True)
class JsonRpcResponse:
    """A JSON-RPC 2.0 response carrying either ``result`` or ``error``."""

    id: RequestId
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @classmethod
    def failure(
        cls, request_id: RequestId, code: int, message: str, data: Any = None
    ) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code, message, data))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the response to its wire form."""
        if self.error is not None:
            return {"jsonrpc": "2.0", "error": self.error.to_dict(), "id": self.id}
        return {"jsonrpc": "2.0", "result": self.result or {}, "id": self.id}


class ProtocolError(Exception):
    """A protocol-level fault that ends dispatch with a JSON-RPC error."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def method_not_allowed() -> dict[str, Any]:
    """Fixed envelope for HTTP verbs the endpoint does not accept."""
    return JsonRpcResponse.failure(None, SERVER_ERROR, "Method not allowed.").to_dict()


def _recover_id(message: Any) -> RequestId:
    """Return the request id when the message carries a usable one."""
    if not isinstance(message, dict):
        return None
    value = message.get("id")
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return value


def parse_message(message: Any) -> JsonRpcRequest:
    """Check a decoded JSON-RPC message.

    Raises:
        ProtocolError: ``INVALID_REQUEST`` for anything that is not a single
            JSON-RPC 2.0 request object.

    """
    if not isinstance(message, dict):
        raise ProtocolError(
            INVALID_REQUEST, "Invalid Request", "Expected a single request object"
        )
    try:
        return JsonRpcRequest.model_validate(message)
    except ValidationError as error:
        problems = [
            f"{'.'.join(str(part) for part in detail['loc'])}: {detail['msg']}"
            for detail in error.errors()
        ]
        raise ProtocolError(INVALID_REQUEST, "Invalid Request", problems) from error


class Dispatcher:
    """Route JSON-RPC messages to registered tools.

    The dispatcher keeps no per-request or per-client state; the only thing
    it shares between requests is the frozen registry.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        server_name: str = "hello-mcp",
        server_version: str = __version__,
        tool_timeout: float | None = None,
        instructions: str | None = None,
    ) -> None:
        self.registry = registry
        self.server_name = server_name
        self.server_version = server_version
        self.tool_timeout = tool_timeout
        self.instructions = instructions
        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def dispatch(self, body: bytes | str) -> JsonRpcResponse | None:
        """Handle one raw request body.

        Returns:
            The response to send, or ``None`` when the message was a
            notification.

        """
        try:
            message = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as error:
            return self._error_response(
                None, ProtocolError(PARSE_ERROR, "Parse error", str(error))
            )
        return await self.dispatch_message(message)

    async def dispatch_message(self, message: Any) -> JsonRpcResponse | None:
        """Handle one already decoded message."""
        try:
            request = parse_message(message)
        except ProtocolError as error:
            return self._error_response(_recover_id(message), error)
        return await self.dispatch_request(request)

    async def dispatch_request(
        self, request: JsonRpcRequest
    ) -> JsonRpcResponse | None:
        """Handle one checked request."""
        log = logger.bind(method=request.method, request_id=request.id)
        if request.is_notification:
            log.debug("rpc.notification")
            return None

        handler = self._methods.get(request.method)
        try:
            if handler is None:
                raise ProtocolError(
                    METHOD_NOT_FOUND, "Method not found", {"method": request.method}
                )
            result = await handler(request.params)
        except ProtocolError as error:
            return self._error_response(request.id, error)
        except Exception as error:
            log.exception("rpc.internal_error")
            return JsonRpcResponse.failure(
                request.id, INTERNAL_ERROR, "Internal error", str(error)
            )
        return JsonRpcResponse(id=request.id, result=result)

    def _error_response(
        self, request_id: RequestId, error: ProtocolError
    ) -> JsonRpcResponse:
        logger.info(
            "rpc.protocol_error",
            request_id=request_id,
            code=error.code,
            error=error.message,
        )
        return JsonRpcResponse.failure(request_id, error.code, error.message, error.data)

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        if requested in SUPPORTED_PROTOCOL_VERSIONS:
            version = requested
        else:
            version = LATEST_PROTOCOL_VERSION
        result: dict[str, Any] = {
            "protocolVersion": version,
            "capabilities": {"tools": {"listChanged": False}, "logging": {}},
            "serverInfo": {"name": self.server_name, "version": self.server_version},
        }
        if self.instructions:
            result["instructions"] = self.instructions
        return result

    async def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": self.registry.list_tools()}

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise ProtocolError(
                INVALID_PARAMS, "Invalid params", "'name' must be a string"
            )
        try:
            tool = self.registry.lookup(name)
        except ToolNotFoundError as error:
            raise ProtocolError(INVALID_PARAMS, str(error), {"name": name}) from error

        raw_arguments = params.get("arguments")
        try:
            arguments = tool.validate({} if raw_arguments is None else raw_arguments)
        except InvalidParamsError as error:
            raise ProtocolError(
                INVALID_PARAMS,
                str(error),
                [issue.to_dict() for issue in error.issues],
            ) from error

        logger.info("rpc.tool_called", tool=name)
        outcome = await invoke_tool(tool, arguments, timeout=self.tool_timeout)
        return outcome.to_payload()

