"""Stateless HTTP binding for the MCP dispatcher.

One POST route hands the raw body to the dispatcher. A middleware refuses every
other verb on the protocol path with a fixed JSON-RPC error before routing, so
the body is never read. No session header is issued or consulted.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from hello_mcp import __version__
from hello_mcp.jsonrpc import (
    INVALID_REQUEST,
    PARSE_ERROR,
    SERVER_ERROR,
    Dispatcher,
    JsonRpcResponse,
    method_not_allowed,
)

logger = structlog.get_logger(__name__)


class MethodNotAllowedMiddleware(BaseHTTPMiddleware):
    """Answer every non-POST request on the protocol path with a fixed error."""

    def __init__(self, app: ASGIApp, mcp_path: str) -> None:
        super().__init__(app)
        self.mcp_path = mcp_path

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path != self.mcp_path or request.method == "POST":
            return await call_next(request)
        logger.debug("http.method_not_allowed", method=request.method)
        return JSONResponse(
            method_not_allowed(), status_code=405, headers={"Allow": "POST"}
        )


def _is_json(content_type: str) -> bool:
    return content_type.split(";", 1)[0].strip().lower() == "application/json"


def create_app(dispatcher: Dispatcher, *, mcp_path: str = "/mcp") -> FastAPI:
    """Build the FastAPI application serving ``dispatcher`` at ``mcp_path``.

    The dispatcher's registry is frozen here, before any request is served.
    """
    dispatcher.registry.freeze()
    app = FastAPI(
        title=dispatcher.server_name,
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(MethodNotAllowedMiddleware, mcp_path=mcp_path)

    @app.post(mcp_path)
    async def handle_rpc(request: Request) -> Response:
        if not _is_json(request.headers.get("content-type", "")):
            error = JsonRpcResponse.failure(
                None,
                SERVER_ERROR,
                "Unsupported Media Type: Content-Type must be application/json",
            )
            return JSONResponse(error.to_dict(), status_code=415)

        body = await request.body()
        response = await dispatcher.dispatch(body)
        if response is None:
            return Response(status_code=202)

        status_code = 200
        if response.error is not None and response.error.code in (
            PARSE_ERROR,
            INVALID_REQUEST,
        ):
            status_code = 400
        return JSONResponse(response.to_dict(), status_code=status_code)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
