"""Entry point for the hello MCP server."""

from __future__ import annotations

import argparse
import asyncio
import json

import httpx
import structlog
import uvicorn
from pydantic import ValidationError

from hello_mcp.jsonrpc import Dispatcher
from hello_mcp.server import ToolRegistry
from hello_mcp_server.config import Settings, get_settings
from hello_mcp_server.fastmcp_adapter import build_fastmcp_app
from hello_mcp_server.http_app import create_app
from hello_mcp_server.logging_setup import setup_logging
from hello_mcp_server.tools import INSTRUCTIONS, SERVER_NAME, build_tools

logger = structlog.get_logger(__name__)


def build_dispatcher(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> Dispatcher:
    """Register every tool, freeze the registry and wrap it in a dispatcher."""
    registry = ToolRegistry()
    registry.register_tools(*build_tools(settings, transport=transport))
    registry.freeze()
    return Dispatcher(
        registry,
        server_name=SERVER_NAME,
        tool_timeout=settings.tool_timeout,
        instructions=INSTRUCTIONS,
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the server CLI."""
    parser = argparse.ArgumentParser(description="hello MCP server")
    parser.add_argument(
        "--transport",
        choices=["http", "stdio"],
        default="http",
        help="Serve over stateless HTTP (default) or stdio.",
    )
    parser.add_argument("--host", help="Bind address, overrides HOST.")
    parser.add_argument("--port", type=int, help="Bind port, overrides PORT.")
    parser.add_argument("--path", help="Protocol endpoint path, overrides MCP_PATH.")
    parser.add_argument(
        "--catalog", action="store_true", help="Print the tool catalog and exit."
    )
    parser.add_argument(
        "--call", metavar="TOOL", help="Run one tools/call request and print it."
    )
    parser.add_argument(
        "--arguments",
        default="{}",
        help="JSON object passed as the tool arguments with --call.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the server CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as error:
        parser.exit(2, f"Invalid configuration:\n{error}\n")
    setup_logging(settings.log_level, settings.log_json)

    if args.catalog:
        dispatcher = build_dispatcher(settings)
        print(json.dumps(dispatcher.registry.to_catalog(), indent=2))
        return 0

    if args.call:
        try:
            arguments = json.loads(args.arguments)
        except json.JSONDecodeError as error:
            parser.error(f"--arguments is not valid JSON: {error}")
        dispatcher = build_dispatcher(settings)
        message = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {"name": args.call, "arguments": arguments},
        }
        response = asyncio.run(dispatcher.dispatch_message(message))
        if response is None:
            return 0
        print(json.dumps(response.to_dict(), indent=2))
        return 1 if response.is_error else 0

    if args.transport == "stdio":
        app, _ = build_fastmcp_app(settings)
        app.run(transport="stdio")
        return 0

    host = args.host if args.host is not None else settings.host
    port = args.port if args.port is not None else settings.port
    path = args.path if args.path is not None else settings.mcp_path
    http_app = create_app(build_dispatcher(settings), mcp_path=path)
    logger.info("server.starting", url=f"http://{host}:{port}{path}")
    uvicorn.run(http_app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
