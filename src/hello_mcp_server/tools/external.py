"""Tool that forwards fixture data from the configured upstream API."""

from __future__ import annotations

import json

import httpx
import structlog

from hello_mcp.tools import ToolDefinition, ToolOutcome, ToolParameters
from hello_mcp_server.errors import raise_mcp_error

logger = structlog.get_logger(__name__)


class FetchExternalDataParams(ToolParameters):
    """The fetch_external_data tool takes no arguments."""


def fetch_external_data_tool(
    api_base: str,
    api_code: str,
    *,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ToolDefinition:
    """Create the fetch_external_data tool definition.

    Args:
        api_base: Upstream URL; existing query parameters are kept.
        api_code: Value sent as the ``code`` query parameter.
        timeout: Connect/read timeout for the upstream call, in seconds.
        transport: Optional httpx transport, used to stub the upstream in tests.

    """

    async def handler(_: dict[str, object]) -> ToolOutcome:
        try:
            async with httpx.AsyncClient(
                timeout=timeout, transport=transport
            ) as client:
                response = await client.get(api_base, params={"code": api_code})
        except httpx.HTTPError as exc:
            reason = str(exc) or type(exc).__name__
            raise_mcp_error(
                "UpstreamUnreachable",
                f"Failed to reach external API: {reason}",
                api_base,
            )

        if not response.is_success:
            raise_mcp_error(
                "UpstreamStatus",
                f"External API returned {response.status_code} "
                f"{response.reason_phrase}",
                response.text,
            )

        raw_body = response.text
        try:
            payload = json.loads(raw_body)
        except json.JSONDecodeError as exc:
            raise_mcp_error(
                "UpstreamParse",
                f"Failed to parse JSON response ({exc}). Raw body: {raw_body}",
            )

        logger.debug("upstream.fetched", status=response.status_code)
        return ToolOutcome.success(json.dumps(payload, indent=2, ensure_ascii=False))

    return ToolDefinition(
        name="fetch_external_data",
        title="Fetch External Data",
        description="Retrieve fixture data from the upstream API",
        parameters_model=FetchExternalDataParams,
        handler=handler,
    )
