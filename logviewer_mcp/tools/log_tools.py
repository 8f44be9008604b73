"""
MCP tools and HTTP route for log retrieval.

Thin adapters over LogRetrievalService: both transports hand the same
parameters to the service and return its JSON body unchanged.
"""

import asyncio
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import Response

from ..models.response import ApiResponse
from ..services.log_retrieval import LogRetrievalService
from ..utils.json_encoding import encode_json
from ..utils.logging import (
    clear_correlation_id,
    get_logger,
    log_mcp_request,
    log_mcp_response,
    set_correlation_id,
)

logger = get_logger(__name__)


def _serve(
    service: LogRetrievalService,
    params: dict[str, Any],
    correlation_id: str | None = None,
) -> ApiResponse:
    # Runs in a worker thread; the correlation ID is thread-local
    set_correlation_id(correlation_id)
    try:
        return service.handle(params)
    finally:
        clear_correlation_id()


def register_log_tools(mcp: FastMCP, service: LogRetrievalService) -> None:
    """Register the log retrieval MCP tools."""

    @mcp.tool()
    async def get_logs(lines: int | str | None = None) -> str:
        """
        Fetch the most recent SignalK server log lines.

        Sources are tried in order: the Venus OS multilog file, the systemd
        journal, then common log file locations. The first one with lines wins.

        Args:
            lines: Number of lines to return (default 2000, clamped to 1-10000)

        Returns:
            JSON with lines, count, source, path, format and truncated, or an
            error payload when no source had logs
        """
        log_mcp_request("get_logs", {"lines": lines})

        response = await asyncio.to_thread(_serve, service, {"lines": lines})
        log_mcp_response(
            "get_logs",
            response.ok,
            response_data={"status_code": response.status_code},
        )
        return service.encode_body(response)

    @mcp.tool()
    async def log_sources() -> str:
        """
        Describe where logs are read from on this host.

        Returns:
            JSON with the configured sources in fallback order, the output
            settings and the detected host profile
        """
        log_mcp_request("log_sources", {})

        try:
            profile = await asyncio.to_thread(service.profiler.detect)
            payload: dict[str, Any] = {
                "sources": [
                    {"source": source.source_id.value, "location": source.location}
                    for source in service.chain.sources
                ],
                "execution_mode": service.config.execution_mode.value,
                "line_format": service.config.line_format.value,
                "escape_policy": service.config.escape_policy.value,
                "host": profile.model_dump(mode="json"),
            }
            result = encode_json(payload, service.config.escape_policy)
            log_mcp_response("log_sources", True)
            return result
        except Exception as e:
            log_mcp_response("log_sources", False, error=str(e))
            return f"Log source inspection error: {str(e)}"


def register_http_routes(mcp: FastMCP, service: LogRetrievalService) -> None:
    """Register ``GET /api/logs`` on the HTTP transport."""

    @mcp.custom_route("/api/logs", methods=["GET"])
    async def api_logs(request: Request) -> Response:
        params = dict(request.query_params)
        response = await asyncio.to_thread(
            _serve, service, params, request.headers.get("x-request-id")
        )
        logger.debug(
            "HTTP logs request served",
            extra={"params": params, "status_code": response.status_code},
        )
        return Response(
            content=service.encode_body(response),
            status_code=response.status_code,
            media_type="application/json",
        )
