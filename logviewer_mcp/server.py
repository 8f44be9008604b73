"""
Main FastMCP server setup and configuration.

This module creates and configures the FastMCP server with the log tools and
the HTTP logs route.
"""

import argparse
import asyncio

from dotenv import load_dotenv
from fastmcp import FastMCP

from .config.settings import LogViewerConfig
from .services.log_retrieval import LogRetrievalService
from .tools import register_http_routes, register_log_tools
from .utils.logging import configure_logging, get_logger


def create_server(
    config: LogViewerConfig | None = None,
    service: LogRetrievalService | None = None,
) -> FastMCP:
    """Create and configure the FastMCP server."""
    mcp = FastMCP("LogViewer-MCP")

    # One service per server; configuration is read-only after startup
    if service is None:
        service = LogRetrievalService(config or LogViewerConfig())

    register_log_tools(mcp, service)
    register_http_routes(mcp, service)

    return mcp


async def run_http_server(host: str = "localhost", port: int = 8000) -> None:
    """Run the MCP server with HTTP transport."""
    logger = get_logger(__name__)

    try:
        mcp = create_server()
        logger.info(f"Starting Log Viewer MCP Server on http://{host}:{port}")
        logger.info(f"Logs endpoint available at http://{host}:{port}/api/logs")

        await mcp.run_http_async(host=host, port=port)
    except Exception as e:
        logger.error(f"Failed to start HTTP server: {e}")
        raise


def run_stdio_server() -> None:
    """Run the MCP server with stdio transport (default)."""
    logger = get_logger(__name__)

    try:
        mcp = create_server()
        logger.info("Starting Log Viewer MCP Server with stdio transport")

        mcp.run()
    except Exception as e:
        logger.error(f"Failed to start stdio server: {e}")
        raise


def main(host: str | None = None, port: int | None = None) -> None:
    """Main entry point for the MCP server."""
    # Load environment variables before settings and logging read them
    load_dotenv()

    configure_logging()

    logger = get_logger(__name__)

    parser = argparse.ArgumentParser(description="Log Viewer MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport type to use (default: stdio)"
    )
    parser.add_argument(
        "--host",
        default="localhost",
        help="Host to bind to for HTTP transport (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)"
    )

    args = parser.parse_args()

    final_host = host or args.host
    final_port = port or args.port
    transport = args.transport

    logger.info(f"Log Viewer MCP Server starting with {transport} transport")

    if transport == "http":
        asyncio.run(run_http_server(final_host, final_port))
    else:
        # stdio is what MCP clients launch by default
        run_stdio_server()


if __name__ == "__main__":
    main()
