"""
MCP tools for the Log Viewer MCP server.

This module contains the MCP tool implementations for fetching recent log
lines and inspecting the configured log sources.
"""

from .log_tools import register_http_routes, register_log_tools

__all__ = ["register_log_tools", "register_http_routes"]
