"""
Data models for the Log Viewer MCP server.

This module contains Pydantic models for log records, retrieval results,
requests and API responses with validation.
"""

from .log_record import HostProfile, LogRecord, RetrievalResult, SourceId
from .request import LogRequest
from .response import ApiResponse, ErrorBody, LogsBody

__all__ = [
    # Log record models
    "LogRecord",
    "RetrievalResult",
    "SourceId",
    "HostProfile",
    # Request models
    "LogRequest",
    # Response models
    "ApiResponse",
    "LogsBody",
    "ErrorBody",
]
