"""
Service layer for the Log Viewer MCP server.

This module contains the log sources, the fallback chain, bounded command
execution, timestamp normalization and the retrieval service.
"""

from .fallback_chain import SourceFallbackChain
from .log_retrieval import LogRetrievalService

__all__ = ["SourceFallbackChain", "LogRetrievalService"]
