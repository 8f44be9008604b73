"""
Log Viewer MCP Server - recent SignalK server log lines over MCP and HTTP.

Reads the last N lines from the first available source (Venus OS multilog
file, systemd journal, plain log files) and returns them as structured JSON.
"""

__version__ = "0.1.0"

from .server import create_server

__all__ = ["create_server", "__version__"]
