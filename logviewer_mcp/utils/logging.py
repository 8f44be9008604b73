"""
Structured logging configuration for the Log Viewer MCP server.

Log records go to stderr and to a size-capped file, as JSON by default. Every
record written while a request is being served carries that request's
correlation ID, so one ``get_logs`` call can be followed through the source
fallback chain.
"""

import json
import logging
import os
import sys
import threading
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog

DEFAULT_LOG_FILE = "/tmp/logviewer-mcp.log"
PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord has; anything else arrived through ``extra=``
_RESERVED_RECORD_KEYS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class RestartingFileHandler(logging.FileHandler):
    """
    File handler that truncates its file once it reaches ``max_bytes``.

    No backups are kept. Devices running SignalK often have little storage,
    and the server's own log is only useful for the most recent requests.
    """

    def __init__(self, filename: str, *, max_bytes: int = 10 * 1024 * 1024, encoding: str | None = None) -> None:
        super().__init__(filename, mode="a", encoding=encoding)
        self.max_bytes = max_bytes

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if self.should_restart():
                self.restart_file()
            super().emit(record)
        except Exception:
            self.handleError(record)

    def should_restart(self) -> bool:
        try:
            return os.path.getsize(self.baseFilename) >= self.max_bytes
        except OSError:
            return False

    def restart_file(self) -> None:
        """Truncate the file and leave a marker line at the top."""
        if self.stream:
            self.stream.close()
        try:
            with open(self.baseFilename, "w", encoding=self.encoding) as f:
                f.write(f"=== Log file restarted at {datetime.now(UTC).isoformat()} ===\n")
        except OSError as e:
            print(f"Failed to restart log file {self.baseFilename}: {e}", file=sys.stderr)
        self.stream = self._open()


class CorrelationIDProcessor:
    """
    Holds the current request's correlation ID per thread.

    Also usable as a structlog processor.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        correlation_id = self.get_correlation_id()
        if correlation_id:
            event_dict["correlation_id"] = correlation_id
        return event_dict

    def set_correlation_id(self, correlation_id: str | None = None) -> str:
        self._local.correlation_id = correlation_id or str(uuid4())
        return self._local.correlation_id

    def get_correlation_id(self) -> str | None:
        return getattr(self._local, "correlation_id", None)

    def clear_correlation_id(self) -> None:
        self._local.__dict__.pop("correlation_id", None)


correlation_processor = CorrelationIDProcessor()


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with ``extra=`` fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = correlation_processor.get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RESERVED_RECORD_KEYS
        )
        return json.dumps(entry, default=str)


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            correlation_processor,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    enable_console: bool = True,
    enable_file: bool = True,
    max_file_size: int = 10 * 1024 * 1024,
    enable_json_logging: bool = True,
    verbose: bool = False,
) -> None:
    """
    Install the root handlers.

    Console output goes to stderr so the stdio MCP transport on stdout stays clean.

    Args:
        log_level: Level name; defaults to ``LOG_LEVEL`` or INFO, DEBUG when verbose
        log_file: Defaults to ``LOGVIEWER_LOG_FILE`` or /tmp/logviewer-mcp.log
        enable_console: Log to stderr
        enable_file: Log to the size-capped file
        max_file_size: Size at which the file is truncated
        enable_json_logging: JSON records instead of plain text
        verbose: Shorthand for DEBUG
    """
    if log_level is None:
        log_level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if enable_file:
        path = log_file or os.getenv("LOGVIEWER_LOG_FILE", DEFAULT_LOG_FILE)
        handlers.append(RestartingFileHandler(path, max_bytes=max_file_size))

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(JSONFormatter() if enable_json_logging else logging.Formatter(PLAIN_FORMAT))
        root_logger.addHandler(handler)

    if enable_json_logging:
        _configure_structlog()

    # Per-request transport chatter drowns out the source attempts
    logging.getLogger("mcp").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the current thread's correlation ID, generating a UUID4 when None."""
    return correlation_processor.set_correlation_id(correlation_id)


def clear_correlation_id() -> None:
    correlation_processor.clear_correlation_id()


_mcp_logger = get_logger("logviewer_mcp.mcp")
_source_logger = get_logger("logviewer_mcp.sources")


def log_mcp_request(tool_name: str, arguments: dict[str, Any]) -> None:
    """Log an incoming MCP tool call or HTTP route request."""
    _mcp_logger.info(
        "MCP tool request",
        extra={"tool_name": tool_name, "arguments": arguments, "event_type": "mcp_request"},
    )


def log_mcp_response(
    tool_name: str, success: bool, response_data: dict[str, Any] | None = None, error: str | None = None
) -> None:
    """Log the outcome of an MCP tool call; failures are logged at ERROR."""
    extra: dict[str, Any] = {"tool_name": tool_name, "success": success, "event_type": "mcp_response"}
    if response_data:
        extra["response_data"] = response_data
    if error:
        extra["error"] = error

    if success:
        _mcp_logger.info("MCP tool response", extra=extra)
    else:
        _mcp_logger.error("MCP tool error", extra=extra)


def log_source_attempt(
    source: str,
    path: str | None,
    line_count: int,
    reason: str | None = None,
    took_ms: int | None = None,
) -> None:
    """
    Log one attempt of the source fallback chain.

    A source that produced lines is logged at INFO; a skipped one at DEBUG,
    since falling through is the normal path on most hosts.

    Args:
        source: Source identifier (raw-file, journal, file)
        path: Resolved path or command string
        line_count: Number of lines the source produced
        reason: Why the source was skipped, if it was
        took_ms: Attempt duration in milliseconds
    """
    extra: dict[str, Any] = {
        "source": source,
        "path": path,
        "line_count": line_count,
        "event_type": "source_attempt",
    }
    if reason:
        extra["reason"] = reason
    if took_ms is not None:
        extra["took_ms"] = took_ms

    if line_count > 0:
        _source_logger.info("Log source produced lines", extra=extra)
    else:
        _source_logger.debug("Log source skipped", extra=extra)
