"""
Custom exceptions for the Log Viewer MCP server.

Follows FastMCP patterns for comprehensive error handling with
custom exception hierarchy, error classification, and structured logging.
"""

from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Error severity levels for classification and handling priorities."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification and recovery strategies."""

    SOURCE_UNAVAILABLE = "source_unavailable"
    DECODE = "decode"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    PERMISSION = "permission"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class LogViewerError(Exception):
    """
    Base exception for all Log Viewer MCP server errors.

    Provides structured error information similar to FastMCP's error handling
    with severity, category, context, and recovery hints.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        context: dict[str, Any] | None = None,
        recoverable: bool = False,
        recovery_hint: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.category = category
        self.context = context or {}
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "recoverable": self.recoverable,
            "recovery_hint": self.recovery_hint,
            "context": self.context,
            "original_error": str(self.original_error) if self.original_error else None,
        }


class SourceUnavailableError(LogViewerError):
    """
    Raised when a log source cannot produce lines.

    Always non-fatal: the fallback chain skips the source and tries the next one.
    """

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        source: str | None = None,
        path: str | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if source:
            context["source"] = source
        if path:
            context["path"] = path

        kwargs.setdefault("severity", ErrorSeverity.LOW)
        kwargs.setdefault("category", ErrorCategory.SOURCE_UNAVAILABLE)
        kwargs.setdefault("recovery_hint", "Falling back to the next log source")
        super().__init__(
            message,
            recoverable=True,
            original_error=original_error,
            context=context,
            **kwargs
        )


class LogFileUnavailableError(SourceUnavailableError):
    """Raised when a log file is missing or cannot be opened."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        path: str | None = None,
        **kwargs: Any
    ) -> None:
        category = ErrorCategory.SOURCE_UNAVAILABLE
        if isinstance(original_error, PermissionError):
            category = ErrorCategory.PERMISSION
        super().__init__(
            message,
            original_error=original_error,
            path=path,
            category=category,
            recovery_hint="Check that the log file exists and is readable",
            **kwargs
        )


class InsufficientWindowError(SourceUnavailableError):
    """Raised when a tail read window contained no complete line."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        window_bytes: int | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if window_bytes is not None:
            context["window_bytes"] = window_bytes
        super().__init__(
            message,
            path=path,
            context=context,
            recovery_hint="Increase the bytes-per-line estimate for this source",
            **kwargs
        )


class CommandNotFoundError(SourceUnavailableError):
    """Raised when the external log reader is not installed."""

    def __init__(self, message: str, command: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            message,
            path=command,
            recovery_hint="Install the log reader or rely on file-based logs",
            **kwargs
        )


class CommandFailedError(SourceUnavailableError):
    """Raised when the external log reader exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        returncode: int | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if returncode is not None:
            context["returncode"] = returncode
        super().__init__(message, path=command, context=context, **kwargs)


class CommandTimeoutError(SourceUnavailableError):
    """Raised when the external log reader exceeds its time budget."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        timeout_seconds: float | None = None,
        **kwargs: Any
    ) -> None:
        context = kwargs.pop("context", {})
        if timeout_seconds is not None:
            context["timeout_seconds"] = timeout_seconds
        super().__init__(
            message,
            path=command,
            context=context,
            category=ErrorCategory.TIMEOUT,
            recovery_hint="Increase the command timeout or request fewer lines",
            **kwargs
        )


class CommandRejectedError(SourceUnavailableError):
    """Raised when a command is not on the sandbox allow-list."""

    def __init__(self, message: str, command: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            message,
            path=command,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.PERMISSION,
            recovery_hint="Only allow-listed command templates can be executed",
            **kwargs
        )


class TimestampDecodeError(LogViewerError):
    """Raised when a timestamp token cannot be decoded. The line is kept as-is."""

    def __init__(
        self,
        message: str,
        token: str | None = None,
        original_error: Exception | None = None,
        **kwargs: Any
    ) -> None:
        context = {"token": token} if token else {}
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.DECODE,
            recoverable=True,
            recovery_hint="Line is returned without a timestamp",
            original_error=original_error,
            context=context,
            **kwargs
        )


class RequestValidationError(LogViewerError):
    """Raised when request input validation fails."""

    status_code = 400

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        field: str | None = None,
        value: Any | None = None,
        **kwargs: Any
    ) -> None:
        context = {}
        if field:
            context["field"] = field
        if value is not None:
            context["invalid_value"] = str(value)

        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            recoverable=False,
            recovery_hint="Pass 'lines' as a positive integer",
            original_error=original_error,
            context=context,
            **kwargs
        )


class LogsNotFoundError(LogViewerError):
    """Raised when every log source in the fallback chain came back empty."""

    status_code = 404

    def __init__(
        self,
        message: str = "Could not find logs",
        attempts: list[dict[str, Any]] | None = None,
        **kwargs: Any
    ) -> None:
        context = {"attempts": attempts} if attempts else {}
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.NOT_FOUND,
            recoverable=True,
            recovery_hint="Check that SignalK is logging and accessible",
            context=context,
            **kwargs
        )


class RetrievalSystemError(LogViewerError):
    """Raised for internal system errors and unexpected failures."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        component: str | None = None,
        **kwargs: Any
    ) -> None:
        context = {"component": component} if component else {}
        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.SYSTEM,
            recoverable=False,
            recovery_hint="Contact system administrator",
            original_error=original_error,
            context=context,
            **kwargs
        )
