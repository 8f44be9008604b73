"""
Error handling framework for the Log Viewer MCP server.

Provides error classification, structured error logging and a decorator
that turns stray exceptions at the request boundary into structured errors.
"""

import subprocess
import traceback
from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
from typing import Any

from pydantic import ValidationError

from ..exceptions import (
    CommandFailedError,
    CommandTimeoutError,
    LogFileUnavailableError,
    LogsNotFoundError,
    LogViewerError,
    RequestValidationError,
    RetrievalSystemError,
    SourceUnavailableError,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ErrorClassifier:
    """
    Classifies and transforms exceptions into structured log viewer errors.

    Similar to FastMCP's error handling middleware, provides consistent
    error responses and classification.
    """

    @staticmethod
    def classify_error(error: Exception, context: dict[str, Any] | None = None) -> LogViewerError:
        """
        Classify an exception into a structured error.

        Args:
            error: The original exception
            context: Additional context information

        Returns:
            Appropriate LogViewerError subclass
        """
        context = context or {}

        if isinstance(error, LogViewerError):
            return error

        if isinstance(error, subprocess.TimeoutExpired):
            return CommandTimeoutError(
                f"Command timed out: {error}",
                command=context.get("command"),
                timeout_seconds=error.timeout,
                original_error=error,
            )

        if isinstance(error, subprocess.CalledProcessError):
            return CommandFailedError(
                f"Command failed: {error}",
                command=context.get("command"),
                returncode=error.returncode,
                original_error=error,
            )

        # Missing or unreadable files
        if isinstance(error, FileNotFoundError | PermissionError | IsADirectoryError):
            return LogFileUnavailableError(
                f"Log file unavailable: {error}",
                original_error=error,
                path=context.get("path") or getattr(error, "filename", None),
            )

        if isinstance(error, OSError):
            return SourceUnavailableError(
                f"I/O error: {error}",
                original_error=error,
                source=context.get("source"),
                path=context.get("path"),
            )

        if isinstance(error, ValidationError):
            return RequestValidationError(
                f"Validation error: {error}",
                original_error=error,
                field=context.get("field"),
                value=context.get("value"),
            )

        # Encoding failures and anything else outside the taxonomy
        return RetrievalSystemError(
            f"Unexpected error: {error}",
            original_error=error,
            component=context.get("component", "log_retrieval"),
        )


class ErrorMiddleware:
    """
    Error handling middleware inspired by FastMCP patterns.

    Provides consistent error handling and logging across log retrieval
    operations.
    """

    def __init__(
        self,
        include_traceback: bool = False,
        log_level: str = "ERROR",
    ):
        self.include_traceback = include_traceback
        self.log_level = log_level
        self.classifier = ErrorClassifier()
        self.error_stats: dict[str, int] = {}

    def handle_error(
        self,
        error: Exception,
        operation: str,
        context: dict[str, Any] | None = None,
    ) -> LogViewerError:
        """
        Classify and log an error.

        Args:
            error: The original exception
            operation: Name of the operation that failed
            context: Additional context information

        Returns:
            Structured error
        """
        context = context or {}
        context["operation"] = operation
        context["timestamp"] = datetime.now(UTC).isoformat()

        structured_error = self.classifier.classify_error(error, context)
        if structured_error is error:
            structured_error.context.update(context)

        error_key = f"{type(structured_error).__name__}:{operation}"
        self.error_stats[error_key] = self.error_stats.get(error_key, 0) + 1

        log_data = {
            "operation": operation,
            "error_info": structured_error.to_dict(),
            "error_count": self.error_stats[error_key],
        }

        if self.include_traceback and structured_error.original_error:
            log_data["traceback"] = traceback.format_exception(
                type(structured_error.original_error),
                structured_error.original_error,
                structured_error.original_error.__traceback__
            )

        # Expected, non-fatal conditions are logged quietly
        if isinstance(structured_error, SourceUnavailableError):
            log_method = logger.debug
        elif isinstance(structured_error, RequestValidationError | LogsNotFoundError):
            log_method = logger.warning
        else:
            log_method = getattr(logger, self.log_level.lower(), logger.error)

        log_method(
            f"Error in {operation}: {structured_error.message}",
            extra=log_data
        )

        return structured_error

    def get_error_stats(self) -> dict[str, int]:
        """Get error statistics for monitoring."""
        return self.error_stats.copy()

    def reset_error_stats(self) -> None:
        """Reset error statistics."""
        self.error_stats.clear()


def error_handler(
    operation: str,
    include_traceback: bool = False,
) -> Callable[..., Callable[..., Any]]:
    """
    Decorator that re-raises any exception as a structured LogViewerError.

    Args:
        operation: Name of the operation for logging
        include_traceback: Whether to include traceback in logs
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            middleware = ErrorMiddleware(include_traceback=include_traceback)

            try:
                return func(*args, **kwargs)
            except Exception as e:
                context = {
                    "function": func.__name__,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                }

                structured_error = middleware.handle_error(e, operation, context)
                if structured_error is e:
                    raise
                raise structured_error from e

        return wrapper
    return decorator


def create_error_context(
    operation: str,
    source: str | None = None,
    path: str | None = None,
    command: str | None = None,
    **additional_context: Any
) -> dict[str, Any]:
    """
    Create standardized error context for consistent logging.

    Args:
        operation: The operation being performed
        source: Log source identifier
        path: File path involved
        command: Command line involved
        **additional_context: Additional context fields

    Returns:
        Standardized context dictionary
    """
    context: dict[str, Any] = {
        "operation": operation,
        "timestamp": datetime.now(UTC).isoformat(),
    }

    if source:
        context["source"] = source
    if path:
        context["path"] = path
    if command:
        context["command"] = command

    context.update(additional_context)
    return context
