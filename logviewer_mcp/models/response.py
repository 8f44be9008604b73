"""
Response models for the logs endpoint and MCP tools.

Provides the success payload, the error payload and the status/body envelope
that adapters turn into HTTP responses or tool output.
"""

from typing import Any

from pydantic import BaseModel, Field, computed_field

from ..config.settings import LineFormat
from .log_record import HostProfile, LogRecord, RetrievalResult, SourceId


class LogsBody(BaseModel):
    """
    Successful retrieval payload.
    """

    lines: list[dict[str, Any] | str] = Field(
        default_factory=list,
        description="Structured records or plain strings, oldest first"
    )

    source: SourceId = Field(
        ...,
        description="Source that produced the lines"
    )

    path: str | None = Field(
        None,
        description="Resolved path or command string used"
    )

    format: LineFormat = Field(
        LineFormat.STRUCTURED,
        description="Shape of entries in 'lines'"
    )

    truncated: bool = Field(
        False,
        description="Whether the read window stopped short of the requested count"
    )

    @computed_field
    def count(self) -> int:
        """Number of entries in 'lines'."""
        return len(self.lines)

    @classmethod
    def from_result(cls, result: RetrievalResult, line_format: LineFormat) -> "LogsBody":
        """Render a retrieval result in the configured line format."""
        lines: list[dict[str, Any] | str]
        if line_format == LineFormat.PLAIN:
            lines = [record.render_plain() for record in result.lines]
        else:
            lines = [_record_dict(record) for record in result.lines]

        return cls(
            lines=lines,
            source=result.source_id,
            path=result.source_path,
            format=line_format,
            truncated=result.truncated,
        )


def _record_dict(record: LogRecord) -> dict[str, Any]:
    return {
        "original": record.original,
        "timestamp": record.timestamp,
        "message": record.message,
    }


class ErrorBody(BaseModel):
    """
    Error payload for 400, 404 and 500 responses.
    """

    error: str = Field(
        ...,
        description="Short error summary"
    )

    message: str | None = Field(
        None,
        description="Human-readable explanation"
    )

    suggestion: str | None = Field(
        None,
        description="Suggested action to resolve the error"
    )

    details: str | None = Field(
        None,
        description="Additional error details or context"
    )

    field: str | None = Field(
        None,
        description="Field name if error is field-specific"
    )

    attempts: list[dict[str, Any]] | None = Field(
        None,
        description="Sources tried and why each was skipped"
    )

    host: HostProfile | None = Field(
        None,
        description="Host profile used to pick the suggestion"
    )


class ApiResponse(BaseModel):
    """
    Status code plus body, independent of the transport.
    """

    status_code: int = Field(
        200,
        ge=100,
        le=599,
        description="HTTP-style status code"
    )

    body: LogsBody | ErrorBody = Field(
        ...,
        description="Response payload"
    )

    headers: dict[str, str] = Field(
        default_factory=lambda: {"Content-Type": "application/json"},
        description="Response headers"
    )

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def body_dict(self) -> dict[str, Any]:
        """Body as JSON-compatible data; unset optional error fields are dropped."""
        if isinstance(self.body, ErrorBody):
            return self.body.model_dump(mode="json", exclude_none=True)
        return self.body.model_dump(mode="json")
