"""
Log record models for retrieved lines.

Provides Pydantic models for a single normalized log line, the outcome of one
log source attempt, and the host profile used for error guidance.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class SourceId(str, Enum):
    """Log sources, in fallback priority order."""

    RAW_FILE = "raw-file"
    JOURNAL = "journal"
    FILE = "file"
    NONE = "none"


class LogRecord(BaseModel):
    """
    One retrieved log line.

    ``original`` is never modified. When a timestamp token was split off the
    front of the line, ``timestamp_token + " " + message == original``, or
    ``timestamp_token == original`` with an empty message when the line is
    only the token.
    """

    model_config = ConfigDict(frozen=True)

    original: str = Field(
        ...,
        description="Verbatim source line without its trailing newline"
    )

    timestamp: str | None = Field(
        None,
        description="Decoded ISO-8601 instant, or the raw timestamp token",
        examples=["2024-01-12T17:34:27.000Z", "2025-11-24T04:34:59+0000"]
    )

    message: str = Field(
        ...,
        description="Line content after the timestamp token"
    )

    timestamp_token: str | None = Field(
        None,
        exclude=True,
        description="The token that was stripped from the front of the line"
    )

    @model_validator(mode="after")
    def check_reconstruction(self) -> "LogRecord":
        """The stripped token and message must rebuild the original line."""
        if self.timestamp_token is None:
            if self.message != self.original:
                raise ValueError("message must equal original when no timestamp token is stripped")
        elif self.reconstruct() != self.original:
            raise ValueError("timestamp token and message do not reconstruct the original line")
        return self

    @classmethod
    def plain(cls, line: str) -> "LogRecord":
        """Record for a line without a timestamp."""
        return cls(original=line, timestamp=None, message=line)

    def reconstruct(self) -> str:
        """Rebuild the source line from its parts."""
        if self.timestamp_token is None:
            return self.message
        if not self.message and self.original == self.timestamp_token:
            return self.timestamp_token
        return f"{self.timestamp_token} {self.message}"

    def render_plain(self) -> str:
        """
        Render the record as a single display string.

        Decoded timestamps replace the raw token, as the log viewer UI expects.
        """
        if self.timestamp is None:
            return self.original
        if not self.message:
            return self.timestamp
        return f"{self.timestamp} {self.message}"


class RetrievalResult(BaseModel):
    """
    Outcome of one log source attempt.
    """

    lines: list[LogRecord] = Field(
        default_factory=list,
        description="Records in file order, newest last"
    )

    source_id: SourceId = Field(
        ...,
        description="Source that produced the lines"
    )

    source_path: str | None = Field(
        None,
        description="Resolved path or command string used"
    )

    truncated: bool = Field(
        False,
        description="Whether a byte or line budget stopped the read before the requested count"
    )

    reason: str | None = Field(
        None,
        description="Why the source produced no lines"
    )

    attempts: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Per-source diagnostics collected by the fallback chain"
    )

    @classmethod
    def empty(
        cls,
        source_id: SourceId,
        source_path: str | None = None,
        reason: str | None = None,
    ) -> "RetrievalResult":
        """Result for a source that was unavailable or had nothing to return."""
        return cls(source_id=source_id, source_path=source_path, reason=reason)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @computed_field
    def count(self) -> int:
        """Number of records retrieved."""
        return len(self.lines)

    def diagnostic(self) -> dict[str, Any]:
        """Short summary used in the not-found payload."""
        return {
            "source": self.source_id.value,
            "path": self.source_path,
            "reason": self.reason,
        }


class HostProfile(BaseModel):
    """
    Result of the host-type heuristic.

    Only selects remediation text; it never decides which source is read.
    """

    is_specialized_device: bool = Field(
        False,
        description="True when any detection signal fired"
    )

    signals: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual signal results"
    )

    hostname: str | None = Field(
        None,
        description="Hostname seen during detection"
    )
