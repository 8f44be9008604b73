"""
Runtime configuration for the Log Viewer MCP server.

Values come from the environment (``LOGVIEWER_*``) or a ``.env`` file and are
read-only for the lifetime of the process.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ExecutionMode(str, Enum):
    """How external commands are executed."""

    NATIVE = "native"
    SANDBOXED = "sandboxed"


class LineFormat(str, Enum):
    """Shape of entries in the ``lines`` array of a response."""

    STRUCTURED = "structured"
    PLAIN = "plain"


class EscapePolicy(str, Enum):
    """
    Control-character handling when strings are rendered into JSON.

    FULL keeps every character recoverable; LOSSY replaces control
    characters with a space and must not be used where the text matters.
    """

    FULL = "full"
    LOSSY = "lossy"


class JournalOutput(str, Enum):
    """journalctl output formats supported by the journal source."""

    CAT = "cat"
    SHORT_ISO = "short-iso"


DEFAULT_FILE_CANDIDATES = [
    "~/.signalk/logs/signalk-server.log",
    "~/.signalk/signalk-server.log",
    "/var/log/signalk/signalk-server.log",
    "/var/log/signalk.log",
]

DEFAULT_DEVICE_HOSTNAMES = [
    "einstein",
    "cerbosgx",
    "ccgx",
    "venus",
    "nanopi",
    "beaglebone",
    "raspberrypi2",
    "raspberrypi4",
]


class LogViewerConfig(BaseSettings):
    """Configuration for log retrieval."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Request line-count bounds
    min_lines: int = Field(default=1, ge=1, alias="LOGVIEWER_MIN_LINES")
    max_lines: int = Field(default=10000, ge=1, alias="LOGVIEWER_MAX_LINES")
    default_lines: int = Field(default=2000, ge=1, alias="LOGVIEWER_DEFAULT_LINES")

    # Raw append-only file (Venus OS multilog)
    raw_file_path: str = Field(
        default="/data/log/signalk-server/current", alias="LOGVIEWER_RAW_FILE_PATH"
    )
    raw_file_bytes_per_line: int = Field(default=500, ge=1, alias="LOGVIEWER_RAW_FILE_BYTES_PER_LINE")

    # systemd journal
    journal_unit: str = Field(default="signalk", alias="LOGVIEWER_JOURNAL_UNIT")
    journal_output: JournalOutput = Field(default=JournalOutput.CAT, alias="LOGVIEWER_JOURNAL_OUTPUT")

    # Plain log files, first readable candidate wins
    file_candidates: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_FILE_CANDIDATES), alias="LOGVIEWER_FILE_CANDIDATES"
    )
    file_bytes_per_line: int = Field(default=200, ge=1, alias="LOGVIEWER_FILE_BYTES_PER_LINE")

    # Upper bound for a single tail read buffer
    max_window_bytes: int = Field(default=8 * 1024 * 1024, ge=1, alias="LOGVIEWER_MAX_WINDOW_BYTES")

    # External command limits
    command_timeout: float = Field(default=10.0, gt=0, alias="LOGVIEWER_COMMAND_TIMEOUT")
    command_max_output: int = Field(default=10 * 1024 * 1024, ge=1, alias="LOGVIEWER_COMMAND_MAX_OUTPUT")
    execution_mode: ExecutionMode = Field(default=ExecutionMode.NATIVE, alias="LOGVIEWER_EXECUTION_MODE")

    # Response rendering
    line_format: LineFormat = Field(default=LineFormat.STRUCTURED, alias="LOGVIEWER_LINE_FORMAT")
    escape_policy: EscapePolicy = Field(default=EscapePolicy.FULL, alias="LOGVIEWER_ESCAPE_POLICY")

    # Host profile checks
    device_hostnames: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_DEVICE_HOSTNAMES), alias="LOGVIEWER_DEVICE_HOSTNAMES"
    )
    device_marker_dir: str = Field(default="/data", alias="LOGVIEWER_DEVICE_MARKER_DIR")
    device_marker_file: str = Field(
        default="/opt/victronenergy/version", alias="LOGVIEWER_DEVICE_MARKER_FILE"
    )
    device_version_file: str = Field(default="/etc/version", alias="LOGVIEWER_DEVICE_VERSION_FILE")
    device_version_pattern: str = Field(default=r"^\d{14}$", alias="LOGVIEWER_DEVICE_VERSION_PATTERN")
    device_release_file: str = Field(default="/etc/os-release", alias="LOGVIEWER_DEVICE_RELEASE_FILE")
    device_release_token: str = Field(default="venus", alias="LOGVIEWER_DEVICE_RELEASE_TOKEN")

    @field_validator("file_candidates", "device_hostnames", mode="before")
    @classmethod
    def parse_list(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated lists from the environment."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("device_hostnames")
    @classmethod
    def normalize_hostnames(cls, v: list[str]) -> list[str]:
        return [name.lower() for name in v]

    @model_validator(mode="after")
    def validate_line_bounds(self) -> "LogViewerConfig":
        """Ensure min <= default <= max."""
        if self.min_lines > self.max_lines:
            raise ValueError(
                f"min_lines ({self.min_lines}) cannot exceed max_lines ({self.max_lines})"
            )
        if not self.min_lines <= self.default_lines <= self.max_lines:
            raise ValueError(
                f"default_lines ({self.default_lines}) must be within "
                f"[{self.min_lines}, {self.max_lines}]"
            )
        return self

    def resolved_file_candidates(self) -> list[Path]:
        """File candidates with ``~`` expanded."""
        return [Path(candidate).expanduser() for candidate in self.file_candidates]
