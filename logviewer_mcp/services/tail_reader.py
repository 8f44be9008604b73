"""
Tail reading for large append-only log files.

Reads only a window at the end of the file, sized from an estimate of the
average line length, instead of scanning the file from the start.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from ..exceptions import InsufficientWindowError, LogFileUnavailableError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class TailReadResult(BaseModel):
    """
    Lines read from the end of a file.
    """

    lines: list[str] = Field(
        default_factory=list,
        description="Complete lines, oldest first"
    )

    truncated: bool = Field(
        False,
        description="Window did not reach the start of the file and held fewer lines than requested"
    )

    file_size: int = Field(
        0,
        ge=0,
        description="File size when the read started"
    )

    window_bytes: int = Field(
        0,
        ge=0,
        description="Bytes read from the end of the file"
    )


def compute_window(file_size: int, line_count: int, bytes_per_line: int, max_window_bytes: int) -> int:
    """Bytes to read for ``line_count`` lines, capped by the file size and buffer limit."""
    return max(0, min(file_size, bytes_per_line * line_count, max_window_bytes))


def read_tail(
    path: str | Path,
    line_count: int,
    bytes_per_line: int = 500,
    max_window_bytes: int = 8 * 1024 * 1024,
) -> TailReadResult:
    """
    Return the last ``line_count`` lines of a file.

    The read window is ``min(size, bytes_per_line * line_count, max_window_bytes)``
    bytes. When it starts mid-file the first fragment is a partial line and is
    dropped, unless the byte just before the window is a newline. Blank lines
    are skipped.

    Args:
        path: File to read
        line_count: Maximum number of lines to return
        bytes_per_line: Average line length estimate for this file
        max_window_bytes: Hard cap on the read buffer

    Returns:
        TailReadResult with at most ``line_count`` lines

    Raises:
        LogFileUnavailableError: If the file is missing or unreadable
        InsufficientWindowError: If the window held no complete line
    """
    path_str = str(path)
    if line_count <= 0:
        return TailReadResult()

    try:
        with open(path_str, "rb") as f:
            f.seek(0, os.SEEK_END)
            file_size = f.tell()
            window = compute_window(file_size, line_count, bytes_per_line, max_window_bytes)
            start = file_size - window

            logger.debug(
                "Reading log tail",
                extra={"path": path_str, "file_size": file_size, "window_bytes": window, "start": start},
            )

            if start > 0:
                # Read one extra byte to see whether the window starts on a line boundary
                f.seek(start - 1)
                data = f.read(window + 1)
                on_boundary = data[:1] == b"\n"
                data = data[1:]
            else:
                f.seek(0)
                data = f.read(window)
                on_boundary = True
    except OSError as e:
        raise LogFileUnavailableError(
            f"Cannot read log file {path_str}: {e.strerror or e}",
            original_error=e,
            path=path_str,
        ) from e

    fragments = data.decode("utf-8", errors="replace").split("\n")
    if not on_boundary:
        fragments = fragments[1:]

    lines = [fragment for fragment in fragments if fragment.strip()]

    if start > 0 and not lines:
        raise InsufficientWindowError(
            f"No complete line in the last {window} bytes of {path_str}",
            path=path_str,
            window_bytes=window,
        )

    return TailReadResult(
        lines=lines[-line_count:],
        truncated=start > 0 and len(lines) < line_count,
        file_size=file_size,
        window_bytes=window,
    )
