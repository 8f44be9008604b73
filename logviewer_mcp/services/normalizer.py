"""
Line normalization.

Turns raw source lines into LogRecord instances with a uniform
original/timestamp/message shape.
"""

import re

from ..models.log_record import LogRecord
from .tai64n import split_tai64n_line

# journalctl --output=short-iso, e.g. "2025-11-24T04:34:59+0000 host signalk[812]: msg"
_ISO_PREFIX_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?) "
)


class LineNormalizer:
    """
    Wraps raw lines into LogRecord instances.

    Args:
        decode_tai64n: Decode a leading TAI64N label into an ISO-8601 instant
        parse_iso_prefix: Split a leading ISO-8601 token off as a raw timestamp
    """

    def __init__(self, decode_tai64n: bool = False, parse_iso_prefix: bool = False) -> None:
        self.decode_tai64n = decode_tai64n
        self.parse_iso_prefix = parse_iso_prefix

    def normalize(self, line: str) -> LogRecord:
        """Normalize a single line; the trailing newline, if any, is stripped."""
        if line.endswith("\n"):
            line = line[:-1]

        if self.decode_tai64n:
            timestamp, token, message = split_tai64n_line(line)
            if token is not None:
                return LogRecord(
                    original=line,
                    timestamp=timestamp,
                    message=message,
                    timestamp_token=token,
                )

        if self.parse_iso_prefix:
            match = _ISO_PREFIX_RE.match(line)
            if match:
                token = match.group(1)
                return LogRecord(
                    original=line,
                    timestamp=token,
                    message=line[match.end():],
                    timestamp_token=token,
                )

        return LogRecord.plain(line)

    def normalize_all(self, lines: list[str]) -> list[LogRecord]:
        return [self.normalize(line) for line in lines]
