"""
TAI64N timestamp decoding.

daemontools/runit ``multilog`` prefixes each line with ``@`` followed by 24 hex
digits: 16 for the TAI64 seconds label and 8 for nanoseconds. The seconds
label is ``2**62 + 10 + unix_seconds``.
"""

from datetime import UTC, datetime

from ..exceptions import TimestampDecodeError

TAI64N_MARKER = "@4"
TAI64_OFFSET = 2**62 + 10
SECONDS_HEX_DIGITS = 16
NANOS_HEX_DIGITS = 8
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def decode_tai64n_label(token: str) -> str:
    """
    Decode a TAI64N label to an ISO-8601 UTC instant.

    Only the seconds part is decoded; nanoseconds are ignored.

    Args:
        token: Label including the leading ``@``

    Returns:
        Timestamp like ``2024-01-12T17:34:27.000Z``

    Raises:
        TimestampDecodeError: If the token is not a decodable TAI64N label
    """
    if not token.startswith(TAI64N_MARKER):
        raise TimestampDecodeError("Missing TAI64N marker", token=token)

    hex_seconds = token[1:1 + SECONDS_HEX_DIGITS]
    if len(hex_seconds) != SECONDS_HEX_DIGITS or not set(hex_seconds) <= _HEX_DIGITS:
        raise TimestampDecodeError("Malformed TAI64N seconds label", token=token)

    unix_seconds = int(hex_seconds, 16) - TAI64_OFFSET
    try:
        instant = datetime.fromtimestamp(unix_seconds, tz=UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise TimestampDecodeError(
            "TAI64N label outside the representable date range",
            token=token,
            original_error=e,
        ) from e

    return instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_tai64n_label(unix_seconds: int, nanoseconds: int = 0) -> str:
    """Build the external ``@``-prefixed TAI64N label for a Unix second count."""
    return (
        f"@{unix_seconds + TAI64_OFFSET:0{SECONDS_HEX_DIGITS}x}"
        f"{nanoseconds:0{NANOS_HEX_DIGITS}x}"
    )


def split_tai64n_line(line: str) -> tuple[str | None, str | None, str]:
    """
    Split a multilog line into decoded timestamp, raw token and message.

    Lines without a decodable label come back untouched as
    ``(None, None, line)``; a decode failure is never fatal. A line that is
    only a label decodes with an empty message.

    Args:
        line: One log line without its trailing newline

    Returns:
        (timestamp, token, message)
    """
    if not line.startswith(TAI64N_MARKER):
        return None, None, line

    token, _, message = line.partition(" ")

    try:
        timestamp = decode_tai64n_label(token)
    except TimestampDecodeError:
        return None, None, line

    return timestamp, token, message
