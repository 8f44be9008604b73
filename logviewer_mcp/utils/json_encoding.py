"""
JSON rendering for transport across the sandbox boundary.

Documents are rendered with :func:`json.dumps` in compact form with non-ASCII
text left as is. Two escaping policies exist:

- ``full``: every control character 0x00-0x1F becomes a JSON escape, so the
  text decodes back bit-for-bit. Required wherever the original text matters.
- ``lossy``: control characters become a single space before rendering. Kept
  only for hosts that cannot handle escapes; it discards information.
"""

import json
import re
from collections.abc import Callable, Mapping
from typing import Any

from ..config.settings import EscapePolicy
from ..utils.logging import get_logger

logger = get_logger(__name__)

_CONTROL_RE = re.compile(r"[\x00-\x1f]")


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)


def replace_control_characters(value: str) -> str:
    """Replace every control character 0x00-0x1F with a space."""
    return _CONTROL_RE.sub(" ", value)


def escape_json_string(value: str) -> str:
    """
    Escape a string for a JSON string literal without losing information.

    Quote and backslash are backslash-escaped, ``\\n \\r \\t \\b \\f`` use their
    short forms and any other control character becomes ``\\u00XX``.
    Non-ASCII text is left as is.
    """
    return _dumps(value)[1:-1]


def escape_json_string_lossy(value: str) -> str:
    """
    Escape quote and backslash and replace every control character with a space.

    The result is valid JSON but newlines, tabs and other control bytes are gone.
    """
    return escape_json_string(replace_control_characters(value))


def get_escaper(policy: EscapePolicy) -> Callable[[str], str]:
    if policy == EscapePolicy.LOSSY:
        return escape_json_string_lossy
    return escape_json_string


def _strip_controls(item: Any) -> Any:
    if isinstance(item, str):
        return replace_control_characters(item)
    if isinstance(item, Mapping):
        return {
            replace_control_characters(k) if isinstance(k, str) else k: _strip_controls(v)
            for k, v in item.items()
        }
    if isinstance(item, list | tuple):
        return [_strip_controls(element) for element in item]
    return item


def encode_json(value: Any, policy: EscapePolicy = EscapePolicy.FULL) -> str:
    """
    Render JSON-compatible data as a compact JSON document.

    Element order is preserved. Under the lossy policy every string, keys
    included, has its control characters replaced first.

    Raises:
        TypeError: For values json cannot serialize
        ValueError: For NaN or infinite floats
    """
    if policy == EscapePolicy.LOSSY:
        value = _strip_controls(value)
    return _dumps(value)


def encode_envelope(
    status_code: int,
    body: Mapping[str, Any],
    headers: Mapping[str, str] | None = None,
    policy: EscapePolicy = EscapePolicy.FULL,
) -> str:
    """
    Render a ``{statusCode, headers, body}`` envelope.

    This is the shape a sandboxed plugin hands back to its host loader.
    """
    return encode_json(
        {
            "statusCode": status_code,
            "headers": dict(headers or {"Content-Type": "application/json"}),
            "body": body,
        },
        policy,
    )


def warn_if_lossy(policy: EscapePolicy) -> None:
    """Log a warning when the lossy policy is configured."""
    if policy == EscapePolicy.LOSSY:
        logger.warning(
            "Lossy JSON escaping is enabled; control characters in log lines will be replaced with spaces",
            extra={"escape_policy": policy.value},
        )
