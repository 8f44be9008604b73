"""
Request decoding for log retrieval.

Turns loosely typed query parameters into a validated line count clamped to
the configured range.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from ..config.settings import LogViewerConfig
from ..exceptions import RequestValidationError


def _coerce_count(value: Any) -> int | None:
    """
    Convert a raw ``lines`` value to an int.

    Returns None for the documented fallback cases (missing, blank or
    non-numeric text). Raises ValueError for values that cannot be a count.
    """
    if value is None:
        return None

    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValueError("lines must be an integer, not a boolean")

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"lines must be a whole number, got {value}")
        return int(value)

    if isinstance(value, str):
        text = value.strip().strip('"').strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            return None

    raise ValueError(f"lines must be an integer, got {type(value).__name__}")


class LogRequest(BaseModel):
    """
    A validated log retrieval request.
    """

    lines: int = Field(
        ...,
        ge=1,
        description="Number of most recent lines to return"
    )

    @field_validator("lines", mode="before")
    @classmethod
    def clamp_lines(cls, v: Any, info: ValidationInfo) -> int:
        """
        Apply the default and clamp to [min_lines, max_lines].

        The configuration is passed through the validation context.
        """
        config = (info.context or {}).get("config") or LogViewerConfig()
        count = _coerce_count(v)

        if count is None or count <= 0:
            return config.default_lines

        return max(config.min_lines, min(count, config.max_lines))

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any] | None,
        config: LogViewerConfig,
    ) -> "LogRequest":
        """
        Decode request parameters.

        Args:
            params: Query parameters or tool arguments
            config: Active configuration supplying bounds and default

        Returns:
            Validated request

        Raises:
            RequestValidationError: If ``lines`` has a type that cannot be a count
        """
        raw = (params or {}).get("lines")
        try:
            return cls.model_validate({"lines": raw}, context={"config": config})
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            raise RequestValidationError(
                f"Invalid 'lines' parameter: {first.get('msg', str(e))}",
                original_error=e,
                field="lines",
                value=raw,
            ) from e
