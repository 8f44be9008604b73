"""
Source fallback chain.

Tries log sources one at a time in priority order and returns the first
result that has lines. Sources that fail and sources that come back empty
are skipped the same way.
"""

import time

from ..exceptions import SourceUnavailableError
from ..models.log_record import RetrievalResult, SourceId
from ..utils.error_handling import ErrorClassifier, create_error_context
from ..utils.logging import get_logger, log_source_attempt
from .sources import LogSource

logger = get_logger(__name__)


class SourceFallbackChain:
    """
    Ordered list of log sources.

    Args:
        sources: Sources in priority order, highest first
    """

    def __init__(self, sources: list[LogSource]) -> None:
        self.sources = list(sources)

    def retrieve(self, line_count: int) -> RetrievalResult:
        """
        Return lines from the first source that has any.

        Exactly one source's output is returned; nothing is merged. When every
        source is empty the result has ``source_id == SourceId.NONE`` and lists
        each attempt in ``attempts``.

        Args:
            line_count: Already validated number of lines to fetch
        """
        attempts: list[dict[str, str | None]] = []

        for source in self.sources:
            started = time.monotonic()
            try:
                result = source.fetch(line_count)
            except (SourceUnavailableError, OSError) as e:
                error = ErrorClassifier.classify_error(
                    e, create_error_context("fetch", source=source.source_id.value, path=source.location)
                )
                result = RetrievalResult.empty(
                    source.source_id,
                    source_path=error.context.get("path", source.location),
                    reason=error.message,
                )
            took_ms = int((time.monotonic() - started) * 1000)

            log_source_attempt(
                source.source_id.value,
                result.source_path,
                len(result.lines),
                reason=result.reason,
                took_ms=took_ms,
            )

            if not result.is_empty:
                return result

            attempts.append(result.diagnostic())

        logger.warning("No log source produced lines", extra={"attempts": attempts})
        return RetrievalResult(
            source_id=SourceId.NONE,
            reason="all log sources were empty or unavailable",
            attempts=attempts,
        )
