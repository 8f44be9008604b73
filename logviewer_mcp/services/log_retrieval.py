"""
Log retrieval service.

The request boundary: decodes the request, runs the source fallback chain and
shapes every outcome into an ApiResponse. Nothing raised below this point
escapes to the caller.
"""

from collections.abc import Mapping
from typing import Any

from ..config.settings import LogViewerConfig
from ..exceptions import LogsNotFoundError, LogViewerError, RequestValidationError
from ..models.log_record import RetrievalResult, SourceId
from ..models.request import LogRequest
from ..models.response import ApiResponse, ErrorBody, LogsBody
from ..utils.error_handling import error_handler
from ..utils.json_encoding import encode_envelope, encode_json, warn_if_lossy
from ..utils.logging import get_logger
from .fallback_chain import SourceFallbackChain
from .host_profile import HostProfiler, suggestion_for
from .sources import LogSource, build_sources

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "Tried raw-file, journal and file-based logs"
FETCH_FAILED_DETAILS = "Could not fetch logs"


class LogRetrievalService:
    """
    Retrieves the most recent log lines for a request.

    Args:
        config: Active configuration
        sources: Sources in priority order; built from config when omitted
        profiler: Host profiler for the not-found suggestion
    """

    def __init__(
        self,
        config: LogViewerConfig | None = None,
        sources: list[LogSource] | None = None,
        profiler: HostProfiler | None = None,
    ) -> None:
        self.config = config or LogViewerConfig()
        self.chain = SourceFallbackChain(sources if sources is not None else build_sources(self.config))
        self.profiler = profiler or HostProfiler(self.config)
        warn_if_lossy(self.config.escape_policy)

    def handle(self, params: Mapping[str, Any] | None = None) -> ApiResponse:
        """
        Serve one request.

        Args:
            params: Query parameters or tool arguments; only ``lines`` is read

        Returns:
            200 with the lines, 400 for a malformed ``lines`` value, 404 when
            every source was empty and 500 for anything unexpected
        """
        try:
            return self._retrieve(params)
        except RequestValidationError as e:
            return ApiResponse(
                status_code=e.status_code,
                body=ErrorBody(
                    error="Invalid request",
                    message=e.message,
                    field=e.context.get("field"),
                ),
            )
        except LogsNotFoundError as e:
            return self._not_found(e)
        except LogViewerError as e:
            return ApiResponse(
                status_code=500,
                body=ErrorBody(error=e.message, details=FETCH_FAILED_DETAILS),
            )

    @error_handler("get_logs")
    def _retrieve(self, params: Mapping[str, Any] | None) -> ApiResponse:
        request = LogRequest.from_params(params, self.config)
        result = self.chain.retrieve(request.lines)

        if result.source_id == SourceId.NONE:
            raise LogsNotFoundError(attempts=result.attempts)

        logger.info(
            "Logs retrieved",
            extra={
                "source": result.source_id.value,
                "path": result.source_path,
                "requested": request.lines,
                "count": len(result.lines),
                "truncated": result.truncated,
            },
        )
        return ApiResponse(body=LogsBody.from_result(result, self.config.line_format))

    def _not_found(self, error: LogsNotFoundError) -> ApiResponse:
        # Host detection only runs once the chain is exhausted
        profile = self.profiler.detect()
        return ApiResponse(
            status_code=error.status_code,
            body=ErrorBody(
                error=error.message,
                message=NOT_FOUND_MESSAGE,
                suggestion=suggestion_for(profile),
                attempts=error.context.get("attempts", []),
                host=profile,
            ),
        )

    def fetch(self, line_count: int) -> RetrievalResult:
        """Run the fallback chain directly with an already validated count."""
        return self.chain.retrieve(line_count)

    def encode_body(self, response: ApiResponse) -> str:
        """Response body as JSON text using the configured escaping policy."""
        return encode_json(response.body_dict(), self.config.escape_policy)

    def encode(self, response: ApiResponse) -> str:
        """Full ``{statusCode, headers, body}`` envelope for the sandbox transport."""
        return encode_envelope(
            response.status_code,
            response.body_dict(),
            response.headers,
            self.config.escape_policy,
        )
