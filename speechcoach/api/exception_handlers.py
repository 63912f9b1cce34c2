from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from speechcoach.core.llm.errors import LLMOutputError, LLMUpstreamError
from speechcoach.domain.exceptions import AnalysisRequestError, ModelOutputError

logger = logging.getLogger("speechcoach.errors")


def error_response(
    *, status_code: int, error: str, details: str | None = None, headers: dict[str, str] | None = None
) -> JSONResponse:
    content: dict[str, str] = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _log_extra(request: Request, status_code: int) -> dict[str, object]:
    # Metadata only: never the body, query string or headers.
    return {
        "request_id": getattr(request.state, "request_id", None),
        "http_method": request.method,
        "request_path": request.url.path,
        "status_code": status_code,
    }


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers that render every failure as `{"error": ..., "details"?: ...}`."""

    @app.exception_handler(AnalysisRequestError)
    async def handle_analysis_request_error(
        request: Request, exc: AnalysisRequestError
    ) -> JSONResponse:
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            level, "Analysis request rejected", extra=_log_extra(request, exc.status_code)
        )
        return error_response(status_code=exc.status_code, error=exc.message, details=exc.details)

    @app.exception_handler(ModelOutputError)
    async def handle_model_output_error(request: Request, exc: ModelOutputError) -> JSONResponse:
        logger.warning("Model output rejected", extra=_log_extra(request, exc.status_code))
        return error_response(status_code=exc.status_code, error=exc.message, details=exc.details)

    @app.exception_handler(LLMOutputError)
    async def handle_llm_output_error(request: Request, exc: LLMOutputError) -> JSONResponse:
        logger.warning("Model output unparseable", extra=_log_extra(request, 502))
        return error_response(status_code=502, error=exc.message)

    @app.exception_handler(LLMUpstreamError)
    async def handle_llm_upstream_error(request: Request, exc: LLMUpstreamError) -> JSONResponse:
        # Provider error status is mirrored; transport failures and non-error statuses
        # (e.g. an unfollowed 3xx) become 502.
        upstream = exc.status_code
        status_code = upstream if upstream is not None and upstream >= 400 else 502
        logger.warning("Model provider request failed", extra=_log_extra(request, status_code))
        return error_response(status_code=status_code, error=exc.message, details=exc.details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Request body validation failed", extra=_log_extra(request, 400))
        return error_response(
            status_code=400,
            error="Invalid request body",
            details=_format_validation_errors(exc),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(
            status_code=exc.status_code,
            error=str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unexpected error",
            exc_info=exc,
            extra=_log_extra(request, 500),
        )
        return error_response(status_code=500, error="Analysis failed due to server error")
