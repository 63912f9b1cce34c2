from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from speechcoach.analysis.prompt import is_data_uri
from speechcoach.analysis.schemas import AnalysisRequest, AnalysisResult
from speechcoach.analysis.service import SpeechAnalysisService
from speechcoach.api.schemas import ErrorOut
from speechcoach.core.llm.deps import LLMClient, get_llm_client
from speechcoach.core.llm.errors import LLMOutputError, LLMUpstreamError
from speechcoach.core.metrics import record_analysis_outcome
from speechcoach.core.settings import get_settings
from speechcoach.domain.exceptions import AnalysisRequestError, ModelOutputError

router = APIRouter(prefix="/api", tags=["analysis"])
logger = logging.getLogger("speechcoach.analysis")

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorOut, "description": "Missing required fields or malformed audio data URI."},
    405: {"model": ErrorOut, "description": "Method other than POST/OPTIONS."},
    500: {"model": ErrorOut, "description": "Missing API key or unexpected server failure."},
    502: {"model": ErrorOut, "description": "Model returned invalid or malformed output."},
}


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    responses=_ERROR_RESPONSES,
    summary="Evaluate a speech sample",
    description=(
        "Send a speech sample (plain text or an audio data URI) with its context to the "
        "configured language model and return a structured evaluation across 15 criteria.\n\n"
        "When `perfectAnswer` is supplied, every criterion also includes a `comparison` "
        "against the reference answer."
    ),
)
async def analyze_speech(
    request: Request,
    payload: AnalysisRequest | None = None,
    llm_client: LLMClient | None = Depends(get_llm_client),
) -> JSONResponse:
    """
    Single linear path: check config and input, call the model once, validate, respond.

    Speech samples, prompts and model output are never logged.
    """

    settings = get_settings()
    provider = settings.llm_provider
    request_id = getattr(request.state, "request_id", None)

    if llm_client is None:
        record_analysis_outcome(provider=provider, outcome="not_configured")
        raise AnalysisRequestError(
            f"Missing {settings.llm_api_key_env_name}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    body = payload or AnalysisRequest()
    log_extra = {
        "request_id": request_id,
        "provider": provider,
        "has_audio": bool(body.speech_sample and is_data_uri(body.speech_sample)),
        "has_perfect_answer": bool(body.perfect_answer),
    }

    svc = SpeechAnalysisService(
        llm_client=llm_client,
        strict_criteria_validation=settings.strict_criteria_validation,
    )
    try:
        result = await svc.analyze(body)
    except AnalysisRequestError:
        record_analysis_outcome(provider=provider, outcome="rejected")
        raise
    except LLMUpstreamError:
        record_analysis_outcome(provider=provider, outcome="upstream_error")
        logger.info("Speech analysis failed (upstream)", extra={**log_extra, "success": False})
        raise
    except (LLMOutputError, ModelOutputError):
        record_analysis_outcome(provider=provider, outcome="invalid_output")
        logger.info(
            "Speech analysis failed (invalid model output)", extra={**log_extra, "success": False}
        )
        raise
    except Exception as exc:  # noqa: BLE001 - every failure must surface as a JSON error
        record_analysis_outcome(provider=provider, outcome="error")
        logger.exception("Speech analysis failed", extra={**log_extra, "success": False})
        raise AnalysisRequestError(
            "Analysis failed due to server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ) from exc

    record_analysis_outcome(provider=provider, outcome="success")
    logger.info("Speech analysis completed", extra={**log_extra, "success": True})
    # Returned as produced by the model; response_model documents the shape only.
    return JSONResponse(status_code=status.HTTP_200_OK, content=result)


# Registered after POST: a 405 reports the first route matching the path in `Allow`.
@router.options("/analyze", status_code=status.HTTP_204_NO_CONTENT, include_in_schema=False)
async def analyze_speech_preflight() -> Response:
    # CORS headers are added by CORSMiddleware; a bare OPTIONS gets an empty answer.
    return Response(status_code=status.HTTP_204_NO_CONTENT)
