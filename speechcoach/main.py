from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from speechcoach.analysis.router import router as analysis_router
from speechcoach.api.exception_handlers import register_exception_handlers
from speechcoach.api.schemas import HealthOut
from speechcoach.core.logging import setup_logging
from speechcoach.core.metrics import PrometheusMetricsMiddleware, metrics_router
from speechcoach.core.middleware.http_logging import REQUEST_ID_HEADER, HttpLoggingMiddleware
from speechcoach.core.settings import get_settings

setup_logging()


def _add_cors(app: FastAPI, *, allow_origins: list[str]) -> None:
    # "*" reflects the caller's origin so credentialed requests still work.
    wildcard = "*" in allow_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if wildcard else allow_origins,
        allow_origin_regex=".*" if wildcard else None,
        allow_credentials=True,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Speech Analysis API",
        description=(
            "Evaluates a speech sample (text or audio data URI) with a generative language "
            "model and returns a structured assessment.\n\n"
            "Design principles:\n"
            "- One outbound model call per request; no retries, no caching, no stored state.\n"
            "- Structured (schema-constrained) model output first, text extraction as fallback.\n"
            "- Logs and metrics carry metadata only, never speech samples or evaluations."
        ),
        openapi_tags=[
            {
                "name": "health",
                "description": "Basic uptime check for load balancers and monitoring.",
            },
            {
                "name": "analysis",
                "description": "Speech sample evaluation across 15 fixed criteria.",
            },
            {
                "name": "monitoring",
                "description": "Prometheus-compatible metrics endpoint.",
            },
        ],
    )

    app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(HttpLoggingMiddleware)
    _add_cors(app, allow_origins=settings.cors_allow_origins)

    register_exception_handlers(app)

    @app.get(
        "/health",
        response_model=HealthOut,
        tags=["health"],
        summary="Health check",
        description=(
            "Lightweight endpoint to verify the API process is running.\n\n"
            "This endpoint does not call the model provider."
        ),
    )
    async def health() -> HealthOut:
        return HealthOut(status="ok")

    app.include_router(metrics_router)
    app.include_router(analysis_router)
    return app


app = create_app()
