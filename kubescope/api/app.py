"""FastAPI application factory for kubescope.

Usage::

    from kubescope.api.app import create_app

    app = create_app(
        kube_fetcher=fetcher,
        prometheus=prometheus_client,
        config=config,
    )

The factory is used by both the production bootstrap (``kubescope.app``)
and unit tests.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kubescope.api.routes import router
from kubescope.api.schemas import ErrorResponse, HealthResponse
from kubescope.errors import PipelineFailure
from kubescope.pipeline.base import ASSEMBLE_STAGE

_log = structlog.get_logger(component="api.app")

_METRICS_PREFIX = "/metrics"

# Unknown paths and unsupported methods both answer with this fixed body.
_NOT_FOUND_BODY = ErrorResponse(status=404, message={"err": "unknown location"}).model_dump()
_UNEXPECTED_BODY = ErrorResponse(status=500, message={"err": "unexpected error"}).model_dump()


def _failure_message(stage: str) -> str:
    if stage == ASSEMBLE_STAGE:
        return "failed to assemble response"
    return f"failed to fetch {stage}"


def create_app(
    kube_fetcher: Any,
    prometheus: Any,
    config: Any = None,
) -> FastAPI:
    """Create and configure the kubescope FastAPI application.

    Args:
        kube_fetcher: KubernetesFetcher (or any object with the same coroutines).
        prometheus:   PrometheusClient used by the ``/metrics/prom`` passthrough.
        config:       KubeScopeConfig, kept on ``app.state`` for handlers.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from kubescope import __version__

    app = FastAPI(
        title="kubescope",
        summary="Kubernetes cluster topology dashboard API",
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
    )

    # Collaborators only; no per-request state is stored on the app.
    app.state.kube_fetcher = kube_fetcher
    app.state.prometheus = prometheus
    app.state.config = config

    app.include_router(router, prefix=_METRICS_PREFIX)

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        return HealthResponse(version=__version__)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(PipelineFailure)
    async def pipeline_failure_handler(request: Request, exc: PipelineFailure) -> JSONResponse:
        """A stage failed: report which one, log the cause, return no data."""
        _log.error(
            "pipeline_failed",
            path=str(request.url.path),
            pipeline=exc.pipeline,
            stage=exc.stage,
            error=str(exc.cause),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                status=500,
                message={"err": _failure_message(exc.stage), "stage": exc.stage},
            ).model_dump(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content=_NOT_FOUND_BODY)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(status=exc.status_code, message={"err": str(exc.detail)}).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first_field = ""
        first_msg = ""
        if errors:
            locs = errors[0].get("loc", ())
            first_field = str(locs[-1]) if locs else ""
            first_msg = str(errors[0].get("msg", ""))
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                status=400,
                message={"err": "invalid request", "field": first_field, "detail": first_msg},
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; the cause is logged, never returned."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(status_code=500, content=_UNEXPECTED_BODY)

    return app
