"""
FastAPI Application Factory & Configuration.

This module initializes the FastAPI application instance. It is responsible for:
1.  **Wiring**: one DocumentProcessor (with the process-wide RateLimiter) and
    one BatchCoordinator, stored on ``app.state``.
2.  **Exception Handling**: error kinds map to distinct status codes so
    clients can say "batch too large", "too many requests" or "please retry".
3.  **Routing**: mounting the documents router and the health probe.

Design Pattern
--------------
We use an **Application Factory** pattern (`create_app`). Tests pass their
own processor/coordinator (backed by a fake OCR client); production lets the
lifespan build them from settings.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reportocr import __version__
from reportocr.api.routers import documents
from reportocr.api.schemas import HealthPayload
from reportocr.core.errors import (
    RateLimitedError,
    ReportOcrError,
    TransientServiceError,
    ValidationError,
)
from reportocr.core.settings import get_logger, load_settings
from reportocr.pipelines import BatchCoordinator, DocumentProcessor

logger = get_logger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[ReportOcrError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (RateLimitedError, status.HTTP_429_TOO_MANY_REQUESTS),
    (TransientServiceError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: ReportOcrError) -> int:
    """Return the HTTP status code for an error kind."""
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(
    processor: DocumentProcessor | None = None,
    coordinator: BatchCoordinator | None = None,
) -> FastAPI:
    """
    Construct and configure the reportocr FastAPI application.

    Parameters
    ----------
    processor:
        Pre-built single-document pipeline. Built from settings when None.
    coordinator:
        Pre-built batch coordinator. Built around ``processor`` when None.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        settings = load_settings()
        owned = processor is None
        proc = processor or DocumentProcessor.from_settings(settings)
        app.state.processor = proc
        app.state.coordinator = coordinator or BatchCoordinator.from_settings(proc, settings)
        logger.info("reportocr API started (environment=%s)", settings.environment)

        yield

        if owned:
            proc.close()
        logger.info("reportocr API shut down")

    app = FastAPI(
        title="reportocr API",
        description="Structured text extraction for medical lab reports",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(ReportOcrError)
    async def report_ocr_error_handler(request: Request, exc: ReportOcrError) -> JSONResponse:
        """Map pipeline error kinds to structured JSON and a matching status."""
        return JSONResponse(
            status_code=status_for(exc),
            content={**exc.to_dict(), "path": request.url.path},
        )

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    app.include_router(documents.router)

    @app.get("/health", tags=["System"], response_model=HealthPayload)
    async def health_check() -> HealthPayload:
        """Simple liveness probe."""
        return HealthPayload(environment=load_settings().environment, version=__version__)

    return app


__all__ = ["create_app", "status_for"]
