"""
Document Insight Server Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Fail fast on missing inference credentials
- Centralized router registration
- Every error leaves the API as ``{"error": "<message>"}``
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .core.errors import (
    ExtractionError,
    InsightError,
    ValidationError,
    extraction_error_handler,
    http_exception_handler,
    insight_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
    validation_error_handler,
)
from .core.logging_config import configure_logging
from .db import create_tables, get_async_engine

from .api import (
    dependencies,
    extract_routes,
    health_routes,
    history_routes,
    summarize_routes,
)


logger = logging.getLogger("docinsight.app")


# ---------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup validation and graceful shutdown.

    Startup touches critical secrets so a misconfigured deployment fails
    before the first request is served.
    """
    logger.info("Starting doc-insight-server")

    if not settings.gemini_api_key.get_secret_value():
        raise RuntimeError("GEMINI_API_KEY is not configured.")

    if settings.jwt_secret is None:
        logger.warning("JWT_SECRET is not configured; query history is disabled")

    if settings.history_create_tables:
        await create_tables(get_async_engine())

    logger.info("Configuration validated successfully")

    yield

    logger.info("Shutting down doc-insight-server")

    await dependencies.get_insight_service().wait_for_pending()
    await dependencies.get_request_client().aclose()
    await get_async_engine().dispose()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    configure_logging()

    app = FastAPI(
        title="doc-insight-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ExtractionError, extraction_error_handler)
    app.add_exception_handler(InsightError, insight_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(summarize_routes.router)
    app.include_router(extract_routes.router)
    app.include_router(history_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn)
# ---------------------------------------------------------------------

app = create_app()
