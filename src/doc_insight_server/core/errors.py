"""
Error Taxonomy and Global Error Handling

This module defines the exceptions raised by the insight pipeline and the
application-wide exception handlers that turn them into HTTP responses.

Design Goals
------------
- Every error reaching the HTTP boundary becomes ``{"error": "<message>"}``
- Never leak upstream or internal exception details to clients
- Log the root cause internally for debugging
- Keep the exception classes framework-agnostic so the pipeline can be used
  without FastAPI (see scripts/ask_document.py)
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("docinsight.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class DocInsightError(Exception):
    """Base class for all errors raised by the insight pipeline."""


class ExtractionError(DocInsightError):
    """Raised when a document cannot be turned into text."""

    hint = "Failed to extract text. Is this a scanned PDF?"


class ValidationError(DocInsightError):
    """Raised when a query is empty or exceeds the input budget."""


class RequestError(DocInsightError):
    """
    Raised by the request client for a non-success HTTP status.

    Carries the upstream status code and response body text.
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API call failed: {status_code}. Details: {body}")


class InsightErrorKind(str, enum.Enum):
    UPSTREAM_FAILURE = "upstream_failure"
    EMPTY_UPSTREAM_RESPONSE = "empty_upstream_response"


class InsightError(DocInsightError):
    """Final failure of an insight query."""

    def __init__(self, kind: InsightErrorKind, detail: Optional[str] = None) -> None:
        self.kind = kind
        self.detail = detail
        message = kind.value if detail is None else f"{kind.value}: {detail}"
        super().__init__(message)


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


async def extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    logger.info("Extraction failed for %s: %s", request.url.path, exc)
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.hint)


async def insight_error_handler(request: Request, exc: InsightError) -> JSONResponse:
    """
    Map a final pipeline failure to a generic 502.

    The upstream detail is logged, never returned to the caller.
    """
    logger.error(
        "Insight query failed (%s) during %s %s: %s",
        exc.kind.value,
        request.method,
        request.url.path,
        exc.detail,
    )
    if exc.kind is InsightErrorKind.EMPTY_UPSTREAM_RESPONSE:
        message = "The AI service returned an unexpected empty response."
    else:
        message = "Failed to get a response from the AI service. Please try again."
    return _error(status.HTTP_502_BAD_GATEWAY, message)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    parts = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error.get("loc", ()) if loc != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Invalid request: " + "; ".join(parts),
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Logs the full stack trace and returns a generic 500 with no internal
    details.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
