"""HTTP middleware: CORS, per-request logging and error translation.

Starlette runs middleware last-added-first.  ``main.py`` adds
ErrorHandlingMiddleware, then RequestLoggingMiddleware, so a request
passes RequestLogging -> ErrorHandling -> route, and the logged status is
the one the client actually receives.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from docqa.api.schemas import ErrorResponse
from docqa.utils.errors import (
    ConfigurationError,
    DocQAError,
    DocumentNotFoundError,
    EmbeddingFailedError,
    ExtractionFailedError,
    ImageBasedUnsupportedError,
    IndexWriteFailedError,
    PartiallyIndexedError,
    ProviderTimeoutError,
    QuotaExceededError,
    RateLimitError,
    SynthesisError,
)
from docqa.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# (status code, client-facing error code) per error kind.  Looked up by
# exact class, then by MRO, so subclasses inherit their parent's mapping.
_ERROR_STATUS: dict[type[DocQAError], tuple[int, str]] = {
    QuotaExceededError: (429, "limit_reached"),
    DocumentNotFoundError: (404, "document_not_found"),
    ImageBasedUnsupportedError: (422, "image_based_unsupported"),
    ExtractionFailedError: (422, "extraction_failed"),
    EmbeddingFailedError: (502, "embedding_failed"),
    SynthesisError: (502, "synthesis_failed"),
    IndexWriteFailedError: (502, "index_write_failed"),
    PartiallyIndexedError: (502, "partially_indexed"),
    RateLimitError: (503, "rate_limited"),
    ProviderTimeoutError: (504, "provider_timeout"),
    ConfigurationError: (500, "configuration_error"),
}

# Outcomes that are part of normal operation and not logged as errors.
_EXPECTED_ERRORS = (QuotaExceededError, DocumentNotFoundError, ImageBasedUnsupportedError)


def error_status(exc: DocQAError) -> tuple[int, str]:
    """Return the HTTP status and error code for an application error."""
    for klass in type(exc).__mro__:
        if klass in _ERROR_STATUS:
            return _ERROR_STATUS[klass]
    return 500, "internal_error"


def configure_cors(app: FastAPI, origins: list[str] | None = None) -> None:
    """Allow browser clients from *origins* (any origin when omitted).

    Credentials stay off: users are identified by an opaque id in the
    request, not by cookies.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log one ``http_request`` line for it.

    The id comes from the incoming ``X-Request-ID`` header when present and
    is bound into structlog's context, so every log line emitted while the
    request is handled carries it.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(request_id=request_id)
        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            _logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn ``DocQAError`` into an ``ErrorResponse`` with a mapped status.

    Clients get the error code and message; provider names and stack
    traces stay in the logs.  Other exceptions are left to FastAPI's
    default 500 handler.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except DocQAError as exc:
            status_code, error_code = error_status(exc)
            log = _logger.info if isinstance(exc, _EXPECTED_ERRORS) else _logger.error
            log(
                "request_failed",
                error=error_code,
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=request.url.path,
                status=status_code,
            )
            body = ErrorResponse(
                error=error_code,
                detail=exc.message,
                document_id=getattr(exc, "document_id", None),
            )
            return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))
