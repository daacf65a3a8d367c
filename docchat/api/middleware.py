"""API middleware: CORS, request logging, and error handling.

Starlette runs middleware LIFO.  ``main.create_app`` adds
``ErrorHandlingMiddleware`` first and ``RequestLoggingMiddleware`` second,
so the logger is outermost and records the final status code, including
the one the error handler chose.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from docchat.api.schemas import ErrorResponse
from docchat.utils.errors import (
    DocChatError,
    DocumentNotFoundError,
    InputValidationError,
    OperationTimeoutError,
    SessionNotFoundError,
    UnsupportedFormatError,
)
from docchat.utils.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    new_request_id,
)

_logger: structlog.BoundLogger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"

_STATUS_BY_ERROR: tuple[tuple[type[DocChatError], int], ...] = (
    (InputValidationError, 400),
    (DocumentNotFoundError, 404),
    (SessionNotFoundError, 404),
    (UnsupportedFormatError, 415),
    (OperationTimeoutError, 503),
)

_GENERIC_DETAIL = "Internal server error"


def status_for_error(exc: DocChatError) -> int:
    """HTTP status for an application error; 500 when unmapped."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; ``["*"]`` when no origins are given."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentials with a wildcard origin.
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration.

    A request id (the caller's ``X-Request-Id`` or a fresh one) and the
    caller's user id are bound into the structlog context for the
    lifetime of the request, and the id is echoed back in the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        bind_request_context(request_id, user_id=request.headers.get("X-User-Id"))
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )
            clear_request_context()


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert escaped ``DocChatError`` subclasses into JSON ``ErrorResponse`` bodies.

    Client errors (4xx) carry the error message; server errors carry a
    generic detail only.  Full details are logged server-side.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except DocChatError as exc:
            status_code = status_for_error(exc)
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=status_code,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message if status_code < 500 else _GENERIC_DETAIL,
            )
            return JSONResponse(status_code=status_code, content=body.model_dump())
