"""API middleware for CORS, request logging, and error handling.

Starlette runs middleware last-added-first, so ``create_app`` adds
``ErrorHandlingMiddleware`` before ``RequestLoggingMiddleware``:

    Client → RequestLogging → ErrorHandling → route handler

The logging middleware therefore records the status code of the JSON error
body produced by the error handler, not the raw exception.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from fileforge.api.schemas import ErrorResponse
from fileforge.models.conversion import RequestState
from fileforge.utils.errors import ClientInputError
from fileforge.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    ``Content-Disposition`` and ``X-Conversion-Strategy`` are exposed so a
    browser client can read the suggested file name from a cross-origin
    response.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Conversion-Strategy"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
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


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn exceptions escaping a route into ``{"error": message}`` bodies.

    ``ClientInputError`` answers with its own status code (400 or 413).
    Anything else is a failed request: HTTP 500 with the exception message,
    and the traceback goes to the server log only.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ClientInputError as exc:
            _logger.info(
                "request_rejected",
                message=exc.message,
                status=exc.status_code,
                path=str(request.url.path),
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=ErrorResponse(error=exc.message).model_dump(),
            )
        except Exception as exc:
            _logger.exception(
                "request_failed",
                error_type=type(exc).__name__,
                message=str(exc),
                state=RequestState.FAILED.value,
                path=str(request.url.path),
            )
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error=str(exc)).model_dump(),
            )
