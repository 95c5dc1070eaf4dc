"""fileforge API layer: routes, schemas, and middleware."""

from fileforge.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from fileforge.api.routes import router
from fileforge.api.schemas import ErrorResponse, FormatsResponse, HealthResponse

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ErrorResponse",
    "FormatsResponse",
    "HealthResponse",
]
