"""fileforge FastAPI application entry point.

Wires the CloudConvert provider, the placeholder synthesizer and the
conversion service together, stores them on ``app.state`` for the route
dependencies, and closes the shared HTTP client on shutdown.

``build_conversion_service`` exposes the same assembly to the CLI so an
in-process conversion behaves exactly like one served over HTTP.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from fileforge import __version__
from fileforge.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from fileforge.api.routes import router as api_router
from fileforge.config import settings
from fileforge.config.settings import Settings
from fileforge.providers.cloudconvert.cloudconvert_provider import CloudConvertProvider
from fileforge.services.conversion_service import ConversionService
from fileforge.services.placeholder_pdf import PlaceholderPdfSynthesizer
from fileforge.utils.logging import configure_logging_from_settings, get_logger

configure_logging_from_settings(settings)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Service assembly
# ---------------------------------------------------------------------------


def build_conversion_service(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
) -> tuple[ConversionService, CloudConvertProvider]:
    """Construct the conversion service and the provider it delegates to."""
    document_converter = CloudConvertProvider(settings=app_settings, http_client=http_client)
    service = ConversionService(
        document_converter=document_converter,
        placeholder=PlaceholderPdfSynthesizer(),
        image_transcode_enabled=app_settings.image_transcode_enabled,
    )
    return service, document_converter


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every component stored on ``app.state``."""
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(app_settings.http_timeout_seconds))
    service, document_converter = build_conversion_service(app_settings, http_client)
    return {
        "settings": app_settings,
        "http_client": http_client,
        "document_converter": document_converter,
        "conversion_service": service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build the service graph on startup, close the HTTP client on shutdown."""
    components = _build_all(application.state.settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    document_converter: CloudConvertProvider = components["document_converter"]
    _logger.info(
        "app_startup",
        version=__version__,
        environment=components["settings"].app_env,
        cloudconvert_configured=document_converter.is_available(),
        cloudconvert_base_url=components["settings"].get_cloudconvert_base_url(),
    )

    yield

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings
    application = FastAPI(
        title="fileforge API",
        version=__version__,
        description=(
            "Upload a file and a target format; receive the converted file. "
            "Word documents are converted to PDF through CloudConvert, with a "
            "placeholder PDF when the service is unavailable."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings

    # Last added runs first.
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_settings.get_cors_origins())

    application.include_router(api_router)
    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "fileforge.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
