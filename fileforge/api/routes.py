"""FastAPI routes for the fileforge conversion service.

    Endpoint            Method  Description
    /api/v1/convert     POST    Multipart upload (file, targetFormat) → converted bytes
    /api/v1/formats     GET     Target formats allowed for ?mimeType=
    /api/v1/health      GET     Liveness + external provider configuration

Service dependencies are resolved from ``app.state`` (populated by the
lifespan in ``fileforge.main``) through ``Annotated[..., Depends(...)]``.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException

from fileforge import __version__
from fileforge.api.schemas import ErrorResponse, FormatsResponse, HealthResponse
from fileforge.config.settings import Settings
from fileforge.interfaces.document_converter import IDocumentConversionProvider
from fileforge.models.conversion import STRATEGY_HEADER
from fileforge.models.formats import format_mime_type
from fileforge.services.conversion_service import ConversionService
from fileforge.services.mime_classifier import allowed_targets
from fileforge.utils.errors import ClientInputError, FileForgeError
from fileforge.utils.file_utils import build_content_disposition, format_bytes
from fileforge.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

# Uploads are read in 64 KB chunks so oversized files are rejected
# before they are fully buffered.
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_conversion_service(request: Request) -> ConversionService:
    return request.app.state.conversion_service


def _get_document_converter(request: Request) -> IDocumentConversionProvider:
    return request.app.state.document_converter


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


ConversionServiceDep = Annotated[ConversionService, Depends(_get_conversion_service)]
DocumentConverterDep = Annotated[IDocumentConversionProvider, Depends(_get_document_converter)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


# ---------------------------------------------------------------------------
# Upload helpers
# ---------------------------------------------------------------------------


async def _read_form(request: Request) -> FormData:
    """Parse the multipart body.  A malformed body is a server-side failure."""
    try:
        return await request.form()
    except HTTPException as exc:
        raise FileForgeError(f"Malformed multipart body: {exc.detail}") from exc


async def _read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise ClientInputError(
                f"File exceeds the maximum upload size of {format_bytes(max_bytes)}",
                status_code=413,
            )
        chunks.append(chunk)
    return b"".join(chunks)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


@router.post(
    "/convert",
    responses={
        200: {"content": {"application/octet-stream": {}}, "description": "Converted file"},
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Convert an uploaded file to the requested format",
)
async def convert_file(
    request: Request,
    service: ConversionServiceDep,
    app_settings: SettingsDep,
) -> Response:
    """Convert the ``file`` form field into ``targetFormat``.

    The body is parsed by hand rather than through ``File()``/``Form()``
    parameters so missing fields produce the service's own 400 message
    instead of a 422 validation payload.
    """
    form = await _read_form(request)
    upload = form.get("file")
    target_format = form.get("targetFormat")

    file_bytes: bytes | None = None
    file_name: str | None = None
    mime_type: str | None = None
    if isinstance(upload, UploadFile):
        try:
            file_bytes = await _read_upload(upload, app_settings.max_upload_mb * 1024 * 1024)
        finally:
            await upload.close()
        file_name = upload.filename
        mime_type = upload.content_type

    conversion_request = service.build_request(
        file_bytes,
        file_name,
        mime_type,
        target_format if isinstance(target_format, str) else None,
    )
    result = await service.convert(conversion_request)

    return Response(
        content=result.data,
        media_type=format_mime_type(conversion_request.target_format),
        headers={
            "Content-Disposition": build_content_disposition(result.suggested_file_name),
            STRATEGY_HEADER: result.strategy.value,
        },
    )


# ---------------------------------------------------------------------------
# Lookup & health
# ---------------------------------------------------------------------------


@router.get(
    "/formats",
    response_model=FormatsResponse,
    summary="List target formats for a MIME type",
)
async def list_formats(
    mime_type: Annotated[str, Query(alias="mimeType")] = "",
) -> FormatsResponse:
    """Return the allowed targets in display order; unknown types get none."""
    return FormatsResponse(
        mime_type=mime_type,
        targets=[target.value for target in allowed_targets(mime_type)],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(document_converter: DocumentConverterDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        providers={document_converter.get_provider_name(): document_converter.is_available()},
    )
