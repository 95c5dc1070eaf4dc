"""HTTP client for the conversion endpoint.

Mirrors what the browser client does with a response: a JSON body is an
error payload, anything else is the converted file.  The saved name comes
from ``Content-Disposition`` when the server sends one, otherwise from the
original name with its extension replaced.
"""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import structlog

from fileforge.models.conversion import (
    STRATEGY_HEADER,
    ConversionResult,
    ConversionStrategy,
    FileObject,
)
from fileforge.utils.errors import FileForgeError
from fileforge.utils.file_utils import converted_file_name, parse_content_disposition
from fileforge.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_CONVERT_PATH = "/api/v1/convert"


class ConversionRequestError(FileForgeError):
    """The server answered a conversion request with an error payload."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message=message, provider_name="fileforge")
        self._status_code = status_code

    @property
    def status_code(self) -> int:
        return self._status_code


class ConversionClient:
    """Submits files to a running fileforge server.

    Parameters
    ----------
    base_url:
        Server root, e.g. ``http://localhost:8000``.
    http_client:
        Optional shared ``httpx.AsyncClient``.  When omitted the client
        creates and owns one; call :meth:`aclose` (or use ``async with``)
        to release it.
    timeout:
        Request timeout in seconds for an owned client.  Word→PDF requests
        wait for the remote job, so this should exceed the server's job
        timeout.
    """

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        *,
        timeout: float = 330.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def __aenter__(self) -> ConversionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def convert(
        self,
        file_bytes: bytes,
        file_name: str,
        mime_type: str,
        target_format: str,
    ) -> ConversionResult:
        """Upload *file_bytes* and return the converted artifact.

        Raises :class:`ConversionRequestError` for JSON error responses and
        for any other non-2xx status.
        """
        try:
            response = await self._client.post(
                f"{self._base_url}{_CONVERT_PATH}",
                files={"file": (file_name, file_bytes, mime_type or "application/octet-stream")},
                data={"targetFormat": target_format},
            )
        except httpx.HTTPError as exc:
            raise ConversionRequestError(f"Conversion request failed: {exc}", status_code=0) from exc

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            raise ConversionRequestError(self._error_message(response), response.status_code)
        if response.is_error:
            raise ConversionRequestError(
                f"Conversion failed with HTTP {response.status_code}",
                response.status_code,
            )

        name = parse_content_disposition(response.headers.get("content-disposition"))
        strategy_value = response.headers.get(STRATEGY_HEADER)
        try:
            strategy = ConversionStrategy(strategy_value) if strategy_value else None
        except ValueError:
            strategy = None

        result = ConversionResult(
            data=response.content,
            mime_type=content_type or "application/octet-stream",
            suggested_file_name=name or converted_file_name(file_name, target_format),
            strategy=strategy,
        )
        _logger.info(
            "conversion_downloaded",
            file_name=file_name,
            output_name=result.suggested_file_name,
            strategy=strategy_value,
            size=len(result.data),
        )
        return result

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or f"Conversion failed with HTTP {response.status_code}"
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return f"Conversion failed with HTTP {response.status_code}"


def to_file_object(result: ConversionResult, target_format: str) -> FileObject:
    """Wrap a finished conversion as a new, processed dashboard entry."""
    now = datetime.now(timezone.utc).isoformat()
    return FileObject(
        name=result.suggested_file_name,
        mime_type=result.mime_type,
        size_bytes=len(result.data),
        date_added=now,
        processed=True,
        converted_format=target_format,
        date_processed=now,
    )
