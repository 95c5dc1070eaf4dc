"""Conversion request handling: validate, dispatch, fall back.

Each request moves through

    Received → Validated → Dispatched → {Succeeded | FallbackApplied | Rejected | Failed}

``ConversionService`` owns the first three transitions and the two
successful outcomes.  Rejections are raised as :class:`ClientInputError`;
anything unexpected propagates to the API boundary and becomes a 500.

The only error recovered here is :class:`ExternalServiceError` from the
remote Word→PDF provider: it is logged with its cause and replaced by the
placeholder PDF, and the caller still receives a normal result.  No state
is shared between requests.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog

from fileforge.interfaces.document_converter import IDocumentConversionProvider
from fileforge.models.conversion import (
    ConversionRequest,
    ConversionResult,
    ConversionStrategy,
    RequestState,
)
from fileforge.models.formats import PDF_MIME_TYPE, format_mime_type
from fileforge.services.converters import extract_text, transcode_image
from fileforge.services.mime_classifier import is_conversion_supported
from fileforge.services.placeholder_pdf import PlaceholderPdfSynthesizer
from fileforge.services.strategy_selector import select_strategy
from fileforge.utils.errors import ClientInputError, ExternalServiceError
from fileforge.utils.file_utils import converted_file_name
from fileforge.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "File and target format are required"

# (bytes, mime type, final state)
_StrategyOutput = tuple[bytes, str, RequestState]


class ConversionService:
    """Runs one conversion request per call.

    Parameters
    ----------
    document_converter:
        Remote Word→PDF provider.  May be unconfigured; requests that would
        use it then receive the placeholder PDF.
    placeholder:
        Placeholder PDF builder.  A default instance is created if omitted.
    image_transcode_enabled:
        Re-encode images with Pillow instead of passing bytes through.
    """

    def __init__(
        self,
        document_converter: IDocumentConversionProvider,
        placeholder: PlaceholderPdfSynthesizer | None = None,
        *,
        image_transcode_enabled: bool = False,
    ) -> None:
        self._document_converter = document_converter
        self._placeholder = placeholder or PlaceholderPdfSynthesizer()
        self._image_transcode_enabled = image_transcode_enabled
        self._handlers: dict[
            ConversionStrategy, Callable[[ConversionRequest], Awaitable[_StrategyOutput]]
        ] = {
            ConversionStrategy.EXTERNAL_JOB: self._convert_external,
            ConversionStrategy.IMAGE_PASSTHROUGH: self._convert_image,
            ConversionStrategy.TEXT_EXTRACTION: self._convert_text,
            ConversionStrategy.PLACEHOLDER_PDF: self._convert_placeholder,
            ConversionStrategy.ECHO: self._convert_echo,
        }

    @staticmethod
    def build_request(
        file_bytes: bytes | None,
        file_name: str | None,
        declared_mime_type: str | None,
        target_format: str | None,
    ) -> ConversionRequest:
        """Received → Validated (field presence).

        Raises :class:`ClientInputError` when the file or the target format
        is missing or empty.
        """
        if file_bytes is None or not target_format:
            _logger.info("conversion_rejected", reason="missing_fields", state=RequestState.REJECTED.value)
            raise ClientInputError(MISSING_FIELDS_MESSAGE)
        return ConversionRequest(
            file_bytes=file_bytes,
            file_name=file_name or "upload",
            declared_mime_type=declared_mime_type or "",
            target_format=target_format,
        )

    async def convert(self, request: ConversionRequest) -> ConversionResult:
        """Validate the pair, run the selected strategy, return the result."""
        mime_type = request.declared_mime_type
        target = request.target_format
        log = _logger.bind(
            file_name=request.file_name,
            mime_type=mime_type,
            target_format=target,
            size=len(request.file_bytes),
        )
        log.info("conversion_requested", state=RequestState.RECEIVED.value)

        if not is_conversion_supported(mime_type, target):
            log.info("conversion_rejected", reason="unsupported_pair", state=RequestState.REJECTED.value)
            raise ClientInputError(f"Conversion from {mime_type} to {target} is not supported")

        strategy = select_strategy(mime_type, target)
        log.info("strategy_selected", strategy=strategy.value, state=RequestState.DISPATCHED.value)

        data, result_mime, state = await self._handlers[strategy](request)
        result = ConversionResult(
            data=data,
            mime_type=result_mime,
            suggested_file_name=converted_file_name(request.file_name, target),
            strategy=strategy,
            state=state,
        )
        log.info(
            "conversion_completed",
            strategy=strategy.value,
            state=state.value,
            output_name=result.suggested_file_name,
            output_size=len(data),
        )
        return result

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _convert_external(self, request: ConversionRequest) -> _StrategyOutput:
        provider = self._document_converter.get_provider_name()
        if not self._document_converter.is_available():
            _logger.warning(
                "placeholder_fallback_applied",
                provider=provider,
                reason="provider_not_configured",
                file_name=request.file_name,
            )
            return self._placeholder_output(request, RequestState.FALLBACK_APPLIED)

        try:
            pdf = await self._document_converter.convert_document(request.file_bytes, request.file_name)
        except ExternalServiceError as exc:
            _logger.warning(
                "placeholder_fallback_applied",
                provider=exc.provider_name or provider,
                reason="provider_failed",
                error=str(exc),
                cause=repr(exc.__cause__) if exc.__cause__ else None,
                file_name=request.file_name,
            )
            return self._placeholder_output(request, RequestState.FALLBACK_APPLIED)

        return pdf, PDF_MIME_TYPE, RequestState.SUCCEEDED

    async def _convert_image(self, request: ConversionRequest) -> _StrategyOutput:
        data = request.file_bytes
        if self._image_transcode_enabled:
            data = transcode_image(data, request.target_format)
        return data, format_mime_type(request.target_format), RequestState.SUCCEEDED

    async def _convert_text(self, request: ConversionRequest) -> _StrategyOutput:
        text = extract_text(request.file_bytes, request.declared_mime_type)
        return text, format_mime_type(request.target_format), RequestState.SUCCEEDED

    async def _convert_placeholder(self, request: ConversionRequest) -> _StrategyOutput:
        return self._placeholder_output(request, RequestState.SUCCEEDED)

    async def _convert_echo(self, request: ConversionRequest) -> _StrategyOutput:
        mime = request.declared_mime_type or "application/octet-stream"
        return request.file_bytes, mime, RequestState.SUCCEEDED

    def _placeholder_output(self, request: ConversionRequest, state: RequestState) -> _StrategyOutput:
        pdf = self._placeholder.synthesize(request.declared_mime_type, request.file_name)
        return pdf, PDF_MIME_TYPE, state
