"""Custom exception hierarchy for fileforge.

All application exceptions inherit from :class:`FileForgeError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "cloudconvert") caused the failure.

    FileForgeError  (base -- catch-all for any fileforge error)
    +-- ClientInputError      (bad request: missing fields, unsupported pair)
    +-- ExternalServiceError  (remote conversion job failed or unconfigured)
    +-- ConfigurationError    (startup / invalid config)

Only ``ExternalServiceError`` is recovered locally (the conversion service
falls back to a placeholder document).  ``ClientInputError`` becomes a 4xx
response; everything else becomes a 500.
"""

from __future__ import annotations


class FileForgeError(Exception):
    """Base exception for all fileforge errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[cloudconvert] Job creation failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ClientInputError(FileForgeError):
    """Raised when a request is rejected before any conversion work begins.

    ``status_code`` is the HTTP status the API layer answers with; 400 for
    missing fields or unsupported conversions, 413 for oversized uploads.
    """

    def __init__(
        self,
        message: str = "Invalid request",
        status_code: int = 400,
    ) -> None:
        super().__init__(message=message)
        self._status_code = status_code

    @property
    def status_code(self) -> int:
        return self._status_code


class ExternalServiceError(FileForgeError):
    """Raised when the remote document-conversion service cannot deliver.

    Covers missing credentials, job creation, upload, polling, export and
    download failures.  The conversion service catches this and substitutes
    the placeholder document.
    """

    def __init__(
        self,
        message: str = "External conversion service failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(FileForgeError):
    """Raised when configuration is invalid at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
