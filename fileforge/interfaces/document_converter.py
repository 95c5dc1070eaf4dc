"""Abstract base class for remote document-conversion providers.

A provider turns an office document into PDF by delegating to an external
service.  Every failure mode (missing credentials, job errors, network
errors) surfaces as :class:`~fileforge.utils.errors.ExternalServiceError`
so the conversion service can fall back to the placeholder document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: CloudConvertProvider
# Located in: fileforge/providers/cloudconvert/
class IDocumentConversionProvider(ABC):
    """Contract for services that convert documents to PDF."""

    @abstractmethod
    async def convert_document(self, data: bytes, file_name: str) -> bytes:
        """Convert *data* (named *file_name*) to PDF and return the PDF bytes.

        The input format is taken from *file_name*'s extension.

        Raises
        ------
        fileforge.utils.errors.ExternalServiceError
            If the provider is unconfigured or any remote step fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"cloudconvert"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured.

        Must not perform network I/O.
        """
