"""CloudConvert document conversion provider."""

from fileforge.providers.cloudconvert.cloudconvert_provider import CloudConvertProvider

__all__ = ["CloudConvertProvider"]
