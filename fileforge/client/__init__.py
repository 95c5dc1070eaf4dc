"""Client for a running fileforge server."""

from fileforge.client.conversion_client import (
    ConversionClient,
    ConversionRequestError,
    to_file_object,
)

__all__ = ["ConversionClient", "ConversionRequestError", "to_file_object"]
