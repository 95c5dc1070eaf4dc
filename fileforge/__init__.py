"""fileforge: file-format conversion service.

Classifies uploaded files by MIME type, routes them to a conversion
strategy (passthrough, text extraction, placeholder PDF, or a remote
CloudConvert job) and returns a correctly typed binary result.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
