"""Public interface definitions for external collaborators.

Concrete adapters implement these ABCs and are injected at startup in
``fileforge/main.py``:

    Interface                      Concrete implementations
    ─────────────────────────────────────────────────────────
    IDocumentConversionProvider →  CloudConvertProvider
    IFileStore                  →  SQLiteFileStore
"""

from fileforge.interfaces.document_converter import IDocumentConversionProvider
from fileforge.interfaces.file_store import IFileStore

__all__ = [
    "IDocumentConversionProvider",
    "IFileStore",
]
