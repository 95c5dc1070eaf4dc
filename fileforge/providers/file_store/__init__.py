"""File store providers."""

from fileforge.providers.file_store.sqlite_file_store import SQLiteFileStore

__all__ = ["SQLiteFileStore"]
