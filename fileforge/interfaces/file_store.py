"""Abstract base class for the per-user file store.

The dashboard keeps each user's files as a list of :class:`FileObject`
keyed by user id.  The conversion core never reads or writes it; clients
record finished conversions through this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from fileforge.models.conversion import FileObject


class IFileStore(ABC):
    """Key-value store of file lists keyed by user id."""

    @abstractmethod
    async def get_user_files(self, user_id: str) -> list[FileObject]:
        """Return the user's files, or an empty list for unknown users."""

    @abstractmethod
    async def update_user_files(self, user_id: str, files: list[FileObject]) -> None:
        """Replace the user's file list."""

    @abstractmethod
    async def add_file(self, user_id: str, file: FileObject) -> None:
        """Append *file* to the user's list."""

    @abstractmethod
    async def remove_file(self, user_id: str, file_id: str) -> bool:
        """Remove the file with *file_id*.  Returns ``False`` if it was absent."""
