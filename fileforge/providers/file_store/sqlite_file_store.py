"""SQLite-backed per-user file store.

Each user's dashboard list is one row holding the camelCase JSON array the
browser client reads.  Uses sync ``sqlite3``: every call touches one small
row, so the event loop is blocked only briefly.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import structlog
from pydantic import TypeAdapter

from fileforge.interfaces.file_store import IFileStore
from fileforge.models.conversion import FileObject
from fileforge.utils.logging import get_logger

_FILE_LIST = TypeAdapter(list[FileObject])

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS user_files (
    user_id    TEXT PRIMARY KEY,
    files_json TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO user_files (user_id, files_json)
VALUES (?, ?)
ON CONFLICT(user_id)
DO UPDATE SET files_json = excluded.files_json,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT files_json FROM user_files WHERE user_id = ?;"


class SQLiteFileStore(IFileStore):
    """:class:`IFileStore` persisted to a SQLite database on disk.

    Parameters
    ----------
    db_path:
        Database file; parent directories are created by :meth:`initialize`.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def initialize(self) -> None:
        """Create the table.  Must be called once before use."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute(_CREATE_TABLE_SQL)
            conn.commit()
        finally:
            conn.close()
        self._logger.debug("file_store_initialized", db_path=str(self._db_path))

    async def get_user_files(self, user_id: str) -> list[FileObject]:
        return self._load(user_id)

    async def update_user_files(self, user_id: str, files: list[FileObject]) -> None:
        self._save(user_id, files)
        self._logger.debug("user_files_updated", user_id=user_id, count=len(files))

    async def add_file(self, user_id: str, file: FileObject) -> None:
        files = self._load(user_id)
        files.append(file)
        self._save(user_id, files)
        self._logger.debug("user_file_added", user_id=user_id, file_id=file.id, name=file.name)

    async def remove_file(self, user_id: str, file_id: str) -> bool:
        files = self._load(user_id)
        remaining = [f for f in files if f.id != file_id]
        if len(remaining) == len(files):
            return False
        self._save(user_id, remaining)
        self._logger.debug("user_file_removed", user_id=user_id, file_id=file_id)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _load(self, user_id: str) -> list[FileObject]:
        conn = self._connect()
        try:
            row = conn.execute(_SELECT_SQL, (user_id,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return []
        return _FILE_LIST.validate_json(row[0])

    def _save(self, user_id: str, files: list[FileObject]) -> None:
        files_json = _FILE_LIST.dump_json(list(files), by_alias=True).decode("utf-8")
        conn = self._connect()
        try:
            conn.execute(_UPSERT_SQL, (user_id, files_json))
            conn.commit()
        finally:
            conn.close()
