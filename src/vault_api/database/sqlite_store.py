"""
SQLite-backed metadata store for file records.

One connection per call, closed in `finally`.
"""

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from vault_api.database.base import MetadataStore
from vault_api.errors import DbError
from vault_api.schemas import FileRecord, FileRecordDraft

logger = logging.getLogger(__name__)

RECORD_COLUMNS = "id, owner_id, name, size, type, url, storage_path, created_at"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_record(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        id=row["id"],
        owner_id=row["owner_id"],
        display_name=row["name"],
        byte_size=row["size"],
        content_class=row["type"],
        access_url=row["url"],
        storage_key=row["storage_path"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLiteMetadataStore(MetadataStore):
    """File records kept in the `media_files` table.

    Listing order is `created_at` descending; records sharing a timestamp are
    returned most recently inserted first, using the `seq` column.
    """

    def __init__(self, db_path: str = "vault.db", timeout: float = 5.0,
                 clock: Optional[Callable[[], datetime]] = None):
        self.db_path = db_path
        self.timeout = timeout
        self._clock = clock or _utcnow

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    def init_schema(self) -> None:
        """Create the records table and its indexes if missing."""
        conn = None
        try:
            conn = self._get_connection()
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS media_files (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id VARCHAR(32) UNIQUE NOT NULL,
                    owner_id VARCHAR(64) NOT NULL,
                    name VARCHAR(255) NOT NULL,
                    size BIGINT NOT NULL,
                    type VARCHAR(20) NOT NULL,       -- image, video, document
                    url TEXT NOT NULL,
                    storage_path VARCHAR(500) UNIQUE NOT NULL,
                    created_at TIMESTAMP NOT NULL    -- ISO-8601, UTC, microseconds
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_media_files_owner_created
                ON media_files(owner_id, created_at)
            ''')
            conn.commit()
            logger.info(f"Metadata store initialized at {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Error initializing metadata store: {e}")
            raise DbError(f"Failed to initialize metadata store: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def insert(self, draft: FileRecordDraft) -> FileRecord:
        record_id = uuid.uuid4().hex
        created_at = self._clock().astimezone(timezone.utc).isoformat(timespec="microseconds")
        conn = None
        try:
            conn = self._get_connection()
            conn.execute(
                f'INSERT INTO media_files ({RECORD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)',
                (
                    record_id,
                    draft.owner_id,
                    draft.display_name,
                    draft.byte_size,
                    draft.content_class.value,
                    draft.access_url,
                    draft.storage_key,
                    created_at,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error inserting record for '{draft.storage_key}': {e}")
            raise DbError(f"Failed to save file record: {e}") from e
        finally:
            if conn is not None:
                conn.close()

        return FileRecord(
            id=record_id,
            created_at=datetime.fromisoformat(created_at),
            **draft.model_dump(),
        )

    def find_by_id(self, record_id: str) -> Optional[FileRecord]:
        conn = None
        try:
            conn = self._get_connection()
            row = conn.execute(
                f'SELECT {RECORD_COLUMNS} FROM media_files WHERE id = ?', (record_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise DbError(f"Failed to look up file record: {e}") from e
        finally:
            if conn is not None:
                conn.close()
        return _row_to_record(row) if row else None

    def list_by_owner(self, owner_id: str) -> List[FileRecord]:
        conn = None
        try:
            conn = self._get_connection()
            rows = conn.execute(
                f'''
                SELECT {RECORD_COLUMNS} FROM media_files
                WHERE owner_id = ?
                ORDER BY created_at DESC, seq DESC
                ''',
                (owner_id,),
            ).fetchall()
        except sqlite3.Error as e:
            raise DbError(f"Failed to list file records: {e}") from e
        finally:
            if conn is not None:
                conn.close()
        return [_row_to_record(row) for row in rows]

    def delete_by_id(self, record_id: str) -> None:
        conn = None
        try:
            conn = self._get_connection()
            conn.execute('DELETE FROM media_files WHERE id = ?', (record_id,))
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error deleting record {record_id}: {e}")
            raise DbError(f"Failed to delete file record: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def list_all(self) -> List[FileRecord]:
        conn = None
        try:
            conn = self._get_connection()
            rows = conn.execute(f'SELECT {RECORD_COLUMNS} FROM media_files ORDER BY seq').fetchall()
        except sqlite3.Error as e:
            raise DbError(f"Failed to list file records: {e}") from e
        finally:
            if conn is not None:
                conn.close()
        return [_row_to_record(row) for row in rows]

    def ping(self) -> None:
        conn = None
        try:
            conn = self._get_connection()
            conn.execute('SELECT 1 FROM media_files LIMIT 1').fetchall()
        except sqlite3.Error as e:
            raise DbError(f"Metadata store is not reachable: {e}") from e
        finally:
            if conn is not None:
                conn.close()
