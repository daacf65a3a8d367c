"""SQLite-backed document repository.

Stores one row per uploaded document in the ``documents`` table using
``aiosqlite``.  Status transitions are guarded in SQL: an update only
applies while the row is still ``processing``, so a document can never
leave a terminal state.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog

from docchat.interfaces.document_repository import IDocumentRepository
from docchat.models.document import Document, DocumentStatus, utc_now
from docchat.utils.errors import DocumentNotFoundError, DocumentStateError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/docchat.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    document_id TEXT    PRIMARY KEY,
    filename    TEXT    NOT NULL,
    media_type  TEXT    NOT NULL,
    size_bytes  INTEGER NOT NULL DEFAULT 0,
    status      TEXT    NOT NULL DEFAULT 'processing',
    chunk_count INTEGER NOT NULL DEFAULT 0,
    error       TEXT,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_documents_status ON documents(status);",
]

_COLUMNS = (
    "document_id, filename, media_type, size_bytes, status, chunk_count, "
    "error, created_at, updated_at"
)

_INSERT_SQL = f"INSERT INTO documents ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);"

_SELECT_SQL = f"SELECT {_COLUMNS} FROM documents WHERE document_id = ?;"

_LIST_SQL = f"SELECT {_COLUMNS} FROM documents ORDER BY created_at DESC;"

_TRANSITION_SQL = """\
UPDATE documents
SET status = ?, chunk_count = ?, error = ?, updated_at = ?
WHERE document_id = ? AND status = 'processing';
"""


def _ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


class SQLiteDocumentRepository(IDocumentRepository):
    """Document lifecycle records in the shared SQLite file."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the documents table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    async def create(self, filename: str, media_type: str, size_bytes: int) -> Document:
        now = utc_now()
        document = Document(
            document_id=uuid.uuid4().hex,
            filename=filename,
            media_type=media_type,
            size_bytes=size_bytes,
            status=DocumentStatus.PROCESSING,
            created_at=now,
            updated_at=now,
        )
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _INSERT_SQL,
                (
                    document.document_id,
                    document.filename,
                    document.media_type,
                    document.size_bytes,
                    document.status.value,
                    document.chunk_count,
                    document.error,
                    _ts(document.created_at),
                    _ts(document.updated_at),
                ),
            )
            await db.commit()
        logger.info(
            "document_created",
            document_id=document.document_id,
            filename=filename,
            media_type=media_type,
            size_bytes=size_bytes,
        )
        return document

    async def get(self, document_id: str) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_SQL, (document_id,))
            row = await cursor.fetchone()
        return self._row_to_document(row) if row else None

    async def list_all(self) -> list[Document]:
        """Return all documents, newest first."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_LIST_SQL)
            rows = await cursor.fetchall()
        return [self._row_to_document(r) for r in rows]

    async def mark_ready(self, document_id: str, chunk_count: int) -> Document:
        return await self._transition(document_id, DocumentStatus.READY, chunk_count, None)

    async def mark_failed(self, document_id: str, error: str, chunk_count: int = 0) -> Document:
        return await self._transition(document_id, DocumentStatus.FAILED, chunk_count, error)

    async def delete(self, document_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("DELETE FROM documents WHERE document_id = ?", (document_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("document_deleted", document_id=document_id)
        return deleted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _transition(
        self,
        document_id: str,
        status: DocumentStatus,
        chunk_count: int,
        error: str | None,
    ) -> Document:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                _TRANSITION_SQL,
                (status.value, chunk_count, error, _ts(utc_now()), document_id),
            )
            await db.commit()
            updated = cursor.rowcount

        document = await self.get(document_id)
        if document is None:
            raise DocumentNotFoundError(provider_name="sqlite")
        if updated == 0:
            raise DocumentStateError(
                message=(
                    f"Document {document_id} is {document.status.value}; "
                    f"cannot move to {status.value}"
                ),
                provider_name="sqlite",
            )
        logger.info(
            "document_status_changed",
            document_id=document_id,
            status=status.value,
            chunk_count=chunk_count,
        )
        return document

    @staticmethod
    def _row_to_document(row: aiosqlite.Row) -> Document:
        return Document(
            document_id=row["document_id"],
            filename=row["filename"],
            media_type=row["media_type"],
            size_bytes=row["size_bytes"],
            status=DocumentStatus(row["status"]),
            chunk_count=row["chunk_count"],
            error=row["error"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
