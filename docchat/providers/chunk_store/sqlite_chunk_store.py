"""SQLite-backed chunk store (lexical only).

Persists chunks to a local SQLite database with ``aiosqlite``.  SQLite
has no vector index, so :meth:`SQLiteChunkStore.similarity_search` always
raises :class:`VectorIndexUnsupportedError` and retrieval runs on the
lexical fallback alone.  Embeddings are still stored (as JSON) so the
corpus can be migrated to a vector backend without re-embedding.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog

from docchat.interfaces.chunk_store import IChunkStore
from docchat.models.chunk import ChunkRecord
from docchat.utils.errors import ChunkStoreError, VectorIndexUnsupportedError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/docchat.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS chunks (
    chunk_id       TEXT PRIMARY KEY,
    document_id    TEXT NOT NULL,
    text           TEXT NOT NULL,
    embedding_json TEXT NOT NULL DEFAULT '[]',
    metadata_json  TEXT NOT NULL DEFAULT '{}',
    created_at     TEXT NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_created ON chunks(created_at);",
]

_INSERT_SQL = """\
INSERT OR REPLACE INTO chunks
    (chunk_id, document_id, text, embedding_json, metadata_json, created_at)
VALUES (?, ?, ?, ?, ?, ?);
"""

_LEXICAL_SQL = """\
SELECT chunk_id, document_id, text, embedding_json, metadata_json, created_at
FROM chunks
WHERE text REGEXP ?
ORDER BY created_at DESC
LIMIT ?;
"""


def _regexp(pattern: str, value: str | None) -> bool:
    if value is None:
        return False
    return re.search(pattern, value, re.IGNORECASE) is not None


class SQLiteChunkStore(IChunkStore):
    """Chunk persistence in a ``chunks`` table of the shared SQLite file."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def ensure_index(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.warning(
            "vector_index_unsupported",
            store=self.get_provider_name(),
            detail="SQLite has no vector index; retrieval uses lexical matching only",
        )

    async def insert(self, chunk: ChunkRecord) -> str:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    _INSERT_SQL,
                    (
                        chunk.chunk_id,
                        chunk.document_id,
                        chunk.text,
                        json.dumps(chunk.embedding),
                        json.dumps(chunk.metadata),
                        chunk.created_at.isoformat(timespec="microseconds"),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise ChunkStoreError(
                message=f"SQLite chunk insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return chunk.chunk_id

    async def delete_by_document(self, document_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
            await db.commit()
            deleted = cursor.rowcount
        logger.info("sqlite_delete_by_document", document_id=document_id, deleted_count=deleted)
        return deleted

    async def count_by_document(self, document_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM chunks WHERE document_id = ?", (document_id,)
            )
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def similarity_search(self, query_vector: list[float], k: int) -> list[ChunkRecord]:
        raise VectorIndexUnsupportedError(provider_name=self.get_provider_name())

    async def lexical_search(self, pattern: str, k: int) -> list[ChunkRecord]:
        if k <= 0:
            return []
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.create_function("REGEXP", 2, _regexp, deterministic=True)
                cursor = await db.execute(_LEXICAL_SQL, (pattern, k))
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise ChunkStoreError(
                message=f"SQLite lexical scan failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return [self._row_to_record(row) for row in rows]

    def get_provider_name(self) -> str:
        return "sqlite"

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> ChunkRecord:
        return ChunkRecord(
            chunk_id=row["chunk_id"],
            document_id=row["document_id"],
            text=row["text"],
            embedding=json.loads(row["embedding_json"]),
            metadata=json.loads(row["metadata_json"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
