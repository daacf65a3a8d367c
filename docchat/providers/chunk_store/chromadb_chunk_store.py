"""ChromaDB chunk store adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IChunkStore`.
Vectors are stored in a cosine-distance HNSW collection; chunk text goes
in the collection's ``documents`` and provenance in flattened scalar
``metadatas`` (``document_id`` and ``created_at`` are reserved keys).

All chromadb calls are synchronous, so each one is pushed onto a worker
thread with :func:`~docchat.utils.concurrency.run_blocking`.
"""

from __future__ import annotations

import os
import re
from datetime import datetime
from typing import Any

# ChromaDB's bundled PostHog client must be silenced before import.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from docchat.interfaces.chunk_store import IChunkStore
from docchat.models.chunk import ChunkMetadata, ChunkRecord
from docchat.utils.concurrency import run_blocking
from docchat.utils.errors import ChunkStoreError

logger = structlog.get_logger(logger_name=__name__)

_RESERVED_KEYS = ("document_id", "created_at")
_SCAN_PAGE_SIZE = 500


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that is never called.

    Every vector is computed by the configured embedding provider and
    passed explicitly, so ChromaDB must not load its default ONNX model.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError("docchat passes pre-computed embeddings to ChromaDB")

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBChunkStore(IChunkStore):
    """Chunk store backed by a local persistent ChromaDB collection."""

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "rag_chunks",
        client: Any | None = None,
        scan_page_size: int = _SCAN_PAGE_SIZE,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._scan_page_size = max(1, scan_page_size)
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collection: Any | None = None

    # ------------------------------------------------------------------
    # Index management
    # ------------------------------------------------------------------

    async def ensure_index(self) -> None:
        await run_blocking(self._ensure_collection, operation="chromadb_ensure_index")

    def _ensure_collection(self) -> Any:
        if self._collection is not None:
            return self._collection

        existing = {
            c if isinstance(c, str) else getattr(c, "name", str(c))
            for c in self._client.list_collections()
        }
        if self._collection_name in existing:
            logger.info("chunk_index_exists", collection=self._collection_name)
            try:
                self._collection = self._client.get_collection(
                    name=self._collection_name,
                    embedding_function=_NoopEmbeddingFunction(),
                )
            except ValueError:
                # Collection persisted with a different embedding function.
                self._collection = self._client.get_collection(name=self._collection_name)
            return self._collection

        try:
            self._collection = self._client.create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        logger.info("chunk_index_created", collection=self._collection_name, space="cosine")
        return self._collection

    # ------------------------------------------------------------------
    # IChunkStore implementation
    # ------------------------------------------------------------------

    async def insert(self, chunk: ChunkRecord) -> str:
        def _add() -> None:
            collection = self._ensure_collection()
            collection.upsert(
                ids=[chunk.chunk_id],
                embeddings=[chunk.embedding],
                documents=[chunk.text],
                metadatas=[self._to_metadata(chunk)],
            )

        try:
            await run_blocking(_add, operation="chromadb_insert")
        except Exception as exc:
            raise ChunkStoreError(
                message=f"ChromaDB insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return chunk.chunk_id

    async def delete_by_document(self, document_id: str) -> int:
        def _delete() -> int:
            collection = self._ensure_collection()
            existing = collection.get(where={"document_id": document_id}, include=["metadatas"])
            ids = existing.get("ids") or []
            if ids:
                collection.delete(ids=ids)
            return len(ids)

        try:
            count = await run_blocking(_delete, operation="chromadb_delete")
        except Exception as exc:
            raise ChunkStoreError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_delete_by_document", document_id=document_id, deleted_count=count)
        return count

    async def count_by_document(self, document_id: str) -> int:
        def _count() -> int:
            collection = self._ensure_collection()
            existing = collection.get(where={"document_id": document_id}, include=["metadatas"])
            return len(existing.get("ids") or [])

        try:
            return await run_blocking(_count, operation="chromadb_count")
        except Exception as exc:
            raise ChunkStoreError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def similarity_search(self, query_vector: list[float], k: int) -> list[ChunkRecord]:
        """Nearest-neighbour query over the cosine collection.

        A query vector whose dimension differs from the stored vectors
        yields an empty result (logged) rather than an error.
        """
        if k <= 0 or not query_vector:
            return []

        def _query() -> list[ChunkRecord]:
            collection = self._ensure_collection()
            total = collection.count()
            if total == 0:
                return []
            results = collection.query(
                query_embeddings=[query_vector],
                n_results=min(k, total),
                include=["documents", "metadatas"],
            )
            ids = (results.get("ids") or [[]])[0]
            documents = (results.get("documents") or [[]])[0]
            metadatas = (results.get("metadatas") or [[]])[0] or [{}] * len(ids)
            return [
                self._from_row(chunk_id, text, meta)
                for chunk_id, text, meta in zip(ids, documents, metadatas, strict=True)
                if text
            ]

        try:
            records = await run_blocking(_query, operation="chromadb_similarity_search")
        except Exception as exc:
            if "dimension" in str(exc).lower():
                logger.warning(
                    "query_dimension_mismatch",
                    collection=self._collection_name,
                    query_dim=len(query_vector),
                    error=str(exc),
                )
                return []
            raise ChunkStoreError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("chromadb_similarity_search", k=k, results_count=len(records))
        return records

    async def lexical_search(self, pattern: str, k: int) -> list[ChunkRecord]:
        if k <= 0:
            return []
        regex = re.compile(pattern, re.IGNORECASE)

        def _scan() -> list[ChunkRecord]:
            # Paged so only matching rows are held in memory.
            collection = self._ensure_collection()
            found: list[ChunkRecord] = []
            offset = 0
            while True:
                page = collection.get(
                    include=["documents", "metadatas"],
                    limit=self._scan_page_size,
                    offset=offset,
                )
                ids = page.get("ids") or []
                if not ids:
                    break
                documents = page.get("documents") or [""] * len(ids)
                metadatas = page.get("metadatas") or [{}] * len(ids)
                found.extend(
                    self._from_row(chunk_id, text, meta)
                    for chunk_id, text, meta in zip(ids, documents, metadatas, strict=True)
                    if text and regex.search(text)
                )
                if len(ids) < self._scan_page_size:
                    break
                offset += len(ids)
            return found

        try:
            matches = await run_blocking(_scan, operation="chromadb_lexical_search")
        except Exception as exc:
            raise ChunkStoreError(
                message=f"ChromaDB lexical scan failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        matches.sort(key=lambda r: r.created_at, reverse=True)
        return matches[:k]

    def get_provider_name(self) -> str:
        return "chromadb"

    # ------------------------------------------------------------------
    # Metadata translation
    # ------------------------------------------------------------------

    @staticmethod
    def _to_metadata(chunk: ChunkRecord) -> dict[str, Any]:
        meta: dict[str, Any] = {
            key: value for key, value in chunk.metadata.items() if key not in _RESERVED_KEYS
        }
        meta["document_id"] = chunk.document_id
        meta["created_at"] = chunk.created_at.isoformat(timespec="microseconds")
        return meta

    @staticmethod
    def _from_row(chunk_id: str, text: str, meta: dict[str, Any] | None) -> ChunkRecord:
        meta = dict(meta or {})
        document_id = str(meta.pop("document_id", ""))
        created_raw = meta.pop("created_at", None)
        extra: dict[str, Any] = {}
        if created_raw:
            extra["created_at"] = datetime.fromisoformat(str(created_raw))
        metadata: ChunkMetadata = {
            key: value
            for key, value in meta.items()
            if isinstance(value, (str, int, float, bool))
        }
        return ChunkRecord(
            chunk_id=chunk_id,
            document_id=document_id,
            text=text,
            metadata=metadata,
            **extra,
        )
