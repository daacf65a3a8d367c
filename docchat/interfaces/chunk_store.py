"""Abstract base class for chunk stores.

A chunk store persists :class:`~docchat.models.chunk.ChunkRecord` objects
(text + embedding + provenance) and answers two kinds of query: vector
similarity and a recency-ordered regex match used as the lexical fallback.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docchat.models.chunk import ChunkRecord


# Concrete implementations: ChromaDBChunkStore (vector + lexical),
# SQLiteChunkStore (lexical only).
# Located in: docchat/providers/chunk_store/
class IChunkStore(ABC):
    """Contract for chunk persistence and retrieval."""

    @abstractmethod
    async def ensure_index(self) -> None:
        """Create the backing collection/index if it does not exist yet.

        Called once at startup.  Idempotent: an existing index of the
        configured name is left untouched.  A backend that cannot host a
        vector index logs a warning and returns normally.
        """

    @abstractmethod
    async def insert(self, chunk: ChunkRecord) -> str:
        """Persist one chunk and return its id.

        Raises
        ------
        docchat.utils.errors.ChunkStoreError
            If the write fails.
        """

    @abstractmethod
    async def delete_by_document(self, document_id: str) -> int:
        """Delete every chunk owned by *document_id*; return how many were removed."""

    @abstractmethod
    async def count_by_document(self, document_id: str) -> int:
        """Return the number of chunks owned by *document_id*."""

    @abstractmethod
    async def similarity_search(self, query_vector: list[float], k: int) -> list[ChunkRecord]:
        """Return up to *k* chunks nearest to *query_vector* (cosine), nearest first.

        Raises
        ------
        docchat.utils.errors.VectorIndexUnsupportedError
            If the store has no vector index.  Callers treat this as an
            empty result.
        """

    @abstractmethod
    async def lexical_search(self, pattern: str, k: int) -> list[ChunkRecord]:
        """Return up to *k* chunks whose text matches *pattern*, newest first.

        *pattern* is a regular expression matched case-insensitively
        anywhere in the chunk text.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""
