"""Chunk store implementations, selected by ``CHUNK_STORE_BACKEND``."""

from docchat.providers.chunk_store.chromadb_chunk_store import ChromaDBChunkStore
from docchat.providers.chunk_store.sqlite_chunk_store import SQLiteChunkStore

__all__ = ["ChromaDBChunkStore", "SQLiteChunkStore"]
