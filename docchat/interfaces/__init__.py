"""Public interface definitions for every external service and store.

Business logic talks to these abstract base classes only; concrete adapters
in ``docchat/providers/`` are selected in ``docchat/main.py`` and injected.

    Interface              ->  Concrete implementations
    ------------------------------------------------------------------
    IEmbeddingProvider     ->  VoyageEmbeddingProvider, OpenAIEmbeddingProvider,
                               GeminiEmbeddingProvider
    ILLMProvider           ->  GeminiLLMProvider, OpenAILLMProvider,
                               AnthropicLLMProvider
    IChunkStore            ->  ChromaDBChunkStore, SQLiteChunkStore
    IDocumentRepository    ->  SQLiteDocumentRepository
    ISessionStore          ->  SQLiteSessionStore
"""

from docchat.interfaces.chunk_store import IChunkStore
from docchat.interfaces.document_repository import IDocumentRepository
from docchat.interfaces.embedding_provider import EmbeddingRole, IEmbeddingProvider
from docchat.interfaces.llm_provider import ILLMProvider
from docchat.interfaces.session_store import ISessionStore

__all__ = [
    "EmbeddingRole",
    "IChunkStore",
    "IDocumentRepository",
    "IEmbeddingProvider",
    "ILLMProvider",
    "ISessionStore",
]
