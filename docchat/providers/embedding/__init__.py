"""Embedding provider implementations.

Three interchangeable implementations of IEmbeddingProvider, selected by
``EMBEDDING_PROVIDER``:

    voyage  -- VoyageEmbeddingProvider (default), voyage-4-large, 1024 dims
    openai  -- OpenAIEmbeddingProvider, text-embedding-3-* shortened to D
    gemini  -- GeminiEmbeddingProvider, gemini-embedding-001 with task types
"""

from docchat.providers.embedding.gemini_embedding_provider import GeminiEmbeddingProvider
from docchat.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docchat.providers.embedding.voyage_embedding_provider import VoyageEmbeddingProvider

__all__ = ["GeminiEmbeddingProvider", "OpenAIEmbeddingProvider", "VoyageEmbeddingProvider"]
