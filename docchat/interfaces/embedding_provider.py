"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into embedding vectors.  Concrete
adapters wrap Voyage AI, Gemini or an OpenAI-compatible embeddings API;
the active one is chosen once at startup (see ``docchat.main``) and
injected wherever vectors are needed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class EmbeddingRole(str, Enum):
    """What the text will be used for; some backends embed the two differently."""

    DOCUMENT = "RETRIEVAL_DOCUMENT"
    QUERY = "RETRIEVAL_QUERY"


# Concrete implementations:
#   VoyageEmbeddingProvider  -- voyage-4-large over httpx (default)
#   OpenAIEmbeddingProvider  -- text-embedding-3-* via the openai SDK
#   GeminiEmbeddingProvider  -- gemini-embedding-001 over httpx
# Located in: docchat/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by ingestion and retrieval."""

    @abstractmethod
    async def embed_batch(self, texts: list[str], role: EmbeddingRole) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.
        role:
            :attr:`EmbeddingRole.DOCUMENT` for indexed passages,
            :attr:`EmbeddingRole.QUERY` for search queries.

        Returns
        -------
        list[list[float]]
            Vectors corresponding positionally to *texts*.  A vector whose
            length differs from :meth:`get_dimension` is returned as-is,
            never padded or truncated.

        Raises
        ------
        docchat.utils.errors.EmbeddingBackendUnavailableError
            If the backend's credentials are not configured.
        docchat.utils.errors.EmbeddingRequestFailedError
            If the backend answers with a non-success response.
        docchat.utils.errors.OperationTimeoutError
            If the request exceeds its deadline.
        """

    async def embed_document(self, text: str) -> list[float]:
        """Embed one passage for indexing."""
        vectors = await self.embed_batch([text], EmbeddingRole.DOCUMENT)
        return vectors[0] if vectors else []

    async def embed_query(self, text: str) -> list[float]:
        """Embed one search query."""
        vectors = await self.embed_batch([text], EmbeddingRole.QUERY)
        return vectors[0] if vectors else []

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the configured vector dimension D."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"voyage:voyage-4-large"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present (no request is made)."""
