"""Gemini embedding provider adapter.

Uses the Generative Language REST API through ``httpx``:

    POST {base}/models/gemini-embedding-001:batchEmbedContents
    x-goog-api-key: <GEMINI_API_KEY>

Each request carries the Gemini task type (``RETRIEVAL_DOCUMENT`` or
``RETRIEVAL_QUERY``) and ``outputDimensionality`` so the vectors match the
configured dimension.
"""

from __future__ import annotations

import httpx
import structlog

from docchat.config.settings import Settings
from docchat.interfaces.embedding_provider import EmbeddingRole, IEmbeddingProvider
from docchat.providers.embedding.normalize import normalize_vectors
from docchat.utils.errors import (
    EmbeddingBackendUnavailableError,
    EmbeddingRequestFailedError,
    OperationTimeoutError,
)

logger = structlog.get_logger(logger_name=__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
_GEMINI_BATCH_LIMIT = 100


class GeminiEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by Gemini ``batchEmbedContents``."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.gemini_api_key
        self._model = settings.gemini_embedding_model
        self._dimension = settings.embedding_dimensions
        self._timeout = settings.embedding_timeout
        self._http_client = http_client

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_batch(self, texts: list[str], role: EmbeddingRole) -> list[list[float]]:
        if not self._api_key:
            raise EmbeddingBackendUnavailableError(
                message="GEMINI_API_KEY is not set",
                provider_name=self.get_provider_name(),
            )
        if not texts:
            return []

        all_vectors: list[list[float]] = []
        for start in range(0, len(texts), _GEMINI_BATCH_LIMIT):
            batch = texts[start : start + _GEMINI_BATCH_LIMIT]
            body = {
                "requests": [
                    {
                        "model": f"models/{self._model}",
                        "content": {"parts": [{"text": text}]},
                        "taskType": role.value,
                        "outputDimensionality": self._dimension,
                    }
                    for text in batch
                ]
            }
            payload = await self._post(body)
            embeddings = payload.get("embeddings") or []
            all_vectors.extend(
                normalize_vectors(
                    [e.get("values") if isinstance(e, dict) else None for e in embeddings],
                    self._dimension,
                    self.get_provider_name(),
                )
            )
            logger.info(
                "gemini_embedding_batch",
                model=self._model,
                role=role.value,
                batch_size=len(batch),
            )
        return all_vectors

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"gemini:{self._model}"

    def is_available(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post(self, body: dict) -> dict:
        url = f"{GEMINI_API_BASE}/models/{self._model}:batchEmbedContents"
        headers = {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url, json=body, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise OperationTimeoutError(
                message=f"Gemini embeddings request timed out: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise EmbeddingRequestFailedError(
                message=f"Gemini embeddings error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.is_error:
            raise EmbeddingRequestFailedError(
                message=f"Gemini embeddings error: {response.status_code} {response.text}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
            )
        return response.json()
