"""Voyage AI embedding provider adapter.

Calls the Voyage REST endpoint directly with ``httpx`` (no SDK):

    POST https://api.voyageai.com/v1/embeddings
    Authorization: Bearer <VOYAGE_API_KEY>
    {"model": "voyage-4-large", "input": [...]}

Only ``model`` and ``input`` are sent; the response's ``data[].embedding``
arrays are returned in input order.
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

_VOYAGE_URL = "https://api.voyageai.com/v1/embeddings"
_VOYAGE_BATCH_LIMIT = 128


class VoyageEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by the Voyage AI embeddings API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.voyage_api_key
        self._model = settings.voyage_embedding_model
        self._dimension = settings.embedding_dimensions
        self._timeout = settings.embedding_timeout
        self._http_client = http_client

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_batch(self, texts: list[str], role: EmbeddingRole) -> list[list[float]]:
        if not self._api_key:
            raise EmbeddingBackendUnavailableError(
                message="VOYAGE_API_KEY is not set",
                provider_name=self.get_provider_name(),
            )
        if not texts:
            return []

        all_vectors: list[list[float]] = []
        for start in range(0, len(texts), _VOYAGE_BATCH_LIMIT):
            batch = texts[start : start + _VOYAGE_BATCH_LIMIT]
            payload = await self._post({"model": self._model, "input": batch})
            data = sorted(payload.get("data") or [], key=lambda item: item.get("index", 0))
            all_vectors.extend(
                normalize_vectors(
                    [item.get("embedding") for item in data],
                    self._dimension,
                    self.get_provider_name(),
                )
            )
            logger.info(
                "voyage_embedding_batch",
                model=self._model,
                role=role.value,
                batch_size=len(batch),
                tokens=(payload.get("usage") or {}).get("total_tokens"),
            )
        return all_vectors

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"voyage:{self._model}"

    def is_available(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post(self, body: dict) -> dict:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    _VOYAGE_URL, json=body, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(_VOYAGE_URL, json=body, headers=headers)
        except httpx.TimeoutException as exc:
            raise OperationTimeoutError(
                message=f"Voyage embeddings request timed out: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise EmbeddingRequestFailedError(
                message=f"Voyage embeddings error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.is_error:
            raise EmbeddingRequestFailedError(
                message=f"Voyage embeddings error: {response.status_code} {response.text}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
            )
        return response.json()
