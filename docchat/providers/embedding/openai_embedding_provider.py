"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports real OpenAI and OpenAI-compatible hosts via ``openai_base_url``.
For ``text-embedding-3-*`` models the configured dimension is requested
explicitly so vectors line up with the chunk store.
"""

from __future__ import annotations

import openai
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

_OPENAI_BATCH_LIMIT = 2048

# Models that accept the ``dimensions`` request parameter.
_SHORTENABLE_PREFIX = "text-embedding-3"


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._base_url = settings.openai_base_url
        self._model = settings.openai_embedding_model
        self._dimension = settings.embedding_dimensions
        self._timeout = settings.embedding_timeout
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )
        self._client: openai.AsyncOpenAI | None = None

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_batch(self, texts: list[str], role: EmbeddingRole) -> list[list[float]]:
        """Embed *texts*, splitting into batches of 2048 per API call.

        OpenAI embeddings are symmetric, so *role* is only logged.
        """
        if not self._api_key:
            raise EmbeddingBackendUnavailableError(
                message="OPENAI_API_KEY is not set",
                provider_name=self.get_provider_name(),
            )
        if not texts:
            return []

        client = self._get_client()
        extra: dict = {}
        if self._model.startswith(_SHORTENABLE_PREFIX):
            extra["dimensions"] = self._dimension

        all_vectors: list[list[float]] = []
        try:
            for start in range(0, len(texts), _OPENAI_BATCH_LIMIT):
                batch = texts[start : start + _OPENAI_BATCH_LIMIT]
                response = await client.embeddings.create(input=batch, model=self._model, **extra)
                all_vectors.extend(
                    normalize_vectors(
                        [item.embedding for item in response.data],
                        self._dimension,
                        self.get_provider_name(),
                    )
                )
                logger.info(
                    "openai_embedding_batch",
                    model=self._model,
                    provider=self._provider_label,
                    role=role.value,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
        except openai.APITimeoutError as exc:
            raise OperationTimeoutError(
                message=f"{self._provider_label} request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIStatusError as exc:
            raise EmbeddingRequestFailedError(
                message=f"{self._provider_label} API error: {exc.status_code} {exc.message}",
                provider_name=self.get_provider_name(),
                status_code=exc.status_code,
            ) from exc
        except openai.APIError as exc:
            raise EmbeddingRequestFailedError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return all_vectors

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"{self._provider_label}:{self._model}"

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": openai.Timeout(self._timeout, connect=5.0),
            }
            if self._base_url:
                client_kwargs["base_url"] = self._base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)
        return self._client
