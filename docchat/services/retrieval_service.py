"""Context retrieval for chat turns: vector search with a lexical fallback.

The query is embedded with the QUERY role and matched against the chunk
store by cosine similarity.  When that yields nothing (an empty corpus, a
dimension mismatch, or a store without a vector index) the query is
reduced to its significant keywords and the store is scanned for chunks
mentioning any of them, newest first.

"No results" is never an error here; only embedding failures and
timeouts propagate.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from docchat.models.chunk import ChunkRecord, RetrievedContext
from docchat.utils.concurrency import bounded
from docchat.utils.errors import VectorIndexUnsupportedError

if TYPE_CHECKING:
    from docchat.interfaces.chunk_store import IChunkStore
    from docchat.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)

STOPWORDS: frozenset[str] = frozenset(
    {"the", "and", "for", "with", "book", "price", "how", "much", "what", "are", "is", "about"}
)

_TOKEN_PATTERN = re.compile(r"[a-z0-9']{3,}")


def extract_keywords(query: str, stopwords: Iterable[str] = STOPWORDS) -> list[str]:
    """Return the query's significant tokens, first occurrence order, no repeats."""
    blocked = set(stopwords)
    seen: dict[str, None] = {}
    for token in _TOKEN_PATTERN.findall((query or "").lower()):
        if token not in blocked:
            seen.setdefault(token, None)
    return list(seen)


def build_lexical_pattern(query: str, stopwords: Iterable[str] = STOPWORDS) -> str | None:
    """Build a case-insensitive OR pattern of the query's keywords, or ``None``."""
    keywords = extract_keywords(query, stopwords)
    if not keywords:
        return None
    return "|".join(re.escape(k) for k in keywords)


class RetrievalService:
    """Finds the chunks most relevant to a user query.

    Parameters
    ----------
    embedding_provider:
        Embeds the query text.
    chunk_store:
        Source of candidate chunks.
    top_k:
        Default number of chunks to return.
    extra_stopwords:
        Added to :data:`STOPWORDS` for the lexical fallback.
    embedding_timeout, search_timeout:
        Deadlines in seconds for the query embedding and each store search.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        chunk_store: IChunkStore,
        top_k: int = 8,
        extra_stopwords: Iterable[str] = (),
        embedding_timeout: float | None = 30.0,
        search_timeout: float | None = 10.0,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._chunk_store = chunk_store
        self._top_k = top_k
        self._stopwords = STOPWORDS | {w.lower() for w in extra_stopwords}
        self._embedding_timeout = embedding_timeout
        self._search_timeout = search_timeout
        self._vector_unsupported_logged = False

    async def retrieve(self, query: str, k: int | None = None) -> list[RetrievedContext]:
        """Return up to *k* context chunks for *query* (default ``top_k``)."""
        limit = self._top_k if k is None else k
        if limit <= 0:
            return []

        vector = await bounded(
            self._embedding_provider.embed_query(query),
            self._embedding_timeout,
            "query_embedding",
        )

        records = await self._vector_search(vector, limit)
        strategy = "vector"
        if not records:
            strategy = "lexical"
            records = await self._lexical_search(query, limit)

        logger.info(
            "context_retrieved",
            strategy=strategy,
            results=len(records),
            k=limit,
            query_length=len(query),
        )
        return [RetrievedContext.from_record(r) for r in records]

    def build_lexical_pattern(self, query: str) -> str | None:
        """Lexical fallback pattern using this service's stop-word list."""
        return build_lexical_pattern(query, self._stopwords)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _vector_search(self, vector: list[float], limit: int) -> list[ChunkRecord]:
        try:
            return await bounded(
                self._chunk_store.similarity_search(vector, limit),
                self._search_timeout,
                "similarity_search",
            )
        except VectorIndexUnsupportedError:
            if not self._vector_unsupported_logged:
                logger.info(
                    "vector_search_unavailable",
                    store=self._chunk_store.get_provider_name(),
                    fallback="lexical",
                )
                self._vector_unsupported_logged = True
            return []

    async def _lexical_search(self, query: str, limit: int) -> list[ChunkRecord]:
        pattern = self.build_lexical_pattern(query)
        if pattern is None:
            logger.debug("lexical_fallback_skipped", reason="no_keywords")
            return []
        return await bounded(
            self._chunk_store.lexical_search(pattern, limit),
            self._search_timeout,
            "lexical_search",
        )
