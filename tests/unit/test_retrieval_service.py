"""Unit tests for context retrieval and the lexical fallback."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from docchat.models.chunk import ChunkRecord
from docchat.services.retrieval_service import (
    RetrievalService,
    build_lexical_pattern,
    extract_keywords,
)
from docchat.utils.errors import EmbeddingRequestFailedError, VectorIndexUnsupportedError


def _record(text: str, document_id: str = "doc-1") -> ChunkRecord:
    return ChunkRecord(
        chunk_id=f"chunk-{abs(hash(text))}",
        document_id=document_id,
        text=text,
        embedding=[1.0, 0.0, 0.0],
        metadata={"chunk_index": 0, "filename": "catalog.pdf"},
    )


class TestKeywordExtraction:
    def test_stopwords_and_short_tokens_are_dropped(self) -> None:
        assert extract_keywords("How much is the Fikir Eske Mekabir book?") == [
            "fikir",
            "eske",
            "mekabir",
        ]

    def test_duplicates_keep_first_occurrence(self) -> None:
        assert extract_keywords("oromay ORomay girma oromay") == ["oromay", "girma"]

    def test_only_stopwords_yields_none(self) -> None:
        assert build_lexical_pattern("what is the price?") is None
        assert build_lexical_pattern("") is None

    def test_pattern_is_alternation(self) -> None:
        assert build_lexical_pattern("Fikir Eske") == "fikir|eske"

    def test_apostrophes_are_escaped_safely(self) -> None:
        pattern = build_lexical_pattern("children's books")
        assert pattern is not None
        assert "children's" in pattern.replace("\\", "")


class TestRetrievalService:
    @pytest.mark.asyncio
    async def test_vector_results_skip_fallback(
        self, mock_embedding_provider: MagicMock, mock_chunk_store: MagicMock
    ) -> None:
        mock_chunk_store.similarity_search = AsyncMock(return_value=[_record("500 ETB")])
        service = RetrievalService(mock_embedding_provider, mock_chunk_store, top_k=4)

        context = await service.retrieve("fikir price")

        assert [c.text for c in context] == ["500 ETB"]
        assert context[0].document_id == "doc-1"
        mock_embedding_provider.embed_query.assert_awaited_once_with("fikir price")
        mock_chunk_store.similarity_search.assert_awaited_once_with([1.0, 0.0, 0.0], 4)
        mock_chunk_store.lexical_search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_vector_results_trigger_fallback(
        self, mock_embedding_provider: MagicMock, mock_chunk_store: MagicMock
    ) -> None:
        mock_chunk_store.lexical_search = AsyncMock(return_value=[_record("Fikir Eske Mekabir 500 ETB")])
        service = RetrievalService(mock_embedding_provider, mock_chunk_store, top_k=8)

        context = await service.retrieve("How much is the Fikir Eske Mekabir book?")

        assert [c.text for c in context] == ["Fikir Eske Mekabir 500 ETB"]
        mock_chunk_store.lexical_search.assert_awaited_once_with("fikir|eske|mekabir", 8)

    @pytest.mark.asyncio
    async def test_no_keywords_means_no_fallback(
        self, mock_embedding_provider: MagicMock, mock_chunk_store: MagicMock
    ) -> None:
        service = RetrievalService(mock_embedding_provider, mock_chunk_store)

        assert await service.retrieve("what is the price?") == []
        mock_chunk_store.lexical_search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_vector_index_falls_back(
        self, mock_embedding_provider: MagicMock, mock_chunk_store: MagicMock
    ) -> None:
        mock_chunk_store.similarity_search = AsyncMock(
            side_effect=VectorIndexUnsupportedError(provider_name="sqlite")
        )
        mock_chunk_store.lexical_search = AsyncMock(return_value=[_record("Oromay 350 ETB")])
        service = RetrievalService(mock_embedding_provider, mock_chunk_store)

        first = await service.retrieve("oromay")
        second = await service.retrieve("oromay")

        assert [c.text for c in first] == ["Oromay 350 ETB"]
        assert [c.text for c in second] == ["Oromay 350 ETB"]
        assert mock_chunk_store.lexical_search.await_count == 2

    @pytest.mark.asyncio
    async def test_explicit_k_overrides_default(
        self, mock_embedding_provider: MagicMock, mock_chunk_store: MagicMock
    ) -> None:
        service = RetrievalService(mock_embedding_provider, mock_chunk_store, top_k=8)
        await service.retrieve("oromay", k=2)
        mock_chunk_store.similarity_search.assert_awaited_once_with([1.0, 0.0, 0.0], 2)

    @pytest.mark.asyncio
    async def test_non_positive_k_returns_nothing(
        self, mock_embedding_provider: MagicMock, mock_chunk_store: MagicMock
    ) -> None:
        service = RetrievalService(mock_embedding_provider, mock_chunk_store)
        assert await service.retrieve("oromay", k=0) == []
        mock_embedding_provider.embed_query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(
        self, mock_embedding_provider: MagicMock, mock_chunk_store: MagicMock
    ) -> None:
        mock_embedding_provider.embed_query = AsyncMock(
            side_effect=EmbeddingRequestFailedError("down", status_code=503)
        )
        service = RetrievalService(mock_embedding_provider, mock_chunk_store)
        with pytest.raises(EmbeddingRequestFailedError):
            await service.retrieve("oromay")

    def test_extra_stopwords(self, mock_embedding_provider: MagicMock, mock_chunk_store: MagicMock) -> None:
        service = RetrievalService(
            mock_embedding_provider, mock_chunk_store, extra_stopwords=["Mastewal"]
        )
        assert service.build_lexical_pattern("mastewal oromay") == "oromay"
