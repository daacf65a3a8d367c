"""Shared pytest fixtures for the docchat test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docchat.interfaces.chunk_store import IChunkStore
from docchat.interfaces.document_repository import IDocumentRepository
from docchat.interfaces.embedding_provider import IEmbeddingProvider
from docchat.interfaces.llm_provider import ILLMProvider
from docchat.interfaces.session_store import ISessionStore


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "docchat.db")


# ---------------------------------------------------------------------------
# Provider mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MagicMock:
    provider = MagicMock(spec=IEmbeddingProvider)
    provider.embed_batch = AsyncMock(return_value=[[1.0, 0.0, 0.0]])
    provider.embed_document = AsyncMock(return_value=[1.0, 0.0, 0.0])
    provider.embed_query = AsyncMock(return_value=[1.0, 0.0, 0.0])
    provider.get_dimension.return_value = 3
    provider.get_provider_name.return_value = "mock-embedding"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_llm_provider() -> MagicMock:
    provider = MagicMock(spec=ILLMProvider)
    provider.complete = AsyncMock(return_value="The price is 500 ETB.")
    provider.get_provider_name.return_value = "mock-llm"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_chunk_store() -> MagicMock:
    store = MagicMock(spec=IChunkStore)
    store.ensure_index = AsyncMock(return_value=None)
    store.insert = AsyncMock(side_effect=lambda record: record.chunk_id)
    store.delete_by_document = AsyncMock(return_value=0)
    store.count_by_document = AsyncMock(return_value=0)
    store.similarity_search = AsyncMock(return_value=[])
    store.lexical_search = AsyncMock(return_value=[])
    store.get_provider_name.return_value = "mock-store"
    return store


@pytest.fixture
def mock_document_repository() -> MagicMock:
    return MagicMock(spec=IDocumentRepository)


@pytest.fixture
def mock_session_store() -> MagicMock:
    return MagicMock(spec=ISessionStore)
