"""Unit tests for backend selection and DI assembly in docchat.main."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI

from docchat.config.settings import Settings
from docchat.utils.errors import ConfigurationError


def _settings(tmp_path: Path, **overrides) -> Settings:
    defaults = {
        "voyage_api_key": "",
        "gemini_api_key": "",
        "openai_api_key": "",
        "openai_base_url": "",
        "anthropic_api_key": "",
        "chunk_store_backend": "sqlite",
        "sqlite_db_path": str(tmp_path / "docchat.db"),
        "chromadb_persist_dir": str(tmp_path / "chromadb"),
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class TestBackendSelection:
    @pytest.mark.parametrize(
        ("name", "class_name"),
        [
            ("voyage", "VoyageEmbeddingProvider"),
            ("gemini", "GeminiEmbeddingProvider"),
            ("OpenAI", "OpenAIEmbeddingProvider"),
        ],
    )
    def test_embedding_provider(self, tmp_path: Path, name: str, class_name: str) -> None:
        from docchat.main import _build_embedding_provider

        provider = _build_embedding_provider(_settings(tmp_path, embedding_provider=name))
        assert type(provider).__name__ == class_name

    @pytest.mark.parametrize(
        ("name", "class_name"),
        [
            ("gemini", "GeminiLLMProvider"),
            ("openai", "OpenAILLMProvider"),
            ("anthropic", "AnthropicLLMProvider"),
        ],
    )
    def test_llm_provider(self, tmp_path: Path, name: str, class_name: str) -> None:
        from docchat.main import _build_llm_provider

        provider = _build_llm_provider(_settings(tmp_path, llm_provider=name))
        assert type(provider).__name__ == class_name

    def test_chunk_store(self, tmp_path: Path) -> None:
        from docchat.main import _build_chunk_store

        assert _build_chunk_store(_settings(tmp_path)).get_provider_name() == "sqlite"
        chroma = _build_chunk_store(_settings(tmp_path, chunk_store_backend="chromadb"))
        assert chroma.get_provider_name() == "chromadb"

    def test_unknown_names_raise(self, tmp_path: Path) -> None:
        from docchat.main import (
            _build_chunk_store,
            _build_embedding_provider,
            _build_llm_provider,
        )

        with pytest.raises(ConfigurationError):
            _build_embedding_provider(_settings(tmp_path, embedding_provider="cohere"))
        with pytest.raises(ConfigurationError):
            _build_llm_provider(_settings(tmp_path, llm_provider="llama"))
        with pytest.raises(ConfigurationError):
            _build_chunk_store(_settings(tmp_path, chunk_store_backend="pgvector"))


class TestBuildAll:
    @pytest.mark.asyncio
    async def test_components_are_wired(self, tmp_path: Path) -> None:
        from docchat.config.loader import load_config
        from docchat.main import _build_all, initialize_components

        settings = _settings(tmp_path, voyage_api_key="pa-test")
        components = _build_all(settings, load_config(str(tmp_path / "absent.yaml"), settings))
        try:
            await initialize_components(components)
            await initialize_components(components)

            for key in (
                "settings",
                "config",
                "http_client",
                "embedding_provider",
                "llm_provider",
                "chunk_store",
                "document_repository",
                "session_store",
                "ingestion_service",
                "retrieval_service",
                "answer_generator",
                "chat_service",
                "provider_registry",
            ):
                assert key in components

            registry = components["provider_registry"]
            assert registry["embedding"] == "voyage:voyage-4-large"
            assert registry["embedding_available"] is True
            assert registry["llm"] == "gemini"
            assert registry["llm_available"] is False
            assert registry["chunk_store"] == "sqlite"
            assert await components["ingestion_service"].list_documents() == []
        finally:
            await components["http_client"].aclose()


class TestCreateApp:
    def test_returns_fastapi_with_routes(self) -> None:
        from docchat.main import create_app

        app = create_app()
        assert isinstance(app, FastAPI)
        paths = {route.path for route in app.routes}
        assert "/api/v1/health" in paths
        assert "/api/v1/admin/documents" in paths
        assert "/api/v1/chat/stream" in paths
        assert "/api/v1/chat/sessions/{session_id}" in paths
