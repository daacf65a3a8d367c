"""docchat FastAPI application entry point.

Wires together all providers, services, and routes via dependency
injection.  Backend selection (embedding, generation, chunk store) is
resolved exactly once here from :class:`Settings` and the chosen strategy
objects are injected into the services, which never branch on provider
names themselves.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from docchat import __version__
from docchat.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docchat.api.routes import router as api_router
from docchat.config.loader import load_config
from docchat.config.settings import Settings
from docchat.interfaces.chunk_store import IChunkStore
from docchat.interfaces.embedding_provider import IEmbeddingProvider
from docchat.interfaces.llm_provider import ILLMProvider
from docchat.providers.chunk_store.chromadb_chunk_store import ChromaDBChunkStore
from docchat.providers.chunk_store.sqlite_chunk_store import SQLiteChunkStore
from docchat.providers.documents.sqlite_document_repository import SQLiteDocumentRepository
from docchat.providers.embedding.gemini_embedding_provider import GeminiEmbeddingProvider
from docchat.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docchat.providers.embedding.voyage_embedding_provider import VoyageEmbeddingProvider
from docchat.providers.llm.anthropic_provider import AnthropicLLMProvider
from docchat.providers.llm.gemini_provider import GeminiLLMProvider
from docchat.providers.llm.openai_provider import OpenAILLMProvider
from docchat.providers.session.sqlite_session_store import SQLiteSessionStore
from docchat.services.answer_generator import AnswerGenerator
from docchat.services.chat_service import ChatService
from docchat.services.ingestion.chunker import TextChunker
from docchat.services.ingestion.ingestion_service import IngestionService
from docchat.services.ingestion.text_extractor import TextExtractor
from docchat.services.retrieval_service import RetrievalService
from docchat.utils.errors import ConfigurationError
from docchat.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> IEmbeddingProvider:
    """Return the embedding backend named by ``EMBEDDING_PROVIDER``."""
    name = app_settings.embedding_provider.strip().lower()
    if name == "voyage":
        return VoyageEmbeddingProvider(settings=app_settings, http_client=http_client)
    if name == "gemini":
        return GeminiEmbeddingProvider(settings=app_settings, http_client=http_client)
    if name == "openai":
        return OpenAIEmbeddingProvider(settings=app_settings)
    raise ConfigurationError(
        message=f"Unknown EMBEDDING_PROVIDER {name!r} (expected voyage, openai or gemini)"
    )


def _build_llm_provider(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> ILLMProvider:
    """Return the generation backend named by ``LLM_PROVIDER``."""
    name = app_settings.llm_provider.strip().lower()
    if name == "gemini":
        return GeminiLLMProvider(settings=app_settings, http_client=http_client)
    if name == "openai":
        return OpenAILLMProvider(settings=app_settings)
    if name == "anthropic":
        return AnthropicLLMProvider(settings=app_settings)
    raise ConfigurationError(
        message=f"Unknown LLM_PROVIDER {name!r} (expected gemini, openai or anthropic)"
    )


def _build_chunk_store(app_settings: Settings) -> IChunkStore:
    """Return the chunk store named by ``CHUNK_STORE_BACKEND``."""
    name = app_settings.chunk_store_backend.strip().lower()
    if name == "chromadb":
        return ChromaDBChunkStore(
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
        )
    if name == "sqlite":
        return SQLiteChunkStore(db_path=app_settings.sqlite_db_path)
    raise ConfigurationError(
        message=f"Unknown CHUNK_STORE_BACKEND {name!r} (expected chromadb or sqlite)"
    )


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    app_config = app_config or load_config(settings=app_settings)
    chunking = app_config["chunking"]
    retrieval_cfg = app_config["retrieval"]
    chat_cfg = app_config["chat"]

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=30.0)

    # -- Backends (resolved once) --
    embedding_provider = _build_embedding_provider(app_settings, http_client)
    llm_provider = _build_llm_provider(app_settings, http_client)
    chunk_store = _build_chunk_store(app_settings)
    document_repository = SQLiteDocumentRepository(db_path=app_settings.sqlite_db_path)
    session_store = SQLiteSessionStore(db_path=app_settings.sqlite_db_path)

    # -- Services --
    ingestion_service = IngestionService(
        extractor=TextExtractor(timeout=app_settings.extraction_timeout),
        chunker=TextChunker(
            chunk_size=int(chunking["chunk_size"]),
            chunk_overlap=int(chunking["chunk_overlap"]),
        ),
        embedding_provider=embedding_provider,
        chunk_store=chunk_store,
        document_repository=document_repository,
        embedding_timeout=app_settings.embedding_timeout,
        store_timeout=app_settings.search_timeout,
    )
    retrieval_service = RetrievalService(
        embedding_provider=embedding_provider,
        chunk_store=chunk_store,
        top_k=int(retrieval_cfg["top_k"]),
        extra_stopwords=retrieval_cfg.get("extra_stopwords") or (),
        embedding_timeout=app_settings.embedding_timeout,
        search_timeout=app_settings.search_timeout,
    )
    answer_generator = AnswerGenerator(
        llm_provider=llm_provider,
        temperature=app_settings.generation_temperature,
        max_tokens=app_settings.generation_max_tokens,
        timeout=app_settings.generation_timeout,
    )
    chat_service = ChatService(
        session_store=session_store,
        retrieval=retrieval_service,
        generator=answer_generator,
        history_window=int(chat_cfg["history_window"]),
        stream_fragment_size=int(chat_cfg["stream_fragment_size"]),
    )

    provider_registry: dict[str, Any] = {
        "embedding": embedding_provider.get_provider_name(),
        "embedding_available": embedding_provider.is_available(),
        "llm": llm_provider.get_provider_name(),
        "llm_available": llm_provider.is_available(),
        "chunk_store": chunk_store.get_provider_name(),
    }

    return {
        "settings": app_settings,
        "config": app_config,
        "http_client": http_client,
        "embedding_provider": embedding_provider,
        "llm_provider": llm_provider,
        "chunk_store": chunk_store,
        "document_repository": document_repository,
        "session_store": session_store,
        "ingestion_service": ingestion_service,
        "retrieval_service": retrieval_service,
        "answer_generator": answer_generator,
        "chat_service": chat_service,
        "provider_registry": provider_registry,
    }


async def initialize_components(components: dict[str, Any]) -> None:
    """Create SQLite tables and the chunk index.  Safe to call repeatedly."""
    await components["document_repository"].initialize()
    await components["session_store"].initialize()
    await components["chunk_store"].ensure_index()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await initialize_components(components)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        **components["provider_registry"],
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="docchat API",
        version=__version__,
        description=(
            "Upload PDF and DOCX documents, index them for semantic retrieval, "
            "and chat with an assistant whose answers are grounded in them."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "docchat.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
