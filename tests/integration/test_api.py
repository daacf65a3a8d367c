"""Integration tests for the FastAPI endpoints using TestClient.

Services are real (SQLite document repository, session store and chunk
store under ``tmp_path``); only the embedding and generation backends are
mocked.  The lifespan is not run: ``app.state`` is populated directly.
"""

from __future__ import annotations

import asyncio
import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import docx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docchat.config.settings import Settings
from docchat.models.document import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE
from docchat.providers.chunk_store.sqlite_chunk_store import SQLiteChunkStore
from docchat.providers.documents.sqlite_document_repository import SQLiteDocumentRepository
from docchat.providers.session.sqlite_session_store import SQLiteSessionStore
from docchat.services.answer_generator import AnswerGenerator
from docchat.services.chat_service import ChatService
from docchat.services.ingestion.chunker import TextChunker
from docchat.services.ingestion.ingestion_service import IngestionService
from docchat.services.ingestion.text_extractor import TextExtractor
from docchat.services.retrieval_service import RetrievalService
from docchat.utils.errors import OperationTimeoutError

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _catalog_docx() -> bytes:
    document = docx.Document()
    document.add_paragraph("Fikir Eske Mekabir by Haddis Alemayehu. Price: 500 ETB.")
    document.add_paragraph("Oromay by Bealu Girma. Price: 350 ETB.")
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _parse_sse(body: str) -> list[tuple[str, dict]]:
    events = []
    for frame in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in frame.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


def _upload(client: TestClient, data: bytes, filename: str, media_type: str, headers=ADMIN):
    return client.post(
        "/api/v1/admin/documents",
        files={"file": (filename, data, media_type)},
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def app(tmp_path: Path, mock_embedding_provider: MagicMock, mock_llm_provider: MagicMock) -> FastAPI:
    from docchat.main import create_app

    db_path = str(tmp_path / "docchat.db")
    settings = Settings(_env_file=None, sqlite_db_path=db_path, max_upload_mb=1)

    documents = SQLiteDocumentRepository(db_path=db_path)
    sessions = SQLiteSessionStore(db_path=db_path)
    chunks = SQLiteChunkStore(db_path=db_path)

    async def _init() -> None:
        await documents.initialize()
        await sessions.initialize()
        await chunks.ensure_index()

    asyncio.run(_init())

    retrieval = RetrievalService(mock_embedding_provider, chunks, top_k=8)
    application = create_app()
    application.state.settings = settings
    application.state.ingestion_service = IngestionService(
        extractor=TextExtractor(),
        chunker=TextChunker(chunk_size=1000, chunk_overlap=200),
        embedding_provider=mock_embedding_provider,
        chunk_store=chunks,
        document_repository=documents,
    )
    application.state.chat_service = ChatService(
        session_store=sessions,
        retrieval=retrieval,
        generator=AnswerGenerator(mock_llm_provider),
        stream_fragment_size=8,
    )
    application.state.provider_registry = {
        "embedding": "mock-embedding",
        "embedding_available": True,
        "llm": "mock-llm",
        "llm_available": True,
        "chunk_store": "sqlite",
    }
    return application


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


# ======================================================================
# Health
# ======================================================================


class TestHealth:
    def test_healthy(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["providers"]["chunk_store"] == "sqlite"

    def test_degraded_without_generation(self, app: FastAPI, client: TestClient) -> None:
        app.state.provider_registry = {**app.state.provider_registry, "llm_available": False}
        assert client.get("/api/v1/health").json()["status"] == "degraded"


# ======================================================================
# Admin documents
# ======================================================================


class TestAdminDocuments:
    def test_requires_authentication(self, client: TestClient) -> None:
        response = _upload(client, _catalog_docx(), "catalog.docx", DOCX_MEDIA_TYPE, headers={})
        assert response.status_code == 401

    def test_requires_admin_role(self, client: TestClient) -> None:
        response = _upload(client, _catalog_docx(), "catalog.docx", DOCX_MEDIA_TYPE, headers=ALICE)
        assert response.status_code == 403
        assert client.get("/api/v1/admin/documents", headers=ALICE).status_code == 403

    def test_missing_file(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/admin/documents",
            files={"attachment": ("notes.txt", b"x", "text/plain")},
            headers=ADMIN,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "File is required"

    def test_unsupported_type(self, client: TestClient) -> None:
        response = _upload(client, b"plain text", "notes.txt", "text/plain")
        assert response.status_code == 415
        assert response.json()["detail"] == "Only PDF and DOCX files are allowed"

    def test_too_large(self, client: TestClient) -> None:
        response = _upload(client, b"0" * (1024 * 1024 + 1), "big.pdf", PDF_MEDIA_TYPE)
        assert response.status_code == 413

    def test_upload_docx(self, client: TestClient, mock_embedding_provider: MagicMock) -> None:
        response = _upload(client, _catalog_docx(), "catalog.docx", DOCX_MEDIA_TYPE)

        assert response.status_code == 201
        body = response.json()
        assert body["document"]["filename"] == "catalog.docx"
        assert body["document"]["status"] == "ready"
        assert body["chunks"] == 1
        assert mock_embedding_provider.embed_document.await_count == 1

    def test_octet_stream_uses_extension(self, client: TestClient) -> None:
        response = _upload(client, _catalog_docx(), "catalog.docx", "application/octet-stream")
        assert response.status_code == 201

    def test_corrupt_pdf_is_recorded_as_failed(self, client: TestClient) -> None:
        response = _upload(client, b"definitely not a pdf", "broken.pdf", PDF_MEDIA_TYPE)
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to ingest document"

        listed = client.get("/api/v1/admin/documents", headers=ADMIN).json()["documents"]
        assert [d["status"] for d in listed] == ["failed"]
        assert listed[0]["error"]

    def test_embedding_timeout_is_503(self, client: TestClient, mock_embedding_provider: MagicMock) -> None:
        mock_embedding_provider.embed_document = AsyncMock(side_effect=OperationTimeoutError())
        response = _upload(client, _catalog_docx(), "catalog.docx", DOCX_MEDIA_TYPE)
        assert response.status_code == 503

    def test_unexpected_embedding_error_is_generic_500(
        self, client: TestClient, mock_embedding_provider: MagicMock
    ) -> None:
        mock_embedding_provider.embed_document = AsyncMock(
            side_effect=TypeError("float() argument must be a string or a real number")
        )

        response = _upload(client, _catalog_docx(), "catalog.docx", DOCX_MEDIA_TYPE)

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to ingest document"}
        listed = client.get("/api/v1/admin/documents", headers=ADMIN).json()["documents"]
        assert [d["status"] for d in listed] == ["failed"]

    def test_list_and_delete(self, client: TestClient) -> None:
        uploaded = _upload(client, _catalog_docx(), "catalog.docx", DOCX_MEDIA_TYPE).json()
        doc_id = uploaded["document"]["id"]

        listed = client.get("/api/v1/admin/documents", headers=ADMIN).json()["documents"]
        assert [d["id"] for d in listed] == [doc_id]
        assert listed[0]["chunk_count"] == 1

        deleted = client.delete(f"/api/v1/admin/documents/{doc_id}", headers=ADMIN)
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True, "chunks_removed": 1}
        assert client.get("/api/v1/admin/documents", headers=ADMIN).json()["documents"] == []

    def test_delete_unknown(self, client: TestClient) -> None:
        response = client.delete("/api/v1/admin/documents/missing", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["detail"] == "Document not found"


# ======================================================================
# Chat
# ======================================================================


class TestChat:
    def test_requires_authentication(self, client: TestClient) -> None:
        assert client.post("/api/v1/chat", json={"message": "hi"}).status_code == 401

    @pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "   "}])
    def test_message_required(self, client: TestClient, payload: dict) -> None:
        response = client.post("/api/v1/chat", json=payload, headers=ALICE)
        assert response.status_code == 400
        assert response.json()["detail"] == "message is required"

    def test_grounded_answer(self, client: TestClient, mock_llm_provider: MagicMock) -> None:
        _upload(client, _catalog_docx(), "catalog.docx", DOCX_MEDIA_TYPE)

        response = client.post(
            "/api/v1/chat",
            json={"message": "How much is the Fikir Eske Mekabir book?"},
            headers=ALICE,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == "The price is 500 ETB."
        assert len(body["citations"]) == 1
        assert body["citations"][0]["source_id"] == 1
        assert body["citations"][0]["metadata"]["filename"] == "catalog.docx"
        prompt = mock_llm_provider.complete.await_args.kwargs["user_prompt"]
        assert "Price: 500 ETB." in prompt

    def test_generation_timeout_is_503(self, client: TestClient, mock_llm_provider: MagicMock) -> None:
        mock_llm_provider.complete = AsyncMock(side_effect=OperationTimeoutError())
        response = client.post("/api/v1/chat", json={"message": "hi"}, headers=ALICE)
        assert response.status_code == 503
        assert response.json()["detail"] == "Failed to process chat message"

    def test_unexpected_chat_error_is_generic_500(
        self, client: TestClient, mock_llm_provider: MagicMock
    ) -> None:
        mock_llm_provider.complete = AsyncMock(side_effect=RuntimeError("database is locked"))

        response = client.post("/api/v1/chat", json={"message": "hi"}, headers=ALICE)

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to process chat message"}

    def test_stream(self, client: TestClient, mock_llm_provider: MagicMock) -> None:
        mock_llm_provider.complete = AsyncMock(return_value="Oromay costs 350 ETB.")

        response = client.get("/api/v1/chat/stream", params={"q": "oromay"}, headers=ALICE)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        events = _parse_sse(response.text)
        names = [name for name, _ in events]
        assert names[0] == "meta"
        assert names[-1] == "done"
        assert set(names[1:-1]) == {"message"}
        assert "".join(data["text"] for name, data in events if name == "message") == (
            "Oromay costs 350 ETB."
        )
        assert events[0][1]["session_id"]

    def test_stream_requires_query(self, client: TestClient) -> None:
        assert client.get("/api/v1/chat/stream", headers=ALICE).status_code == 400

    def test_stream_failure_emits_error_event(
        self, client: TestClient, mock_llm_provider: MagicMock
    ) -> None:
        mock_llm_provider.complete = AsyncMock(side_effect=RuntimeError("backend exploded"))

        response = client.get("/api/v1/chat/stream", params={"q": "oromay"}, headers=ALICE)

        assert response.status_code == 200
        assert _parse_sse(response.text) == [
            ("error", {"error": "Failed to process chat message"})
        ]


# ======================================================================
# Sessions
# ======================================================================


class TestSessions:
    def test_list_and_get_own_sessions(self, client: TestClient) -> None:
        first = client.post("/api/v1/chat", json={"message": "one"}, headers=ALICE).json()
        client.post(
            "/api/v1/chat",
            json={"message": "two", "session_id": first["session_id"]},
            headers=ALICE,
        )

        sessions = client.get("/api/v1/chat/sessions", headers=ALICE).json()["sessions"]
        assert [(s["id"], s["message_count"]) for s in sessions] == [(first["session_id"], 4)]

        detail = client.get(f"/api/v1/chat/sessions/{first['session_id']}", headers=ALICE).json()
        assert [m["role"] for m in detail["session"]["messages"]] == [
            "user",
            "assistant",
            "user",
            "assistant",
        ]

    def test_foreign_session_is_not_found(self, client: TestClient) -> None:
        alice = client.post("/api/v1/chat", json={"message": "secret"}, headers=ALICE).json()

        response = client.get(f"/api/v1/chat/sessions/{alice['session_id']}", headers=BOB)

        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found"
        assert client.get("/api/v1/chat/sessions", headers=BOB).json()["sessions"] == []
