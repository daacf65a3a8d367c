"""FastAPI routes for document administration and grounded chat.

Service dependencies are resolved from ``app.state`` (populated by
``main._build_all``) through ``Annotated[..., Depends(...)]`` aliases, and
the caller's identity through :mod:`docchat.api.identity`.

Endpoint                                Method  Description
/api/v1/health                          GET     Health check + backend status
/api/v1/admin/documents                 POST    Upload PDF/DOCX -> ingest (admin)
/api/v1/admin/documents                 GET     List documents, newest first (admin)
/api/v1/admin/documents/{document_id}   DELETE  Delete document + chunks (admin)
/api/v1/chat                            POST    One chat turn -> answer + citations
/api/v1/chat/stream                     GET     One chat turn as Server-Sent Events
/api/v1/chat/sessions                   GET     Caller's sessions, most recent first
/api/v1/chat/sessions/{session_id}      GET     One of the caller's sessions
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import StreamingResponse

from docchat import __version__
from docchat.api.identity import AdminDep, IdentityDep
from docchat.api.schemas import (
    ChatRequest,
    ChatResponse,
    CitationResponse,
    DeleteDocumentResponse,
    DocumentListResponse,
    DocumentResponse,
    DocumentSummary,
    DocumentUploadResponse,
    ErrorResponse,
    HealthResponse,
    SessionDetail,
    SessionDetailResponse,
    SessionListResponse,
    SessionSummary,
)
from docchat.config.settings import Settings
from docchat.models.chat import StreamEvent, StreamEventType
from docchat.models.document import SUPPORTED_MEDIA_TYPES
from docchat.services.chat_service import ChatService
from docchat.services.ingestion.ingestion_service import IngestionService, guess_media_type
from docchat.utils.errors import (
    DocChatError,
    DocumentNotFoundError,
    InputValidationError,
    OperationTimeoutError,
    SessionNotFoundError,
    UnsupportedFormatError,
)
from docchat.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_UPLOAD_CHUNK_SIZE = 64 * 1024
_GENERIC_OCTET_TYPES = frozenset({"", "application/octet-stream"})

_INGEST_FAILED = "Failed to ingest document"
_CHAT_FAILED = "Failed to process chat message"

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


SettingsDep = Annotated[Settings, Depends(_get_settings)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
ChatDep = Annotated[ChatService, Depends(_get_chat_service)]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and configured backends."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    ready = providers.get("embedding_available", False) and providers.get("llm_available", False)
    return HealthResponse(
        status="healthy" if ready else "degraded",
        version=__version__,
        providers=providers,
    )


# ---------------------------------------------------------------------------
# Admin: documents
# ---------------------------------------------------------------------------


@router.post(
    "/admin/documents",
    status_code=201,
    response_model=DocumentUploadResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Upload a PDF or DOCX document and index it",
)
async def upload_document(
    _admin: AdminDep,
    ingestion: IngestionDep,
    settings: SettingsDep,
    file: Annotated[UploadFile | None, File()] = None,
) -> DocumentUploadResponse:
    """Validate the upload, then run it through the ingestion pipeline."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="File is required")

    media_type = (file.content_type or "").split(";")[0].strip().lower()
    if media_type in _GENERIC_OCTET_TYPES:
        media_type = guess_media_type(file.filename) or media_type
    if media_type not in SUPPORTED_MEDIA_TYPES:
        raise HTTPException(status_code=415, detail="Only PDF and DOCX files are allowed")

    # Read in 64 KB increments so oversized uploads are rejected early.
    max_bytes = settings.max_upload_mb * 1024 * 1024
    parts: list[bytes] = []
    total_size = 0
    while True:
        part = await file.read(_UPLOAD_CHUNK_SIZE)
        if not part:
            break
        total_size += len(part)
        if total_size > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: maximum is {settings.max_upload_mb} MB",
            )
        parts.append(part)
    data = b"".join(parts)

    try:
        result = await ingestion.ingest(data, file.filename, media_type)
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=415, detail="Only PDF and DOCX files are allowed") from exc
    except OperationTimeoutError as exc:
        raise HTTPException(status_code=503, detail=_INGEST_FAILED) from exc
    except DocChatError as exc:
        _logger.error("document_upload_failed", filename=file.filename, error=str(exc))
        raise HTTPException(status_code=500, detail=_INGEST_FAILED) from exc
    except Exception as exc:
        _logger.exception(
            "document_upload_crashed", filename=file.filename, error_type=type(exc).__name__
        )
        raise HTTPException(status_code=500, detail=_INGEST_FAILED) from exc

    return DocumentUploadResponse(
        document=DocumentSummary(
            id=result.document.document_id,
            filename=result.document.filename,
            status=result.document.status.value,
        ),
        chunks=result.chunks_written,
    )


@router.get(
    "/admin/documents",
    response_model=DocumentListResponse,
    summary="List uploaded documents, newest first",
)
async def list_documents(_admin: AdminDep, ingestion: IngestionDep) -> DocumentListResponse:
    documents = await ingestion.list_documents()
    return DocumentListResponse(documents=[DocumentResponse.from_document(d) for d in documents])


@router.delete(
    "/admin/documents/{document_id}",
    response_model=DeleteDocumentResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document and all of its chunks",
)
async def delete_document(
    document_id: str,
    _admin: AdminDep,
    ingestion: IngestionDep,
) -> DeleteDocumentResponse:
    try:
        removed = await ingestion.delete_document(document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Document not found") from exc
    return DeleteDocumentResponse(success=True, chunks_removed=removed)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Send a chat message and receive a grounded answer",
)
async def send_chat_message(
    body: ChatRequest,
    identity: IdentityDep,
    chat: ChatDep,
) -> ChatResponse:
    if not body.message or not body.message.strip():
        raise HTTPException(status_code=400, detail="message is required")
    try:
        result = await chat.run_turn(identity.user_id, body.message, body.session_id)
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail="message is required") from exc
    except OperationTimeoutError as exc:
        raise HTTPException(status_code=503, detail=_CHAT_FAILED) from exc
    except DocChatError as exc:
        _logger.error("chat_turn_failed", user_id=identity.user_id, error=str(exc))
        raise HTTPException(status_code=500, detail=_CHAT_FAILED) from exc
    except Exception as exc:
        _logger.exception(
            "chat_turn_crashed", user_id=identity.user_id, error_type=type(exc).__name__
        )
        raise HTTPException(status_code=500, detail=_CHAT_FAILED) from exc

    return ChatResponse(
        session_id=result.session_id,
        answer=result.answer,
        citations=[CitationResponse.from_citation(c) for c in result.citations],
    )


@router.get(
    "/chat/stream",
    responses={400: {"model": ErrorResponse}},
    summary="Send a chat message and stream the answer as Server-Sent Events",
)
async def stream_chat_message(
    identity: IdentityDep,
    chat: ChatDep,
    q: Annotated[str | None, Query()] = None,
    session_id: Annotated[str | None, Query()] = None,
) -> StreamingResponse:
    """Emit ``meta``, ``message`` x N and ``done``; a failure ends with one ``error`` event."""
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="q (message) is required")

    async def event_stream() -> AsyncIterator[str]:
        try:
            async for event in chat.stream_turn(identity.user_id, q, session_id):
                yield event.encode()
        except Exception as exc:
            _logger.error(
                "chat_stream_failed",
                user_id=identity.user_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            yield StreamEvent(event=StreamEventType.ERROR, data={"error": _CHAT_FAILED}).encode()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=_SSE_HEADERS)


@router.get(
    "/chat/sessions",
    response_model=SessionListResponse,
    summary="List the caller's chat sessions",
)
async def list_chat_sessions(identity: IdentityDep, chat: ChatDep) -> SessionListResponse:
    sessions = await chat.list_sessions(identity.user_id)
    return SessionListResponse(
        sessions=[
            SessionSummary(id=s.session_id, message_count=len(s.messages), updated_at=s.updated_at)
            for s in sessions
        ]
    )


@router.get(
    "/chat/sessions/{session_id}",
    response_model=SessionDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get one of the caller's chat sessions",
)
async def get_chat_session(
    session_id: str,
    identity: IdentityDep,
    chat: ChatDep,
) -> SessionDetailResponse:
    try:
        session = await chat.get_session(identity.user_id, session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc
    return SessionDetailResponse(session=SessionDetail.from_session(session))
