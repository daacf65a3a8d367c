"""Pydantic request/response schemas for the docchat API.

Request schemas end with ``Request``, response schemas with ``Response``.
Domain models are never returned directly; each route maps them onto one
of these so the wire contract stays stable when internals change.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from docchat.models.chat import ChatSession, Citation
from docchat.models.document import Document


# ---------------------------------------------------------------------------
# Documents (admin)
# ---------------------------------------------------------------------------


class DocumentSummary(BaseModel):
    """Minimal document view returned right after an upload."""

    id: str
    filename: str
    status: str


class DocumentUploadResponse(BaseModel):
    """Result of a successful upload and ingestion."""

    document: DocumentSummary
    chunks: int = Field(ge=0, description="Number of chunks written for the document.")


class DocumentResponse(BaseModel):
    """Full document record."""

    id: str
    filename: str
    media_type: str
    size_bytes: int
    status: str
    chunk_count: int
    error: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: Document) -> DocumentResponse:
        return cls(
            id=doc.document_id,
            filename=doc.filename,
            media_type=doc.media_type,
            size_bytes=doc.size_bytes,
            status=doc.status.value,
            chunk_count=doc.chunk_count,
            error=doc.error,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse] = Field(default_factory=list)


class DeleteDocumentResponse(BaseModel):
    success: bool = True
    chunks_removed: int = 0


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """A chat message.  ``message`` is validated by the route (400, not 422)."""

    message: str | None = None
    session_id: str | None = None


class CitationResponse(BaseModel):
    source_id: int
    document_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_citation(cls, citation: Citation) -> CitationResponse:
        return cls(
            source_id=citation.source_id,
            document_id=citation.document_id,
            metadata=dict(citation.metadata),
        )


class ChatResponse(BaseModel):
    session_id: str
    answer: str
    citations: list[CitationResponse] = Field(default_factory=list)


class MessageResponse(BaseModel):
    role: str
    content: str
    created_at: datetime


class SessionSummary(BaseModel):
    id: str
    message_count: int
    updated_at: datetime


class SessionListResponse(BaseModel):
    sessions: list[SessionSummary] = Field(default_factory=list)


class SessionDetail(BaseModel):
    id: str
    messages: list[MessageResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: ChatSession) -> SessionDetail:
        return cls(
            id=session.session_id,
            messages=[
                MessageResponse(role=m.role.value, content=m.content, created_at=m.created_at)
                for m in session.messages
            ],
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class SessionDetailResponse(BaseModel):
    session: SessionDetail


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
