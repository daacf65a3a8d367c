"""Document lifecycle models.

A :class:`Document` is one uploaded source file.  It is created in the
``processing`` state by the ingestion pipeline and moves exactly once, to
``ready`` or ``failed``.  The transition rule lives in
:data:`ALLOWED_TRANSITIONS` and is enforced by the document repository.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
SUPPORTED_MEDIA_TYPES = frozenset({PDF_MEDIA_TYPE, DOCX_MEDIA_TYPE})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStatus(str, Enum):
    """Lifecycle state of an uploaded document."""

    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


# processing -> ready | failed; terminal states never move again.
ALLOWED_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.PROCESSING: frozenset({DocumentStatus.READY, DocumentStatus.FAILED}),
    DocumentStatus.READY: frozenset(),
    DocumentStatus.FAILED: frozenset(),
}


class Document(BaseModel):
    """A source file accepted for indexing."""

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(description="Unique identifier (uuid4 hex).")
    filename: str = Field(description="Original filename as uploaded.")
    media_type: str = Field(description="Declared media type of the upload.")
    size_bytes: int = Field(default=0, ge=0, description="Upload size in bytes.")
    status: DocumentStatus = Field(default=DocumentStatus.PROCESSING)
    chunk_count: int = Field(default=0, ge=0, description="Chunks written for this document.")
    error: str | None = Field(default=None, description="Short failure reason when failed.")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class IngestionResult(BaseModel):
    """Outcome of one successful ingestion run."""

    model_config = ConfigDict(frozen=True)

    document: Document
    chunks_written: int = Field(ge=0)
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")
