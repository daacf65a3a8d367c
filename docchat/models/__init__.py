"""docchat domain models -- re-exports all public model classes.

    - document.py -- Document lifecycle (processing -> ready | failed)
    - chunk.py    -- Chunker output, stored chunks, retrieval context
    - chat.py     -- Sessions, messages, citations, streaming events
"""

from __future__ import annotations

from docchat.models.chat import (
    ChatSession,
    ChatTurnResult,
    Citation,
    GeneratedAnswer,
    Message,
    MessageRole,
    StreamEvent,
    StreamEventType,
)
from docchat.models.chunk import ChunkMetadata, ChunkRecord, RetrievedContext, TextChunk
from docchat.models.document import (
    DOCX_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
    SUPPORTED_MEDIA_TYPES,
    Document,
    DocumentStatus,
    IngestionResult,
)

__all__ = [
    "ChatSession",
    "ChatTurnResult",
    "ChunkMetadata",
    "ChunkRecord",
    "Citation",
    "DOCX_MEDIA_TYPE",
    "Document",
    "DocumentStatus",
    "GeneratedAnswer",
    "IngestionResult",
    "Message",
    "MessageRole",
    "PDF_MEDIA_TYPE",
    "RetrievedContext",
    "SUPPORTED_MEDIA_TYPES",
    "StreamEvent",
    "StreamEventType",
    "TextChunk",
]
