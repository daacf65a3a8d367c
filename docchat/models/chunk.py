"""Chunk models: chunker output, stored passages and retrieval context.

Chunk metadata is an open map (``chunk_index`` and ``filename`` at minimum)
restricted to scalar values so every chunk-store backend can persist it
without a schema.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from docchat.models.document import utc_now

MetadataValue = str | int | float | bool
ChunkMetadata = dict[str, MetadataValue]


class TextChunk(BaseModel):
    """One passage produced by the chunker, before embedding."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    metadata: ChunkMetadata = Field(default_factory=dict)


class ChunkRecord(BaseModel):
    """An indexed passage with its embedding vector and provenance."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique identifier (uuid4 hex).")
    document_id: str = Field(description="Owning document identifier.")
    text: str = Field(min_length=1)
    # Passed through exactly as the embedding backend returned it.
    embedding: list[float] = Field(default_factory=list)
    metadata: ChunkMetadata = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)


class RetrievedContext(BaseModel):
    """A passage handed to the answer generator as grounding context."""

    model_config = ConfigDict(frozen=True)

    text: str
    document_id: str | None = None
    metadata: ChunkMetadata = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: ChunkRecord) -> RetrievedContext:
        return cls(text=record.text, document_id=record.document_id, metadata=dict(record.metadata))
