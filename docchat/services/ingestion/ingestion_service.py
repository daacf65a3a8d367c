"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **extract -> clean -> chunk -> embed -> store**.

The :class:`IngestionService` coordinates the text extractor, chunker,
embedding provider, chunk store and document repository without any of
them knowing about each other.  Each upload moves through:

    1. IDocumentRepository -- record the document as ``processing``
    2. TextExtractor -- bytes to plain text (PDF or DOCX)
    3. clean_text -- whitespace normalisation; empty result fails the run
    4. TextChunker -- ~1000-character overlapping windows
    5. IEmbeddingProvider + IChunkStore -- embed and insert, one chunk at a
       time, in order
    6. IDocumentRepository -- mark ``ready`` with the chunk count

Any failure, cancellation included, marks the document ``failed`` with a
short reason and is re-raised.  Chunks written before the failure are kept; they go away when
the failed document is deleted.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from docchat.models.chunk import ChunkRecord
from docchat.models.document import (
    DOCX_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
    Document,
    IngestionResult,
)
from docchat.services.ingestion.chunker import TextChunker
from docchat.services.ingestion.cleaner import clean_text
from docchat.services.ingestion.text_extractor import TextExtractor
from docchat.utils.concurrency import bounded, run_blocking
from docchat.utils.errors import (
    DocumentNotFoundError,
    EmptyDocumentError,
    ExtractionFailedError,
)

if TYPE_CHECKING:
    from docchat.interfaces.chunk_store import IChunkStore
    from docchat.interfaces.document_repository import IDocumentRepository
    from docchat.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)

_MAX_ERROR_CHARS = 200

_SUFFIX_MEDIA_TYPES = {
    ".pdf": PDF_MEDIA_TYPE,
    ".docx": DOCX_MEDIA_TYPE,
}


def guess_media_type(filename: str) -> str | None:
    """Map a filename's extension to a supported media type, if any."""
    return _SUFFIX_MEDIA_TYPES.get(Path(filename).suffix.lower())


class IngestionService:
    """Runs uploads through the ingestion pipeline and manages documents.

    Parameters
    ----------
    extractor:
        Turns file bytes into text.
    chunker:
        Splits cleaned text into overlapping windows.
    embedding_provider:
        Produces one vector per chunk (document role).
    chunk_store:
        Persists embedded chunks.
    document_repository:
        Persists document lifecycle records.
    embedding_timeout, store_timeout:
        Per-call deadlines in seconds for embedding and chunk-store writes.
    """

    def __init__(
        self,
        extractor: TextExtractor,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        chunk_store: IChunkStore,
        document_repository: IDocumentRepository,
        embedding_timeout: float | None = 30.0,
        store_timeout: float | None = 10.0,
    ) -> None:
        self._extractor = extractor
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._chunk_store = chunk_store
        self._documents = document_repository
        self._embedding_timeout = embedding_timeout
        self._store_timeout = store_timeout

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def ingest(self, data: bytes, filename: str, media_type: str) -> IngestionResult:
        """Ingest one uploaded file.

        Returns
        -------
        IngestionResult
            The ``ready`` document and the number of chunks written.

        Raises
        ------
        docchat.utils.errors.DocChatError
            Whatever stage failed; the document is already marked
            ``failed`` when this propagates.
        """
        start = time.monotonic()
        document = await self._documents.create(filename, media_type, len(data))
        log = logger.bind(document_id=document.document_id, filename=filename)
        log.info("ingestion_started", media_type=media_type, size_bytes=len(data))

        written = 0
        try:
            raw_text = await self._extractor.extract(data, media_type)
            text = clean_text(raw_text)
            if not text:
                raise EmptyDocumentError()

            for chunk in self._chunker.iter_chunks(text):
                vector = await bounded(
                    self._embedding_provider.embed_document(chunk.text),
                    self._embedding_timeout,
                    "embedding",
                )
                record = ChunkRecord(
                    chunk_id=uuid.uuid4().hex,
                    document_id=document.document_id,
                    text=chunk.text,
                    embedding=vector,
                    metadata={**chunk.metadata, "filename": filename},
                )
                await bounded(self._chunk_store.insert(record), self._store_timeout, "chunk_insert")
                written += 1

            ready = await self._documents.mark_ready(document.document_id, written)
        except (Exception, asyncio.CancelledError) as exc:
            # A cancelled run must not leave the document in processing.
            await self._mark_failed(document, exc, written)
            raise

        elapsed = round(time.monotonic() - start, 3)
        log.info("ingestion_complete", chunks=written, elapsed_s=elapsed)
        return IngestionResult(document=ready, chunks_written=written, ingestion_time=elapsed)

    async def ingest_file(
        self,
        path: str | Path,
        media_type: str | None = None,
    ) -> IngestionResult:
        """Ingest a file from disk; *media_type* defaults from the extension."""
        file_path = Path(path)
        resolved = media_type or guess_media_type(file_path.name) or ""
        data = await self._read(file_path)
        return await self.ingest(data, file_path.name, resolved)

    # ------------------------------------------------------------------
    # Document management
    # ------------------------------------------------------------------

    async def list_documents(self) -> list[Document]:
        """All documents, newest first."""
        return await self._documents.list_all()

    async def delete_document(self, document_id: str) -> int:
        """Delete a document and every chunk it owns.

        Returns the number of chunks removed.

        Raises
        ------
        DocumentNotFoundError
            If no such document exists.
        """
        if await self._documents.get(document_id) is None:
            raise DocumentNotFoundError()
        removed = await self._chunk_store.delete_by_document(document_id)
        await self._documents.delete(document_id)
        logger.info("document_removed", document_id=document_id, chunks_removed=removed)
        return removed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _read(self, path: Path) -> bytes:
        try:
            return await run_blocking(path.read_bytes, operation="file_read")
        except OSError as exc:
            raise ExtractionFailedError(message=f"Cannot read file {path}: {exc}") from exc

    async def _mark_failed(self, document: Document, exc: BaseException, written: int) -> None:
        reason = (str(exc) or type(exc).__name__)[:_MAX_ERROR_CHARS]
        logger.error(
            "ingestion_failed",
            document_id=document.document_id,
            filename=document.filename,
            error=reason,
            error_type=type(exc).__name__,
            chunks_retained=written,
        )
        await self._documents.mark_failed(document.document_id, reason, chunk_count=written)
