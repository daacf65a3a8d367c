"""Abstract base class for document-record persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docchat.models.document import Document


class IDocumentRepository(ABC):
    """Contract for storing :class:`Document` lifecycle records."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if needed.  Called once at startup."""

    @abstractmethod
    async def create(self, filename: str, media_type: str, size_bytes: int) -> Document:
        """Insert a new document in the ``processing`` state and return it."""

    @abstractmethod
    async def get(self, document_id: str) -> Document | None:
        """Return the document, or ``None`` if it does not exist."""

    @abstractmethod
    async def list_all(self) -> list[Document]:
        """Return every document, newest first."""

    @abstractmethod
    async def mark_ready(self, document_id: str, chunk_count: int) -> Document:
        """Move ``processing -> ready``.

        Raises
        ------
        docchat.utils.errors.DocumentStateError
            If the document is not currently ``processing``.
        """

    @abstractmethod
    async def mark_failed(self, document_id: str, error: str, chunk_count: int = 0) -> Document:
        """Move ``processing -> failed`` recording a short reason.

        *chunk_count* is the number of chunks written before the failure;
        those chunks stay in the chunk store until the document is deleted.
        """

    @abstractmethod
    async def delete(self, document_id: str) -> bool:
        """Delete the record; return ``False`` if it did not exist."""
