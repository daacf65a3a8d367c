"""Document repository implementations."""

from docchat.providers.documents.sqlite_document_repository import SQLiteDocumentRepository

__all__ = ["SQLiteDocumentRepository"]
