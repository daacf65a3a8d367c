"""Custom exception hierarchy for docchat.

All application exceptions inherit from :class:`DocChatError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "voyage", "gemini", "chromadb") caused the failure.

The hierarchy is organized by stage:

    DocChatError  (base -- catch-all for any docchat error)
    +-- UnsupportedFormatError            (ingestion: media type not PDF/DOCX)
    +-- ExtractionFailedError             (ingestion: file unreadable/corrupt)
    +-- EmptyDocumentError                (ingestion: no text after cleaning)
    +-- EmbeddingBackendUnavailableError  (embedding credentials missing)
    +-- EmbeddingRequestFailedError       (embedding backend non-success)
    +-- VectorIndexUnsupportedError       (store has no vector index; recoverable)
    +-- ChunkStoreError                   (chunk persistence failure)
    +-- GenerationBackendUnavailableError (generation credentials missing)
    +-- GenerationRequestFailedError      (generation backend failure)
    +-- SessionNotFoundError              (missing OR foreign chat session)
    +-- InputValidationError              (missing required input)
    +-- DocumentNotFoundError             (admin delete on unknown document)
    +-- DocumentStateError                (illegal document status transition)
    +-- OperationTimeoutError             (bounded external call expired; retryable)
    +-- ConfigurationError                (startup / invalid config)

``retryable`` is a class-level flag; only timeouts set it, so callers can
tell a transient failure from a permanent one without string matching.
"""


class DocChatError(Exception):
    """Base exception for all docchat errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[voyage] 401 Unauthorized``.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(DocChatError):
    """Raised when a document's declared media type is neither PDF nor DOCX."""

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionFailedError(DocChatError):
    """Raised when a file cannot be read or parsed into text."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyDocumentError(DocChatError):
    """Raised when a document has no text left after cleaning."""

    def __init__(
        self,
        message: str = "No text found in document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(DocChatError):
    """Raised when a document id does not exist."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentStateError(DocChatError):
    """Raised on a status transition that does not start from ``processing``."""

    def __init__(
        self,
        message: str = "Invalid document status transition",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Embedding / storage errors
# ---------------------------------------------------------------------------

class EmbeddingBackendUnavailableError(DocChatError):
    """Raised when the selected embedding backend has no credentials."""

    def __init__(
        self,
        message: str = "Embedding backend is not configured",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingRequestFailedError(DocChatError):
    """Raised when the embedding backend answers with a non-success response.

    ``status_code`` is the backend's HTTP status when one was received,
    otherwise ``None`` (e.g. a connection error).
    """

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


class VectorIndexUnsupportedError(DocChatError):
    """Raised when the chunk store cannot run a vector similarity search.

    The retrieval engine recovers from this locally by switching to the
    lexical fallback; it never reaches an HTTP client.
    """

    def __init__(
        self,
        message: str = "Vector index is not supported by this store",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ChunkStoreError(DocChatError):
    """Raised when a chunk store read or write fails."""

    def __init__(
        self,
        message: str = "Chunk store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Generation / chat errors
# ---------------------------------------------------------------------------

class GenerationBackendUnavailableError(DocChatError):
    """Raised when the selected generation backend has no credentials."""

    def __init__(
        self,
        message: str = "Generation backend is not configured",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GenerationRequestFailedError(DocChatError):
    """Raised when the generation backend call fails or returns no text."""

    def __init__(
        self,
        message: str = "Generation request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SessionNotFoundError(DocChatError):
    """Raised for a session that is missing or owned by another user.

    Both cases share one error so callers cannot probe for the existence
    of other users' sessions.
    """

    def __init__(
        self,
        message: str = "Session not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InputValidationError(DocChatError):
    """Raised when required input (message text, file) is missing."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Cross-cutting errors
# ---------------------------------------------------------------------------

class OperationTimeoutError(DocChatError):
    """Raised when a bounded external call exceeds its deadline.

    Retryable: the current unit of work (ingestion or chat turn) is
    aborted, but repeating it later may succeed.
    """

    retryable = True

    def __init__(
        self,
        message: str = "Operation timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(DocChatError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
