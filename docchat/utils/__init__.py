"""Utility modules for docchat.

- **errors** -- Domain exception hierarchy rooted at DocChatError; each
  stage raises its own subclass so callers can handle failures granularly.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **concurrency** -- deadline helpers wrapping every external call.
"""

from docchat.utils.concurrency import bounded, run_blocking
from docchat.utils.errors import (
    ChunkStoreError,
    ConfigurationError,
    DocChatError,
    DocumentNotFoundError,
    DocumentStateError,
    EmbeddingBackendUnavailableError,
    EmbeddingRequestFailedError,
    EmptyDocumentError,
    ExtractionFailedError,
    GenerationBackendUnavailableError,
    GenerationRequestFailedError,
    InputValidationError,
    OperationTimeoutError,
    SessionNotFoundError,
    UnsupportedFormatError,
    VectorIndexUnsupportedError,
)
from docchat.utils.logging import configure_logging, get_logger
