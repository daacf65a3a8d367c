"""docchat API layer: routes, schemas, identity, and middleware."""

from docchat.api.identity import Identity, get_identity, require_admin
from docchat.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docchat.api.routes import router
from docchat.api.schemas import (
    ChatRequest,
    ChatResponse,
    DocumentUploadResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "Identity",
    "get_identity",
    "require_admin",
    "ChatRequest",
    "ChatResponse",
    "DocumentUploadResponse",
    "ErrorResponse",
    "HealthResponse",
]
