"""Unit tests for identity resolution and API middleware."""

from __future__ import annotations

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docchat.api.identity import AdminDep, IdentityDep
from docchat.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    status_for_error,
)
from docchat.utils.errors import (
    ChunkStoreError,
    DocumentNotFoundError,
    InputValidationError,
    OperationTimeoutError,
    SessionNotFoundError,
    UnsupportedFormatError,
)


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/whoami")
    async def whoami(identity: IdentityDep) -> dict:
        return {"user_id": identity.user_id, "admin": identity.is_admin}

    @app.get("/admin-only")
    async def admin_only(identity: AdminDep) -> dict:
        return {"user_id": identity.user_id}

    @app.get("/missing-session")
    async def missing_session() -> dict:
        raise SessionNotFoundError()

    @app.get("/store-failure")
    async def store_failure() -> dict:
        raise ChunkStoreError("disk full at /var/lib/chroma", provider_name="chromadb")

    return app


class TestStatusForError:
    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (InputValidationError(), 400),
            (DocumentNotFoundError(), 404),
            (SessionNotFoundError(), 404),
            (UnsupportedFormatError(), 415),
            (OperationTimeoutError(), 503),
            (ChunkStoreError(), 500),
        ],
    )
    def test_mapping(self, exc, status: int) -> None:
        assert status_for_error(exc) == status


class TestIdentity:
    def test_missing_user_is_401(self) -> None:
        response = TestClient(_app()).get("/whoami")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_headers_resolve_identity(self) -> None:
        response = TestClient(_app()).get(
            "/whoami", headers={"X-User-Id": " alice ", "X-User-Role": "ADMIN"}
        )
        assert response.json() == {"user_id": "alice", "admin": True}

    def test_role_defaults_to_user(self) -> None:
        client = TestClient(_app())
        assert client.get("/whoami", headers={"X-User-Id": "bob"}).json()["admin"] is False
        assert client.get("/admin-only", headers={"X-User-Id": "bob"}).status_code == 403


class TestRequestLoggingMiddleware:
    def test_request_id_is_generated_and_returned(self) -> None:
        response = TestClient(_app()).get("/whoami", headers={"X-User-Id": "alice"})
        assert response.status_code == 200
        assert len(response.headers["X-Request-Id"]) == 16

    def test_caller_request_id_is_bound_for_the_request(self) -> None:
        app = _app()

        @app.get("/context")
        async def context() -> dict:
            return structlog.contextvars.get_contextvars()

        response = TestClient(app).get(
            "/context", headers={"X-Request-Id": "req-42", "X-User-Id": "alice"}
        )

        assert response.headers["X-Request-Id"] == "req-42"
        assert response.json() == {"request_id": "req-42", "user_id": "alice"}


class TestErrorHandlingMiddleware:
    def test_client_error_keeps_message(self) -> None:
        response = TestClient(_app()).get("/missing-session")
        assert response.status_code == 404
        assert response.json() == {"error": "SessionNotFoundError", "detail": "Session not found"}

    def test_server_error_hides_details(self) -> None:
        response = TestClient(_app()).get("/store-failure")
        assert response.status_code == 500
        assert response.json() == {"error": "ChunkStoreError", "detail": "Internal server error"}


class TestCors:
    def test_wildcard_origin(self) -> None:
        app = FastAPI()
        configure_cors(app)

        @app.get("/ping")
        async def ping() -> dict:
            return {"ok": True}

        response = TestClient(app).get("/ping", headers={"Origin": "https://shop.example"})
        assert response.headers["access-control-allow-origin"] == "*"
        assert "access-control-allow-credentials" not in response.headers

    def test_explicit_origins_allow_credentials(self) -> None:
        app = FastAPI()
        configure_cors(app, allowed_origins=["https://shop.example"])

        @app.get("/ping")
        async def ping() -> dict:
            return {"ok": True}

        response = TestClient(app).get("/ping", headers={"Origin": "https://shop.example"})
        assert response.headers["access-control-allow-origin"] == "https://shop.example"
        assert response.headers["access-control-allow-credentials"] == "true"
