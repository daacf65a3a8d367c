"""Unit tests for the error hierarchy and deadline helpers."""

from __future__ import annotations

import asyncio
import time

import pytest

from docchat.utils.concurrency import bounded, run_blocking
from docchat.utils.errors import (
    ChunkStoreError,
    DocChatError,
    EmbeddingRequestFailedError,
    OperationTimeoutError,
    SessionNotFoundError,
    UnsupportedFormatError,
    VectorIndexUnsupportedError,
)


class TestErrors:
    def test_all_errors_share_base(self) -> None:
        for cls in (
            ChunkStoreError,
            EmbeddingRequestFailedError,
            OperationTimeoutError,
            SessionNotFoundError,
            UnsupportedFormatError,
            VectorIndexUnsupportedError,
        ):
            assert issubclass(cls, DocChatError)

    def test_str_prefixes_provider(self) -> None:
        assert str(ChunkStoreError("write failed", provider_name="chromadb")) == "[chromadb] write failed"
        assert str(ChunkStoreError("write failed")) == "write failed"

    def test_default_messages(self) -> None:
        assert SessionNotFoundError().message == "Session not found"
        assert UnsupportedFormatError().message == "Unsupported file type"

    def test_only_timeouts_are_retryable(self) -> None:
        assert OperationTimeoutError().retryable is True
        assert ChunkStoreError().retryable is False

    def test_embedding_failure_carries_status(self) -> None:
        exc = EmbeddingRequestFailedError("nope", provider_name="voyage", status_code=429)
        assert exc.status_code == 429
        assert exc.provider_name == "voyage"
        assert EmbeddingRequestFailedError().status_code is None


class TestBounded:
    @pytest.mark.asyncio
    async def test_returns_result_within_deadline(self) -> None:
        async def _fast() -> int:
            return 42

        assert await bounded(_fast(), 1.0, "fast") == 42

    @pytest.mark.asyncio
    async def test_timeout_becomes_operation_timeout(self) -> None:
        with pytest.raises(OperationTimeoutError, match="slow_op timed out"):
            await bounded(asyncio.sleep(1), 0.01, "slow_op")

    @pytest.mark.asyncio
    async def test_none_disables_deadline(self) -> None:
        async def _value() -> str:
            await asyncio.sleep(0.01)
            return "done"

        assert await bounded(_value(), None, "unbounded") == "done"
        assert await bounded(_value(), 0, "unbounded") == "done"

    @pytest.mark.asyncio
    async def test_errors_pass_through(self) -> None:
        async def _fail() -> None:
            raise ChunkStoreError("broken")

        with pytest.raises(ChunkStoreError):
            await bounded(_fail(), 1.0, "failing")


class TestRunBlocking:
    @pytest.mark.asyncio
    async def test_runs_function_with_args(self) -> None:
        assert await run_blocking(sum, [1, 2, 3]) == 6

    @pytest.mark.asyncio
    async def test_blocking_call_timeout(self) -> None:
        with pytest.raises(OperationTimeoutError):
            await run_blocking(time.sleep, 0.5, timeout=0.01, operation="sleepy")
