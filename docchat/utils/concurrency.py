"""Deadline helpers for external-call boundaries.

Every suspension point in an ingestion run or chat turn (file parsing,
embedding requests, chunk-store reads/writes, generation) goes through
:func:`bounded`, which converts ``asyncio.TimeoutError`` into the
retryable :class:`~docchat.utils.errors.OperationTimeoutError`.

Blocking libraries (chromadb, PyMuPDF, python-docx) are pushed onto a
worker thread with :func:`run_blocking` so they never stall the event loop.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from docchat.utils.errors import OperationTimeoutError
from docchat.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


async def bounded(
    awaitable: Awaitable[_T],
    timeout: float | None,
    operation: str,
) -> _T:
    """Await *awaitable* with a deadline of *timeout* seconds.

    Parameters
    ----------
    awaitable:
        The coroutine or future to wait for.
    timeout:
        Deadline in seconds.  ``None`` or a non-positive value disables
        the deadline.
    operation:
        Short label used in the log line and error message
        (e.g. ``"embedding"``, ``"generation"``).

    Raises
    ------
    OperationTimeoutError
        If the deadline expires.  The awaited task is cancelled.
    """
    if timeout is None or timeout <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        _logger.warning("operation_timeout", operation=operation, timeout_s=timeout)
        raise OperationTimeoutError(
            message=f"{operation} timed out after {timeout:g}s",
        ) from exc


async def run_blocking(
    func: Callable[..., _T],
    *args: Any,
    timeout: float | None = None,
    operation: str = "blocking_call",
) -> _T:
    """Run a synchronous *func* in a worker thread under :func:`bounded`."""
    return await bounded(asyncio.to_thread(func, *args), timeout, operation)
