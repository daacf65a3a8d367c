"""Shared post-processing for raw embedding payloads.

Backends return JSON arrays of numbers; anything that is not a list
becomes an empty vector and every element is cast to ``float``.  Length
is never adjusted: a vector whose length differs from the configured
dimension is logged and passed through unchanged.  An element that is
not a number (``null``, a string, a nested list) makes the whole payload
unusable and is reported as a failed embedding request.
"""

from __future__ import annotations

from typing import Any

import structlog

from docchat.utils.errors import EmbeddingRequestFailedError

logger = structlog.get_logger(logger_name=__name__)


def normalize_vectors(
    raw_vectors: list[Any],
    expected_dimension: int,
    provider_name: str,
) -> list[list[float]]:
    vectors: list[list[float]] = []
    for position, raw in enumerate(raw_vectors):
        if not isinstance(raw, (list, tuple)):
            vectors.append([])
            continue
        try:
            vector = [float(v) for v in raw]
        except (TypeError, ValueError) as exc:
            raise EmbeddingRequestFailedError(
                message=f"Malformed embedding at position {position}: {exc}",
                provider_name=provider_name,
            ) from exc
        if expected_dimension and len(vector) != expected_dimension:
            logger.warning(
                "embedding_dimension_mismatch",
                provider=provider_name,
                expected=expected_dimension,
                received=len(vector),
            )
        vectors.append(vector)
    return vectors
