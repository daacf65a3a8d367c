"""Recursive character chunking with overlapping windows.

Splits cleaned document text into :class:`~docchat.models.chunk.TextChunk`
objects of at most ``chunk_size`` characters.  Boundaries are chosen by
preference: paragraph break, line break, sentence end, word, and finally
single characters.  A separator is only tried when every coarser one has
left a piece that is still too long.

Within one separator level, neighbouring pieces are greedily merged up to
``chunk_size``; when a window is emitted, pieces are dropped from its head
until at most ``chunk_overlap`` characters remain, and those carry over
into the next window.  Separators are kept at the start of the piece that
follows them, so no text is lost between windows (only the leading and
trailing whitespace of each chunk is stripped).
"""

from __future__ import annotations

import re
from collections.abc import Iterator

import structlog

from docchat.models.chunk import TextChunk

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", ". ", " ", "")


class TextChunker:
    """Splits text into overlapping, size-bounded chunks.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 1000).
    chunk_overlap:
        Maximum characters shared by consecutive chunks (default 200).
        Must be smaller than *chunk_size*.
    separators:
        Boundary strings in order of preference.  ``""`` means "split
        anywhere" and should be last.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separators: tuple[str, ...] = DEFAULT_SEPARATORS,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must be non-negative, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._separators = tuple(separators)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[TextChunk]:
        """Split *text* into an ordered list of chunks.

        Empty or whitespace-only input returns an empty list.  Each chunk's
        metadata carries its zero-based ``chunk_index``.
        """
        chunks = list(self.iter_chunks(text))
        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            input_chars=len(text or ""),
            chunk_size=self._chunk_size,
        )
        return chunks

    def iter_chunks(self, text: str) -> Iterator[TextChunk]:
        """Yield chunks lazily; calling again restarts from the beginning."""
        if not text or not text.strip():
            return
        index = 0
        for piece in self._split_text(text, list(self._separators)):
            piece = piece.strip()
            if not piece:
                continue
            yield TextChunk(text=piece, metadata={"chunk_index": index})
            index += 1

    # ------------------------------------------------------------------
    # Recursive splitting
    # ------------------------------------------------------------------

    def _split_text(self, text: str, separators: list[str]) -> list[str]:
        separator = separators[-1] if separators else ""
        remaining: list[str] = []
        for i, candidate in enumerate(separators):
            if candidate == "":
                separator = candidate
                break
            if candidate in text:
                separator = candidate
                remaining = separators[i + 1 :]
                break

        output: list[str] = []
        pending: list[str] = []
        for piece in self._split_keep_separator(text, separator):
            if len(piece) < self._chunk_size:
                pending.append(piece)
                continue
            if pending:
                output.extend(self._merge(pending))
                pending = []
            if remaining:
                output.extend(self._split_text(piece, remaining))
            else:
                output.append(piece)
        if pending:
            output.extend(self._merge(pending))
        return output

    @staticmethod
    def _split_keep_separator(text: str, separator: str) -> list[str]:
        """Split on *separator*, attaching each separator to the following piece."""
        if not separator:
            return list(text)
        parts = re.split(f"({re.escape(separator)})", text)
        pieces = [parts[0]] + [parts[i] + parts[i + 1] for i in range(1, len(parts) - 1, 2)]
        if len(parts) % 2 == 0:
            pieces.append(parts[-1])
        return [p for p in pieces if p]

    def _merge(self, pieces: list[str]) -> list[str]:
        """Greedily pack *pieces* into windows of at most ``chunk_size`` chars."""
        windows: list[str] = []
        current: list[str] = []
        total = 0
        for piece in pieces:
            length = len(piece)
            if total + length > self._chunk_size and current:
                joined = "".join(current).strip()
                if joined:
                    windows.append(joined)
                # Keep at most chunk_overlap chars, and room for the new piece.
                while current and (
                    total > self._chunk_overlap or total + length > self._chunk_size
                ):
                    total -= len(current.pop(0))
            current.append(piece)
            total += length
        joined = "".join(current).strip()
        if joined:
            windows.append(joined)
        return windows
