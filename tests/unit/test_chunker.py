"""Unit tests for the recursive text chunker."""

from __future__ import annotations

import pytest

from docchat.services.ingestion.chunker import TextChunker


def _numbered_words(count: int) -> str:
    return " ".join(f"w{i}" for i in range(count))


class TestChunkerValidation:
    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError, match="chunk_size"):
            TextChunker(chunk_size=0, chunk_overlap=0)

    def test_rejects_negative_overlap(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            TextChunker(chunk_size=100, chunk_overlap=-1)

    def test_rejects_overlap_not_smaller_than_size(self) -> None:
        with pytest.raises(ValueError, match="smaller"):
            TextChunker(chunk_size=100, chunk_overlap=100)

    def test_defaults(self) -> None:
        chunker = TextChunker()
        assert chunker.chunk_size == 1000
        assert chunker.chunk_overlap == 200


class TestChunking:
    def test_empty_and_blank_text_produce_no_chunks(self) -> None:
        chunker = TextChunker(chunk_size=100, chunk_overlap=10)
        assert chunker.chunk("") == []
        assert chunker.chunk("   \n\n ") == []

    def test_short_text_is_single_chunk(self) -> None:
        chunks = TextChunker(chunk_size=100, chunk_overlap=10).chunk("hello world")
        assert len(chunks) == 1
        assert chunks[0].text == "hello world"
        assert chunks[0].metadata == {"chunk_index": 0}

    def test_chunks_never_exceed_size(self) -> None:
        chunker = TextChunker(chunk_size=100, chunk_overlap=20)
        chunks = chunker.chunk(_numbered_words(400))
        assert len(chunks) > 1
        assert all(len(c.text) <= 100 for c in chunks)
        assert all(c.text for c in chunks)

    def test_chunk_indices_are_sequential(self) -> None:
        chunks = TextChunker(chunk_size=50, chunk_overlap=10).chunk(_numbered_words(200))
        assert [c.metadata["chunk_index"] for c in chunks] == list(range(len(chunks)))

    def test_consecutive_chunks_overlap(self) -> None:
        chunks = TextChunker(chunk_size=100, chunk_overlap=20).chunk(_numbered_words(400))
        for previous, current in zip(chunks, chunks[1:]):
            last_word = previous.text.split()[-1]
            assert last_word in current.text.split()

    def test_zero_overlap_covers_text_exactly_once(self) -> None:
        text = _numbered_words(300)
        chunks = TextChunker(chunk_size=80, chunk_overlap=0).chunk(text)
        words = [w for c in chunks for w in c.text.split()]
        assert words == text.split()

    def test_prefers_paragraph_boundaries(self) -> None:
        text = "A" * 50 + "\n\n" + "B" * 50
        chunks = TextChunker(chunk_size=60, chunk_overlap=0).chunk(text)
        assert [c.text for c in chunks] == ["A" * 50, "B" * 50]

    def test_unbroken_text_falls_back_to_characters(self) -> None:
        chunks = TextChunker(chunk_size=100, chunk_overlap=10).chunk("x" * 250)
        assert chunks[0].text == "x" * 100
        assert all(len(c.text) <= 100 for c in chunks)

    def test_deterministic(self) -> None:
        chunker = TextChunker(chunk_size=64, chunk_overlap=16)
        text = "Para one. " * 20 + "\n\n" + "Para two line\n" * 10
        first = [c.text for c in chunker.chunk(text)]
        second = [c.text for c in chunker.chunk(text)]
        assert first == second

    def test_iter_chunks_restarts(self) -> None:
        chunker = TextChunker(chunk_size=40, chunk_overlap=5)
        text = _numbered_words(60)
        assert list(chunker.iter_chunks(text)) == list(chunker.iter_chunks(text))
