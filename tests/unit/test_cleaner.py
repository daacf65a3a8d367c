"""Unit tests for the whitespace cleaner."""

from __future__ import annotations

from docchat.services.ingestion.cleaner import clean_text


class TestCleanText:
    def test_none_and_empty_yield_empty_string(self) -> None:
        assert clean_text(None) == ""
        assert clean_text("") == ""

    def test_whitespace_only_yields_empty_string(self) -> None:
        assert clean_text("  \n\n\t \r\n ") == ""

    def test_unifies_line_endings(self) -> None:
        assert clean_text("a\r\nb\rc") == "a\nb\nc"

    def test_collapses_three_or_more_newlines(self) -> None:
        assert clean_text("a\n\n\n\n\nb") == "a\n\nb"

    def test_preserves_single_paragraph_break(self) -> None:
        assert clean_text("first paragraph\n\nsecond paragraph") == (
            "first paragraph\n\nsecond paragraph"
        )

    def test_trailing_spaces_before_newline_do_not_block_collapse(self) -> None:
        assert clean_text("a  \n \n\t\n\nb") == "a\n\nb"

    def test_collapses_horizontal_space_runs(self) -> None:
        assert clean_text("Price:\t\t500    ETB") == "Price: 500 ETB"

    def test_strips_both_ends(self) -> None:
        assert clean_text("\n\n   hello world   \n") == "hello world"

    def test_idempotent(self) -> None:
        raw = "  Fikir  Eske\r\n\r\n\r\nMekabir \t \n 500 ETB  "
        once = clean_text(raw)
        assert clean_text(once) == once
