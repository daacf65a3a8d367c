"""Whitespace normalisation for extracted document text."""

from __future__ import annotations

import re

_LINE_ENDINGS = re.compile(r"\r\n?")
_TRAILING_HSPACE = re.compile(r"[ \t]+\n")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_HSPACE_RUNS = re.compile(r"[ \t]{2,}")


def clean_text(text: str | None) -> str:
    """Normalise whitespace in *text*.

    Steps, in order: unify line endings to ``\\n``; drop spaces and tabs
    before a newline; collapse three or more newlines to a paragraph break
    (two); collapse runs of spaces/tabs to one space; strip both ends.
    ``None`` or empty input yields ``""``.
    """
    if not text:
        return ""
    text = _LINE_ENDINGS.sub("\n", text)
    text = _TRAILING_HSPACE.sub("\n", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    text = _HSPACE_RUNS.sub(" ", text)
    return text.strip()
