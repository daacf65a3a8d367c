"""Plain-text extraction from uploaded PDF and DOCX files.

PDFs are read with PyMuPDF (``fitz``), page by page; DOCX files with
``python-docx``, paragraph by paragraph.  Both parsers are synchronous
and run on a worker thread so a large file never stalls the event loop.
"""

from __future__ import annotations

import io
from pathlib import Path

import docx
import fitz  # PyMuPDF
import structlog

from docchat.models.document import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE, SUPPORTED_MEDIA_TYPES
from docchat.utils.concurrency import run_blocking
from docchat.utils.errors import (
    ExtractionFailedError,
    OperationTimeoutError,
    UnsupportedFormatError,
)

logger = structlog.get_logger(logger_name=__name__)

_BLOCK_SEPARATOR = "\n\n"


class TextExtractor:
    """Turns raw file bytes into plain text.

    Parameters
    ----------
    timeout:
        Deadline in seconds for a single parse.  ``None`` disables it.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    async def extract(self, data: bytes, media_type: str) -> str:
        """Return the text content of *data*.

        Raises
        ------
        UnsupportedFormatError
            If *media_type* is not PDF or DOCX.
        ExtractionFailedError
            If the parser cannot read the file.
        """
        if media_type not in SUPPORTED_MEDIA_TYPES:
            raise UnsupportedFormatError(message=f"Unsupported file type: {media_type or 'unknown'}")

        parser = self._extract_pdf if media_type == PDF_MEDIA_TYPE else self._extract_docx
        try:
            text = await run_blocking(
                parser, data, timeout=self._timeout, operation="text_extraction"
            )
        except OperationTimeoutError:
            raise
        except Exception as exc:
            logger.error("extraction_failed", media_type=media_type, error=str(exc))
            raise ExtractionFailedError(
                message=f"Could not read {self._label(media_type)} file: {exc}"
            ) from exc

        logger.debug(
            "text_extracted",
            media_type=media_type,
            input_bytes=len(data),
            output_chars=len(text),
        )
        return text

    async def extract_file(self, path: str | Path, media_type: str) -> str:
        """Read *path* from disk and extract its text."""
        file_path = Path(path)
        try:
            data = await run_blocking(file_path.read_bytes, operation="file_read")
        except OSError as exc:
            raise ExtractionFailedError(message=f"Cannot read file {file_path}: {exc}") from exc
        return await self.extract(data, media_type)

    # ------------------------------------------------------------------
    # Parsers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_pdf(data: bytes) -> str:
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            pages = [doc[i].get_text("text") for i in range(len(doc))]
        finally:
            doc.close()
        return _BLOCK_SEPARATOR.join(pages)

    @staticmethod
    def _extract_docx(data: bytes) -> str:
        document = docx.Document(io.BytesIO(data))
        return _BLOCK_SEPARATOR.join(p.text for p in document.paragraphs)

    @staticmethod
    def _label(media_type: str) -> str:
        return {PDF_MEDIA_TYPE: "PDF", DOCX_MEDIA_TYPE: "DOCX"}.get(media_type, media_type)
