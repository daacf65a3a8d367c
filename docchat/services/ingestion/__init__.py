"""Document ingestion pipeline: extract, clean, chunk, embed, store."""

from docchat.services.ingestion.chunker import TextChunker
from docchat.services.ingestion.cleaner import clean_text
from docchat.services.ingestion.ingestion_service import IngestionService, guess_media_type
from docchat.services.ingestion.text_extractor import TextExtractor

__all__ = ["IngestionService", "TextChunker", "TextExtractor", "clean_text", "guess_media_type"]
