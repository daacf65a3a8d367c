"""Application services: ingestion, retrieval, answer generation and chat."""

from docchat.services.answer_generator import AnswerGenerator, split_for_streaming
from docchat.services.chat_service import ChatService
from docchat.services.retrieval_service import RetrievalService, build_lexical_pattern

__all__ = [
    "AnswerGenerator",
    "ChatService",
    "RetrievalService",
    "build_lexical_pattern",
    "split_for_streaming",
]
