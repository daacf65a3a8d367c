"""Grounded answer generation.

Builds a single prompt from the retrieved context, the recent chat history
and the user's question, sends it to the configured LLM provider under a
fixed system instruction, and attaches one citation per context chunk.
Citations describe what the model was given, not what it chose to quote.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING

import structlog

from docchat.models.chat import Citation, GeneratedAnswer, Message
from docchat.models.chunk import RetrievedContext
from docchat.utils.concurrency import bounded

if TYPE_CHECKING:
    from docchat.interfaces.llm_provider import ILLMProvider

logger = structlog.get_logger(logger_name=__name__)

_NO_CONTEXT = "No specific document context was found."
_NO_HISTORY = "(no previous messages)"


def split_for_streaming(text: str, size: int = 60) -> Iterator[str]:
    """Yield consecutive *size*-character slices of *text*.

    Joining the slices reproduces *text* exactly; the last slice may be
    shorter.  Empty text yields nothing.

    Raises
    ------
    ValueError
        If *size* is not positive.
    """
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    for start in range(0, len(text), size):
        yield text[start : start + size]


class AnswerGenerator:
    """Produces an answer grounded in retrieved passages.

    Parameters
    ----------
    llm_provider:
        Generation backend.
    temperature, max_tokens:
        Passed through to every completion call.
    timeout:
        Deadline in seconds for one completion.
    """

    SYSTEM_PROMPT = (
        "You are an AI assistant for mastewal. Answer questions about inventory "
        "and uploaded documents using the provided CONTEXT only. If the answer is "
        "not in the CONTEXT, say you do not have that information. When referencing "
        "book prices, always use ETB and keep the exact values from the CONTEXT. "
        "Be concise and helpful. Do not include source citations in the response."
    )

    def __init__(
        self,
        llm_provider: ILLMProvider,
        temperature: float = 0.3,
        max_tokens: int = 1024,
        timeout: float | None = 60.0,
    ) -> None:
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    async def generate(
        self,
        context_chunks: Sequence[RetrievedContext],
        history: Sequence[Message],
        user_message: str,
    ) -> GeneratedAnswer:
        """Ask the model and return its text with one citation per context chunk."""
        prompt = self.build_user_prompt(context_chunks, history, user_message)
        text = await bounded(
            self._llm.complete(
                system_prompt=self.SYSTEM_PROMPT,
                user_prompt=prompt,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            ),
            self._timeout,
            "generation",
        )
        citations = [
            Citation(source_id=i + 1, document_id=ctx.document_id, metadata=dict(ctx.metadata))
            for i, ctx in enumerate(context_chunks)
        ]
        logger.info(
            "answer_generated",
            provider=self._llm.get_provider_name(),
            context_chunks=len(context_chunks),
            history_messages=len(history),
            answer_chars=len(text),
        )
        return GeneratedAnswer(text=text, citations=citations)

    @staticmethod
    def build_user_prompt(
        context_chunks: Sequence[RetrievedContext],
        history: Sequence[Message],
        user_message: str,
    ) -> str:
        """Lay out CONTEXT, CHAT HISTORY and the question as one prompt."""
        if context_chunks:
            blocks = []
            for i, ctx in enumerate(context_chunks, start=1):
                source = ctx.metadata.get("source")
                label = f"[source {i}]" + (f" ({source})" if source else "")
                blocks.append(f"{label}:\n{ctx.text}")
            context_block = "\n\n".join(blocks)
        else:
            context_block = _NO_CONTEXT

        if history:
            history_block = "\n".join(f"{m.role.value.upper()}: {m.content}" for m in history)
        else:
            history_block = _NO_HISTORY

        return (
            f"CONTEXT:\n{context_block}\n\n"
            f"CHAT HISTORY:\n{history_block}\n\n"
            f"USER:\n{user_message}\n\n"
            "ASSISTANT:"
        )
