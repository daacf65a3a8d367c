"""Chat turn orchestration.

One turn is strictly sequential:

    resolve session -> append + persist user message -> retrieve context
    -> take history window -> generate -> append + persist assistant message

The user's message is saved before any external call, so it survives a
retrieval or generation failure.  Sessions are scoped to their owner: an
unknown or foreign ``session_id`` silently starts a new session instead of
leaking whether the id exists.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

import structlog

from docchat.models.chat import (
    ChatSession,
    ChatTurnResult,
    Message,
    MessageRole,
    StreamEvent,
    StreamEventType,
)
from docchat.services.answer_generator import split_for_streaming
from docchat.utils.errors import InputValidationError, SessionNotFoundError

if TYPE_CHECKING:
    from docchat.interfaces.session_store import ISessionStore
    from docchat.services.answer_generator import AnswerGenerator
    from docchat.services.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)


class ChatService:
    """Runs chat turns and exposes a user's session history.

    Parameters
    ----------
    session_store:
        Persists sessions.
    retrieval:
        Supplies grounding context for each question.
    generator:
        Produces the answer text and citations.
    history_window:
        Number of most recent messages (including the new user message)
        passed to the generator.
    stream_fragment_size:
        Characters per ``message`` event in :meth:`stream_turn`.
    """

    def __init__(
        self,
        session_store: ISessionStore,
        retrieval: RetrievalService,
        generator: AnswerGenerator,
        history_window: int = 10,
        stream_fragment_size: int = 60,
    ) -> None:
        self._sessions = session_store
        self._retrieval = retrieval
        self._generator = generator
        self._history_window = history_window
        self._fragment_size = stream_fragment_size

    async def run_turn(
        self,
        user_id: str,
        message: str,
        session_id: str | None = None,
    ) -> ChatTurnResult:
        """Answer *message* within the caller's session.

        Raises
        ------
        InputValidationError
            If *message* is empty or blank.
        """
        if not message or not message.strip():
            raise InputValidationError(message="message is required")

        session = await self._resolve_session(user_id, session_id)
        session = session.with_message(Message(role=MessageRole.USER, content=message))
        await self._sessions.save(session)

        context = await self._retrieval.retrieve(message)
        history = session.recent_messages(self._history_window)
        answer = await self._generator.generate(context, history, message)

        session = session.with_message(Message(role=MessageRole.ASSISTANT, content=answer.text))
        await self._sessions.save(session)

        logger.info(
            "chat_turn_complete",
            session_id=session.session_id,
            user_id=user_id,
            context_chunks=len(context),
            messages=len(session.messages),
        )
        return ChatTurnResult(
            session_id=session.session_id,
            answer=answer.text,
            citations=answer.citations,
            context=context,
        )

    async def stream_turn(
        self,
        user_id: str,
        message: str,
        session_id: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Run a turn, then yield ``meta``, the answer in fragments, and ``done``."""
        result = await self.run_turn(user_id, message, session_id)
        yield StreamEvent(
            event=StreamEventType.META,
            data={
                "session_id": result.session_id,
                "citations": [c.model_dump(mode="json") for c in result.citations],
            },
        )
        for fragment in split_for_streaming(result.answer, self._fragment_size):
            yield StreamEvent(event=StreamEventType.MESSAGE, data={"text": fragment})
        yield StreamEvent(event=StreamEventType.DONE, data={})

    async def list_sessions(self, user_id: str) -> list[ChatSession]:
        """The user's sessions, most recently updated first."""
        return await self._sessions.list_for_user(user_id)

    async def get_session(self, user_id: str, session_id: str) -> ChatSession:
        """Return one of the user's sessions.

        Raises
        ------
        SessionNotFoundError
            If the session does not exist or belongs to someone else.
        """
        session = await self._sessions.get(session_id, user_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    async def _resolve_session(self, user_id: str, session_id: str | None) -> ChatSession:
        if session_id:
            existing = await self._sessions.get(session_id, user_id)
            if existing is not None:
                return existing
            logger.info("session_not_resolved", requested_session_id=session_id, user_id=user_id)
        return await self._sessions.create(user_id)
