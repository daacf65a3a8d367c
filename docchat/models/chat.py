"""Chat session, message, citation and streaming models.

:class:`ChatSession` is frozen: appending a message returns a new session
via :meth:`ChatSession.with_message`, so a message can never be edited
after it is appended.  Sessions are persisted whole (messages embedded)
by the session store.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from docchat.models.chunk import ChunkMetadata, RetrievedContext
from docchat.models.document import utc_now


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """One turn within a session."""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str
    created_at: datetime = Field(default_factory=utc_now)


class ChatSession(BaseModel):
    """One conversation thread, owned by exactly one user."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: str
    messages: tuple[Message, ...] = ()
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def with_message(self, message: Message) -> ChatSession:
        """Return a copy of this session with *message* appended."""
        # Keep creation times monotonic even if the wall clock steps back.
        if self.messages and message.created_at < self.messages[-1].created_at:
            message = message.model_copy(update={"created_at": self.messages[-1].created_at})
        return self.model_copy(
            update={
                "messages": (*self.messages, message),
                "updated_at": max(message.created_at, self.updated_at),
            }
        )

    def recent_messages(self, window: int) -> list[Message]:
        """Return the last *window* messages, oldest first."""
        if window <= 0:
            return []
        return list(self.messages[-window:])


class Citation(BaseModel):
    """Reference from an answer back to one supplied context chunk."""

    model_config = ConfigDict(frozen=True)

    source_id: int = Field(ge=1, description="1-based position in the context list.")
    document_id: str | None = None
    metadata: ChunkMetadata = Field(default_factory=dict)


class GeneratedAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    citations: list[Citation] = Field(default_factory=list)


class ChatTurnResult(BaseModel):
    """Everything a caller needs after one completed chat turn."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    answer: str
    citations: list[Citation] = Field(default_factory=list)
    context: list[RetrievedContext] = Field(default_factory=list)


class StreamEventType(str, Enum):
    META = "meta"
    MESSAGE = "message"
    DONE = "done"
    ERROR = "error"


class StreamEvent(BaseModel):
    """One Server-Sent Event emitted by the streaming chat entry point."""

    model_config = ConfigDict(frozen=True)

    event: StreamEventType
    data: dict[str, Any] = Field(default_factory=dict)

    def encode(self) -> str:
        """Render as one SSE frame (``event:`` line, JSON ``data:`` line, blank line)."""
        return f"event: {self.event.value}\ndata: {json.dumps(self.data, default=str)}\n\n"
