"""Abstract base class for chat-session persistence.

Every read is scoped by user id: a session owned by someone else is
indistinguishable from one that does not exist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docchat.models.chat import ChatSession


class ISessionStore(ABC):
    """Contract for storing :class:`ChatSession` documents."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if needed.  Called once at startup."""

    @abstractmethod
    async def create(self, user_id: str) -> ChatSession:
        """Create and persist an empty session for *user_id*."""

    @abstractmethod
    async def get(self, session_id: str, user_id: str) -> ChatSession | None:
        """Return the session if it exists AND belongs to *user_id*, else ``None``."""

    @abstractmethod
    async def save(self, session: ChatSession) -> None:
        """Persist the whole session (messages embedded).  Last write wins."""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[ChatSession]:
        """Return the user's sessions, most recently updated first."""
