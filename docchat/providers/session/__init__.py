"""Chat session store implementations."""

from docchat.providers.session.sqlite_session_store import SQLiteSessionStore

__all__ = ["SQLiteSessionStore"]
