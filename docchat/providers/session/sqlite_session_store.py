"""SQLite-backed chat session store.

Each session is one row in ``chat_sessions``: the owning ``user_id`` is a
column so reads can be scoped in SQL, and the whole session (messages
embedded) is serialised to ``state_json`` with pydantic.  Saves are
whole-row upserts, so concurrent turns on one session resolve as last
write wins.
"""

from __future__ import annotations

import uuid
from pathlib import Path

import aiosqlite
import structlog

from docchat.interfaces.session_store import ISessionStore
from docchat.models.chat import ChatSession
from docchat.utils.logging import get_logger

_DEFAULT_DB_PATH = Path("data/docchat.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS chat_sessions (
    session_id TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    state_json TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

_CREATE_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_chat_sessions_user_updated "
    "ON chat_sessions(user_id, updated_at);"
)

_UPSERT_SQL = """\
INSERT INTO chat_sessions (session_id, user_id, state_json, created_at, updated_at)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(session_id)
DO UPDATE SET state_json = excluded.state_json,
              updated_at = excluded.updated_at;
"""

_SELECT_SQL = "SELECT state_json FROM chat_sessions WHERE session_id = ? AND user_id = ?;"

_LIST_SQL = """\
SELECT state_json FROM chat_sessions
WHERE user_id = ?
ORDER BY updated_at DESC;
"""


class SQLiteSessionStore(ISessionStore):
    """Per-user chat sessions persisted to SQLite.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file (shared with the document
        repository by default).
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            await db.execute(_CREATE_INDEX_SQL)
            await db.commit()
        self._logger.info("session_store_initialized", db_path=str(self._db_path))

    async def create(self, user_id: str) -> ChatSession:
        session = ChatSession(session_id=uuid.uuid4().hex, user_id=user_id)
        await self.save(session)
        self._logger.info("session_created", session_id=session.session_id, user_id=user_id)
        return session

    async def get(self, session_id: str, user_id: str) -> ChatSession | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_SQL, (session_id, user_id))
            row = await cursor.fetchone()
        if row is None:
            return None
        return ChatSession.model_validate_json(row[0])

    async def save(self, session: ChatSession) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _UPSERT_SQL,
                (
                    session.session_id,
                    session.user_id,
                    session.model_dump_json(),
                    session.created_at.isoformat(timespec="microseconds"),
                    session.updated_at.isoformat(timespec="microseconds"),
                ),
            )
            await db.commit()

    async def list_for_user(self, user_id: str) -> list[ChatSession]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_LIST_SQL, (user_id,))
            rows = await cursor.fetchall()
        return [ChatSession.model_validate_json(r[0]) for r in rows]
