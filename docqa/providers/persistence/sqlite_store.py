"""SQLite-backed document, chat-history and quota store.

Persists the ``users``, ``documents`` and ``chat_history`` tables to a
local SQLite database (``data/docqa.db`` by default) using ``aiosqlite``.
Every operation opens its own short-lived connection, so the store holds
no state between requests beyond the database path.

Quota increments run inside ``BEGIN IMMEDIATE`` so the write lock is
taken before the user row is read: concurrent increments for the same
user serialize at the database and cannot both pass the ceiling check.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite
import structlog

from docqa.interfaces.document_store import IDocumentStore
from docqa.models.documents import ChatTurn, Document, PlanTier, QuotaCounter, UserQuota

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/docqa.db")

# Seconds a writer waits for the database lock before SQLite gives up.
_BUSY_TIMEOUT_SECONDS = 30.0

_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

_CREATE_TABLES_SQL = [
    f"""\
CREATE TABLE IF NOT EXISTS users (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT    NOT NULL UNIQUE,
    name            TEXT,
    plan_status     TEXT    NOT NULL DEFAULT 'free' CHECK (plan_status IN ('free', 'paid')),
    pdf_uploads     INTEGER NOT NULL DEFAULT 0,
    question_count  INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL DEFAULT ({_NOW_SQL}),
    updated_at      TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS documents (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT    NOT NULL,
    filename    TEXT    NOT NULL,
    content     TEXT    NOT NULL,
    created_at  TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS chat_history (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id      TEXT    NOT NULL,
    document_id  INTEGER REFERENCES documents(id),
    question     TEXT    NOT NULL,
    answer       TEXT    NOT NULL,
    created_at   TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_user ON documents(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_chat_history_user_doc ON chat_history(user_id, document_id);",
]

_USER_COLUMNS = (
    "user_id, name, plan_status, pdf_uploads, question_count, created_at, updated_at"
)

_INSERT_USER_SQL = """\
INSERT INTO users (user_id, name) VALUES (?, ?)
ON CONFLICT(user_id) DO NOTHING;
"""

_SELECT_USER_SQL = f"SELECT {_USER_COLUMNS} FROM users WHERE user_id = ?;"

# One conditional UPDATE per counter: paid users always pass, free users
# pass only while below the ceiling.  Column names come from the enum,
# never from caller input.
_INCREMENT_SQL: dict[QuotaCounter, str] = {
    counter: (
        f"UPDATE users SET {counter.value} = {counter.value} + 1, updated_at = {_NOW_SQL} "
        f"WHERE user_id = ? AND (plan_status = 'paid' OR {counter.value} < ?);"
    )
    for counter in QuotaCounter
}

_UPDATE_TIER_SQL = f"UPDATE users SET plan_status = ?, updated_at = {_NOW_SQL} WHERE user_id = ?;"

_UPDATE_NAME_SQL = f"UPDATE users SET name = ?, updated_at = {_NOW_SQL} WHERE user_id = ?;"

_INSERT_DOCUMENT_SQL = "INSERT INTO documents (user_id, filename, content) VALUES (?, ?, ?);"

_SELECT_DOCUMENT_SQL = """\
SELECT id, user_id, filename, content, created_at
FROM documents
WHERE id = ? AND user_id = ?;
"""

_INSERT_CHAT_SQL = """\
INSERT INTO chat_history (user_id, document_id, question, answer) VALUES (?, ?, ?, ?);
"""

_SELECT_HISTORY_SQL = """\
SELECT ch.id, ch.user_id, ch.document_id, ch.question, ch.answer, ch.created_at,
       d.filename
FROM chat_history ch
LEFT JOIN documents d ON d.id = ch.document_id
WHERE ch.user_id = ?{document_clause}
ORDER BY ch.created_at ASC, ch.id ASC;
"""


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed persistence for documents, chat turns and user quotas."""

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        busy_timeout: float = _BUSY_TIMEOUT_SECONDS,
    ) -> None:
        self._db_path = Path(db_path)
        self._busy_timeout = busy_timeout

    def _connect(self) -> aiosqlite.Connection:
        # isolation_level=None: transactions are opened explicitly, so
        # BEGIN IMMEDIATE is not pre-empted by an implicit deferred BEGIN.
        return aiosqlite.connect(
            str(self._db_path),
            timeout=self._busy_timeout,
            isolation_level=None,
        )

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
        logger.info("document_store_initialized", path=str(self._db_path))

    async def close(self) -> None:
        """No pooled connections are held; present for lifespan symmetry."""
        logger.debug("document_store_closed", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Users / quota
    # ------------------------------------------------------------------

    async def get_or_create_user(self, user_id: str, name: str | None = None) -> UserQuota:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            await db.execute(_INSERT_USER_SQL, (user_id, name))
            cursor = await db.execute(_SELECT_USER_SQL, (user_id,))
            row = await cursor.fetchone()
        return UserQuota(**dict(row))

    async def increment_if_allowed(
        self,
        user_id: str,
        counter: QuotaCounter,
        free_ceiling: int,
    ) -> UserQuota | None:
        """Create-if-absent then conditionally increment, in one write transaction."""
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            await db.execute("BEGIN IMMEDIATE;")
            try:
                await db.execute(_INSERT_USER_SQL, (user_id, None))
                cursor = await db.execute(_INCREMENT_SQL[counter], (user_id, free_ceiling))
                incremented = cursor.rowcount == 1
                row = None
                if incremented:
                    cursor = await db.execute(_SELECT_USER_SQL, (user_id,))
                    row = await cursor.fetchone()
                await db.execute("COMMIT;")
            except BaseException:
                await db.execute("ROLLBACK;")
                raise

        if row is None:
            return None
        return UserQuota(**dict(row))

    async def set_plan_tier(self, user_id: str, tier: PlanTier) -> UserQuota:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            await db.execute(_INSERT_USER_SQL, (user_id, None))
            await db.execute(_UPDATE_TIER_SQL, (tier.value, user_id))
            cursor = await db.execute(_SELECT_USER_SQL, (user_id,))
            row = await cursor.fetchone()
        logger.info("plan_tier_updated", user_id=user_id, plan_status=tier.value)
        return UserQuota(**dict(row))

    async def update_user_name(self, user_id: str, name: str) -> UserQuota:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            await db.execute(_INSERT_USER_SQL, (user_id, name))
            await db.execute(_UPDATE_NAME_SQL, (name, user_id))
            cursor = await db.execute(_SELECT_USER_SQL, (user_id,))
            row = await cursor.fetchone()
        return UserQuota(**dict(row))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, user_id: str, filename: str, content: str) -> Document:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_INSERT_DOCUMENT_SQL, (user_id, filename, content))
            document_id = cursor.lastrowid
            cursor = await db.execute(_SELECT_DOCUMENT_SQL, (document_id, user_id))
            row = await cursor.fetchone()

        logger.info(
            "document_stored",
            user_id=user_id,
            document_id=document_id,
            filename=filename,
            text_length=len(content),
        )
        return Document(**dict(row))

    async def get_document(self, user_id: str, document_id: int) -> Document | None:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_DOCUMENT_SQL, (document_id, user_id))
            row = await cursor.fetchone()
        return Document(**dict(row)) if row else None

    # ------------------------------------------------------------------
    # Chat history
    # ------------------------------------------------------------------

    async def save_chat_turn(
        self,
        user_id: str,
        document_id: int | None,
        question: str,
        answer: str,
    ) -> ChatTurn:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_INSERT_CHAT_SQL, (user_id, document_id, question, answer))
            turn_id = cursor.lastrowid
            cursor = await db.execute(
                "SELECT id, user_id, document_id, question, answer, created_at "
                "FROM chat_history WHERE id = ?",
                (turn_id,),
            )
            row = await cursor.fetchone()
        return ChatTurn(**dict(row))

    async def get_chat_history(
        self,
        user_id: str,
        document_id: int | None = None,
    ) -> list[ChatTurn]:
        """Return chat turns oldest first, joined with the document filename."""
        params: tuple = (user_id,)
        document_clause = ""
        if document_id is not None:
            document_clause = " AND ch.document_id = ?"
            params = (user_id, document_id)

        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                _SELECT_HISTORY_SQL.format(document_clause=document_clause),
                params,
            )
            rows = await cursor.fetchall()
        return [ChatTurn(**dict(r)) for r in rows]

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
        return "sqlite"
