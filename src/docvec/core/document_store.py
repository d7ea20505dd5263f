"""
SQLite-backed document store for conversation threads, messages and
application records.

A DocumentStore is an explicit handle: open it, use it, close it (or use it
as a context manager). It never touches the vector index.
"""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from ..util.logging import logger
from ..vector.errors import ClosedError, InvalidArgumentError, NotFoundError
from .schema import AppRecord, Message, Thread

_SCHEMA = [
    '''
    CREATE TABLE IF NOT EXISTS threads (
        id TEXT PRIMARY KEY,
        resource_id TEXT NOT NULL,
        title TEXT,
        metadata TEXT,      -- JSON object
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS messages (
        id TEXT PRIMARY KEY,
        thread_id TEXT NOT NULL,
        role TEXT NOT NULL,
        type TEXT NOT NULL,
        content TEXT NOT NULL,  -- JSON array of parts
        metadata TEXT,          -- JSON object
        created_at TEXT NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS records (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        data TEXT,          -- JSON object
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        expires_at TEXT
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_threads_resource_id ON threads(resource_id, created_at)',
    'CREATE INDEX IF NOT EXISTS idx_messages_thread_id ON messages(thread_id, created_at)',
    'CREATE INDEX IF NOT EXISTS idx_records_type ON records(type)',
]

REQUIRED_TABLES = ['threads', 'messages', 'records']


def _coerce(model_cls, value: Union[BaseModel, Mapping[str, Any]]):
    if isinstance(value, model_cls):
        return value
    try:
        return model_cls.model_validate(value)
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid {model_cls.__name__}: {e}") from e


def _ts(value: Optional[datetime]) -> Optional[str]:
    """UTC ISO-8601 text, so timestamps sort correctly as strings."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _dumps(value: Any, what: str) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"{what} is not JSON serializable: {e}") from e


class DocumentStore:
    """Persists threads, messages and app records in one SQLite database."""

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(db_path, check_same_thread=False)
        self._lock = threading.RLock()
        self.init_db()
        logger.log_document_operation("open", db_path)

    @contextmanager
    def _cursor(self) -> Generator[sqlite3.Cursor, None, None]:
        """Cursor inside a transaction: commit on success, rollback on error."""
        with self._lock:
            if self._conn is None:
                raise ClosedError("document store is closed")
            cursor = self._conn.cursor()
            try:
                yield cursor
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise
            finally:
                cursor.close()

    def init_db(self) -> None:
        """Initialize the database with required tables."""
        with self._cursor() as cursor:
            for statement in _SCHEMA:
                cursor.execute(statement)

            # Databases created before message metadata existed
            cursor.execute("PRAGMA table_info(messages)")
            columns = [row[1] for row in cursor.fetchall()]
            if 'metadata' not in columns:
                cursor.execute("ALTER TABLE messages ADD COLUMN metadata TEXT")
                logger.info(f"Added metadata column to messages table in {self.db_path}")

    def health_check(self) -> bool:
        """True when the store is open and all required tables exist."""
        try:
            with self._cursor() as cursor:
                cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
                table_names = [row[0] for row in cursor.fetchall()]
        except (ClosedError, sqlite3.Error):
            return False
        return all(table in table_names for table in REQUIRED_TABLES)

    # Threads

    def save_thread(self, thread: Union[Thread, Mapping[str, Any]]) -> Thread:
        """Insert or replace a thread by id. created_at of an existing thread is kept."""
        thread = _coerce(Thread, thread)
        metadata = _dumps(thread.metadata, f"metadata of thread '{thread.id}'")
        with self._cursor() as cursor:
            cursor.execute(
                '''
                INSERT INTO threads (id, resource_id, title, metadata, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    resource_id = excluded.resource_id,
                    title = excluded.title,
                    metadata = excluded.metadata,
                    updated_at = excluded.updated_at
                ''',
                (
                    thread.id,
                    thread.resource_id,
                    thread.title,
                    metadata,
                    _ts(thread.created_at),
                    _ts(thread.updated_at),
                ),
            )
        logger.log_document_operation("save_thread", thread.id, {"resource_id": thread.resource_id})
        return self.get_thread(thread.id)

    def get_thread(self, thread_id: str) -> Optional[Thread]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT id, resource_id, title, metadata, created_at, updated_at FROM threads WHERE id = ?",
                (thread_id,),
            )
            row = cursor.fetchone()
        return self._row_to_thread(row) if row else None

    def get_threads_by_resource_id(self, resource_id: str) -> List[Thread]:
        with self._cursor() as cursor:
            cursor.execute(
                '''
                SELECT id, resource_id, title, metadata, created_at, updated_at
                FROM threads WHERE resource_id = ?
                ORDER BY created_at, rowid
                ''',
                (resource_id,),
            )
            rows = cursor.fetchall()
        return [self._row_to_thread(row) for row in rows]

    def delete_thread(self, thread_id: str) -> None:
        """Delete a thread and all of its messages."""
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM messages WHERE thread_id = ?", (thread_id,))
            n_messages = cursor.rowcount
            cursor.execute("DELETE FROM threads WHERE id = ?", (thread_id,))
        logger.log_document_operation("delete_thread", thread_id, {"messages_deleted": n_messages})

    @staticmethod
    def _row_to_thread(row) -> Thread:
        id_, resource_id, title, metadata, created_at, updated_at = row
        return Thread(
            id=id_,
            resource_id=resource_id,
            title=title or '',
            metadata=json.loads(metadata) if metadata else {},
            created_at=datetime.fromisoformat(created_at),
            updated_at=datetime.fromisoformat(updated_at),
        )

    # Messages

    def save_messages(self, messages: Iterable[Union[Message, Mapping[str, Any]]]) -> List[Message]:
        """
        Save a batch of messages atomically.

        Every message is validated and every referenced thread must exist
        before anything is written.

        Raises:
            InvalidArgumentError: If a message fails validation
            NotFoundError: If a message references an unknown thread
        """
        messages = [_coerce(Message, m) for m in messages]
        if not messages:
            return []

        rows = [
            (
                m.id,
                m.thread_id,
                m.role,
                m.type,
                _dumps([part.model_dump(exclude_none=True) for part in m.content], f"content of message '{m.id}'"),
                _dumps(m.metadata, f"metadata of message '{m.id}'"),
                _ts(m.created_at),
            )
            for m in messages
        ]
        thread_ids = sorted({m.thread_id for m in messages})
        now = _ts(datetime.now(timezone.utc))
        with self._cursor() as cursor:
            placeholders = ",".join("?" for _ in thread_ids)
            cursor.execute(f"SELECT id FROM threads WHERE id IN ({placeholders})", thread_ids)
            found = {row[0] for row in cursor.fetchall()}
            missing = [t for t in thread_ids if t not in found]
            if missing:
                logger.log_document_operation("save_messages", ",".join(missing), {"error": "unknown thread"}, status="rejected")
                raise NotFoundError(f"thread(s) do not exist: {missing}", name=missing[0])

            cursor.executemany(
                '''
                INSERT OR REPLACE INTO messages (id, thread_id, role, type, content, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ''',
                rows,
            )
            cursor.executemany(
                "UPDATE threads SET updated_at = ? WHERE id = ?",
                [(now, t) for t in thread_ids],
            )

        logger.log_document_operation("save_messages", ",".join(thread_ids), {"count": len(messages)})
        return messages

    def get_messages(self, thread_id: str, limit: Optional[int] = None) -> List[Message]:
        """Messages of a thread, oldest first. ``limit`` keeps only the most recent N."""
        if limit is not None and limit <= 0:
            raise InvalidArgumentError(f"limit must be positive, got {limit}")

        with self._cursor() as cursor:
            cursor.execute(
                '''
                SELECT id, thread_id, role, type, content, metadata, created_at
                FROM messages WHERE thread_id = ?
                ORDER BY created_at, rowid
                ''',
                (thread_id,),
            )
            rows = cursor.fetchall()

        if limit is not None:
            rows = rows[-limit:]
        return [
            Message(
                id=id_,
                thread_id=tid,
                role=role,
                type=type_,
                content=json.loads(content),
                metadata=json.loads(metadata) if metadata else {},
                created_at=datetime.fromisoformat(created_at),
            )
            for id_, tid, role, type_, content, metadata, created_at in rows
        ]

    # Application records

    def save_record(self, record: Union[AppRecord, Mapping[str, Any]]) -> AppRecord:
        record = _coerce(AppRecord, record)
        data = _dumps(record.data, f"data of record '{record.id}'")
        with self._cursor() as cursor:
            cursor.execute(
                '''
                INSERT INTO records (id, type, data, created_at, updated_at, expires_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    type = excluded.type,
                    data = excluded.data,
                    updated_at = excluded.updated_at,
                    expires_at = excluded.expires_at
                ''',
                (
                    record.id,
                    record.type,
                    data,
                    _ts(record.created_at),
                    _ts(record.updated_at),
                    _ts(record.expires_at),
                ),
            )
        logger.log_document_operation("save_record", record.id, {"type": record.type})
        return record

    def get_record(self, record_id: str) -> Optional[AppRecord]:
        """Get a record by id; expired records are treated as absent."""
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT id, type, data, created_at, updated_at, expires_at FROM records WHERE id = ?",
                (record_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        record = self._row_to_record(row)
        return None if record.is_expired() else record

    def list_records(self, type: Optional[str] = None) -> List[AppRecord]:
        with self._cursor() as cursor:
            if type is None:
                cursor.execute(
                    "SELECT id, type, data, created_at, updated_at, expires_at FROM records ORDER BY created_at, rowid"
                )
            else:
                cursor.execute(
                    '''
                    SELECT id, type, data, created_at, updated_at, expires_at
                    FROM records WHERE type = ? ORDER BY created_at, rowid
                    ''',
                    (type,),
                )
            rows = cursor.fetchall()
        records = [self._row_to_record(row) for row in rows]
        return [r for r in records if not r.is_expired()]

    def delete_record(self, record_id: str) -> None:
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM records WHERE id = ?", (record_id,))
        logger.log_document_operation("delete_record", record_id)

    @staticmethod
    def _row_to_record(row) -> AppRecord:
        id_, type_, data, created_at, updated_at, expires_at = row
        return AppRecord(
            id=id_,
            type=type_,
            data=json.loads(data) if data else {},
            created_at=datetime.fromisoformat(created_at),
            updated_at=datetime.fromisoformat(updated_at),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        )

    # Lifecycle

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.log_document_operation("close", self.db_path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
