"""
SQLite database shared by the catalog repositories.

Owns the connection settings and the schema. Every repository call opens
its own short-lived connection, so the repositories are safe to share
between threads and concurrent writers simply wait on SQLite's lock.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, UTC
from pathlib import Path
from typing import Iterator, Union
from uuid import uuid4

from app.domain.entities import DEFAULT_BOOK_TYPES
from app.domain.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT_S = 30.0

SCHEMA = """
CREATE TABLE IF NOT EXISTS types (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS authors (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_categories_name_lower
    ON categories(lower(name));

CREATE TABLE IF NOT EXISTS books (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    type_id TEXT NOT NULL REFERENCES types(id),
    format TEXT NOT NULL,
    isbn TEXT UNIQUE,
    description TEXT NOT NULL,
    available INTEGER NOT NULL DEFAULT 0,
    path TEXT,
    embedding BLOB,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS book_authors (
    book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    author_id TEXT NOT NULL REFERENCES authors(id) ON DELETE RESTRICT,
    position INTEGER NOT NULL,
    PRIMARY KEY (book_id, author_id)
);

CREATE TABLE IF NOT EXISTS book_categories (
    book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    category_id TEXT NOT NULL REFERENCES categories(id) ON DELETE RESTRICT,
    position INTEGER NOT NULL,
    PRIMARY KEY (book_id, category_id)
);

CREATE INDEX IF NOT EXISTS idx_book_authors_author ON book_authors(author_id);
CREATE INDEX IF NOT EXISTS idx_book_categories_category ON book_categories(category_id);
"""


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def placeholders(count: int) -> str:
    """'?, ?, ?' for an IN clause."""
    return ", ".join("?" * count)


class SqliteDatabase:
    """
    Connection factory and schema owner for the catalog database.

    The schema (and the default book types) is created on construction
    and is idempotent, so any number of processes may open the same file.
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        busy_timeout_s: float = DEFAULT_BUSY_TIMEOUT_S,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._busy_timeout_s = busy_timeout_s
        self._init_schema()

    @property
    def path(self) -> Path:
        return self._db_path

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """
        Open a connection with row factory and foreign keys enabled.

        The connection is closed on exit. Use `with conn:` inside the block
        to get a transaction that commits on success and rolls back on error.
        """
        conn = sqlite3.connect(str(self._db_path), timeout=self._busy_timeout_s)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        finally:
            conn.close()

    def ping(self) -> bool:
        """Readiness probe: True if a trivial query succeeds."""
        try:
            with self.connect() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    def _init_schema(self) -> None:
        """Create tables and indexes, then seed the default types."""
        try:
            with self.connect() as conn:
                conn.executescript(SCHEMA)
                with conn:
                    now = now_iso()
                    conn.executemany(
                        """
                        INSERT INTO types (id, name, created_at, updated_at)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT(name) DO NOTHING
                        """,
                        [(str(uuid4()), name, now, now) for name in DEFAULT_BOOK_TYPES],
                    )
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to initialize database schema at {self._db_path}: {e}"
            ) from e

        logger.debug(f"Database schema ready at {self._db_path}")
