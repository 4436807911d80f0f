"""
SQLite implementation of the AuthorRepository port.

find_or_create_many() is race-safe without any in-process lock: missing
names are inserted with ON CONFLICT DO NOTHING and the final answer always
comes from a re-read, so whichever writer wins, every caller sees the same
row.
"""

import logging
import sqlite3
from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from app.domain.entities import Author
from app.domain.errors import PersistenceError, UnresolvedRelationError
from app.domain.ports import AuthorRepository

from .sqlite_database import SqliteDatabase, placeholders
from .sqlite_mappers import row_to_author

logger = logging.getLogger(__name__)


class SqliteAuthorRepository(AuthorRepository):
    """Authors keyed by their exact (trimmed, case-sensitive) name."""

    def __init__(self, db: SqliteDatabase) -> None:
        self._db = db

    def _select_by_names(
        self, conn: sqlite3.Connection, names: Sequence[str]
    ) -> List[Author]:
        rows = conn.execute(
            f"SELECT * FROM authors WHERE name IN ({placeholders(len(names))})",
            list(names),
        ).fetchall()
        return [row_to_author(row) for row in rows]

    def find_by_names(self, names: Sequence[str]) -> List[Author]:
        normalized = list(dict.fromkeys(name.strip() for name in names))
        if not normalized:
            return []
        try:
            with self._db.connect() as conn:
                return self._select_by_names(conn, normalized)
        except sqlite3.Error as e:
            raise PersistenceError(f"Database error while reading authors: {e}") from e

    def find_or_create_many(self, names: Sequence[str]) -> List[Author]:
        """Resolve names to authors in input order, creating missing ones."""
        if not names:
            return []

        # Validate every name before touching the database
        candidates: Dict[str, Author] = {}
        ordered: List[str] = []
        for raw in names:
            author = Author.create(id=str(uuid4()), name=raw)
            candidates.setdefault(author.name, author)
            ordered.append(author.name)
        unique = list(candidates)

        try:
            with self._db.connect() as conn:
                existing = {a.name for a in self._select_by_names(conn, unique)}
                missing = [candidates[name] for name in unique if name not in existing]

                if missing:
                    with conn:
                        conn.executemany(
                            """
                            INSERT INTO authors (id, name, created_at, updated_at)
                            VALUES (?, ?, ?, ?)
                            ON CONFLICT(name) DO NOTHING
                            """,
                            [
                                (
                                    str(a.id),
                                    a.name,
                                    a.created_at.isoformat(),
                                    a.updated_at.isoformat(),
                                )
                                for a in missing
                            ],
                        )
                    logger.debug(f"Inserted up to {len(missing)} new authors")

                resolved = {a.name: a for a in self._select_by_names(conn, unique)}
        except sqlite3.Error as e:
            raise PersistenceError(f"Database error while creating authors: {e}") from e

        unresolved = [name for name in unique if name not in resolved]
        if unresolved:
            raise UnresolvedRelationError("authors", unresolved)

        return [resolved[name] for name in ordered]

    def find_by_name(self, name: str) -> Optional[Author]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM authors WHERE name = ?", (name.strip(),)
            ).fetchone()
            return row_to_author(row) if row else None

    def find_by_id(self, author_id: UUID) -> Optional[Author]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM authors WHERE id = ?", (str(author_id),)
            ).fetchone()
            return row_to_author(row) if row else None

    def find_all(self) -> List[Author]:
        with self._db.connect() as conn:
            rows = conn.execute("SELECT * FROM authors ORDER BY name").fetchall()
            return [row_to_author(row) for row in rows]

    def count(self) -> int:
        with self._db.connect() as conn:
            result = conn.execute("SELECT COUNT(*) AS cnt FROM authors").fetchone()
            return result["cnt"]
