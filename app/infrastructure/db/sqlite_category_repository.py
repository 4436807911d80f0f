"""
SQLite implementation of the CategoryRepository port.

Names are lowercased before any lookup and the table carries a unique
index on lower(name), so "Fiction" and "FICTION" can never become two rows.
"""

import logging
import sqlite3
from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from app.domain.entities import Category
from app.domain.errors import PersistenceError, UnresolvedRelationError
from app.domain.ports import CategoryRepository

from .sqlite_database import SqliteDatabase, placeholders
from .sqlite_mappers import row_to_category

logger = logging.getLogger(__name__)


class SqliteCategoryRepository(CategoryRepository):
    def __init__(self, db: SqliteDatabase) -> None:
        self._db = db

    def _select_by_names(
        self, conn: sqlite3.Connection, names: Sequence[str]
    ) -> List[Category]:
        rows = conn.execute(
            f"SELECT * FROM categories WHERE lower(name) IN ({placeholders(len(names))})",
            list(names),
        ).fetchall()
        return [row_to_category(row) for row in rows]

    def find_by_names(self, names: Sequence[str]) -> List[Category]:
        normalized = list(dict.fromkeys(Category.normalize_name(n) for n in names))
        if not normalized:
            return []
        try:
            with self._db.connect() as conn:
                return self._select_by_names(conn, normalized)
        except sqlite3.Error as e:
            raise PersistenceError(f"Database error while reading categories: {e}") from e

    def find_or_create_many(self, names: Sequence[str]) -> List[Category]:
        """
        Resolve names to categories in input order, creating missing ones.

        Steps: read existing, insert the missing ones (conflicts ignored),
        re-read everything. The re-read is what makes concurrent callers
        converge on the same rows.
        """
        if not names:
            return []

        candidates: Dict[str, Category] = {}
        ordered: List[str] = []
        for raw in names:
            category = Category.create(id=str(uuid4()), name=raw)
            candidates.setdefault(category.name, category)
            ordered.append(category.name)
        unique = list(candidates)

        try:
            with self._db.connect() as conn:
                existing = {c.name for c in self._select_by_names(conn, unique)}
                missing = [candidates[name] for name in unique if name not in existing]

                if missing:
                    with conn:
                        conn.executemany(
                            """
                            INSERT INTO categories
                            (id, name, description, created_at, updated_at)
                            VALUES (?, ?, ?, ?, ?)
                            ON CONFLICT DO NOTHING
                            """,
                            [
                                (
                                    str(c.id),
                                    c.name,
                                    c.description,
                                    c.created_at.isoformat(),
                                    c.updated_at.isoformat(),
                                )
                                for c in missing
                            ],
                        )
                    logger.debug(f"Inserted up to {len(missing)} new categories")

                resolved = {c.name: c for c in self._select_by_names(conn, unique)}
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Database error while creating categories: {e}"
            ) from e

        unresolved = [name for name in unique if name not in resolved]
        if unresolved:
            raise UnresolvedRelationError("categories", unresolved)

        return [resolved[name] for name in ordered]

    def find_by_name(self, name: str) -> Optional[Category]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE lower(name) = ?",
                (Category.normalize_name(name),),
            ).fetchone()
            return row_to_category(row) if row else None

    def find_by_id(self, category_id: UUID) -> Optional[Category]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE id = ?", (str(category_id),)
            ).fetchone()
            return row_to_category(row) if row else None

    def find_all(self) -> List[Category]:
        with self._db.connect() as conn:
            rows = conn.execute("SELECT * FROM categories ORDER BY name").fetchall()
            return [row_to_category(row) for row in rows]

    def count(self) -> int:
        with self._db.connect() as conn:
            result = conn.execute("SELECT COUNT(*) AS cnt FROM categories").fetchone()
            return result["cnt"]
