"""
SQLite implementation of the TypeRepository port (read-only).
"""

from typing import List, Optional
from uuid import UUID

from app.domain.entities import BookType
from app.domain.ports import TypeRepository

from .sqlite_database import SqliteDatabase
from .sqlite_mappers import row_to_type


class SqliteTypeRepository(TypeRepository):
    def __init__(self, db: SqliteDatabase) -> None:
        self._db = db

    def find_by_name(self, name: str) -> Optional[BookType]:
        """Case-insensitive lookup; stored names are lowercase."""
        if not name or not name.strip():
            return None
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM types WHERE name = ?", (name.strip().lower(),)
            ).fetchone()
            return row_to_type(row) if row else None

    def find_by_id(self, type_id: UUID) -> Optional[BookType]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM types WHERE id = ?", (str(type_id),)
            ).fetchone()
            return row_to_type(row) if row else None

    def find_all(self) -> List[BookType]:
        with self._db.connect() as conn:
            rows = conn.execute("SELECT * FROM types ORDER BY name").fetchall()
            return [row_to_type(row) for row in rows]

    def count(self) -> int:
        with self._db.connect() as conn:
            result = conn.execute("SELECT COUNT(*) AS cnt FROM types").fetchone()
            return result["cnt"]
