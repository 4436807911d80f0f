"""
SQLite implementation of the BookRepository port.

A book spans four tables (books, book_authors, book_categories and the
referenced types row). Writes touch all of them inside one transaction;
reads reassemble the entity with authors and categories in their stored
order.
"""

import logging
import sqlite3
from typing import List, Optional, Sequence
from uuid import UUID

import numpy as np

from app.domain.entities import Book
from app.domain.errors import BookNotFoundError, DuplicateISBNError, PersistenceError
from app.domain.ports import BookRepository
from app.domain.value_objects import DuplicateCheckResult, normalize_isbn

from .sqlite_database import SqliteDatabase
from .sqlite_mappers import (
    blob_to_embedding,
    book_to_row,
    embedding_to_blob,
    row_to_author,
    row_to_book,
    row_to_category,
    row_to_type,
)

logger = logging.getLogger(__name__)


def _is_isbn_conflict(error: sqlite3.IntegrityError) -> bool:
    return "books.isbn" in str(error)


class SqliteBookRepository(BookRepository):
    """
    The unique constraint on isbn applies to non-null values only: any
    number of books may have no ISBN.
    """

    def __init__(self, db: SqliteDatabase) -> None:
        self._db = db

    # =========================================================================
    # Reads
    # =========================================================================

    def _load(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Book:
        """Reassemble a Book from its row and relations."""
        type_row = conn.execute(
            "SELECT * FROM types WHERE id = ?", (row["type_id"],)
        ).fetchone()
        author_rows = conn.execute(
            """
            SELECT a.* FROM authors a
            JOIN book_authors ba ON ba.author_id = a.id
            WHERE ba.book_id = ?
            ORDER BY ba.position
            """,
            (row["id"],),
        ).fetchall()
        category_rows = conn.execute(
            """
            SELECT c.* FROM categories c
            JOIN book_categories bc ON bc.category_id = c.id
            WHERE bc.book_id = ?
            ORDER BY bc.position
            """,
            (row["id"],),
        ).fetchall()

        return row_to_book(
            row,
            book_type=row_to_type(type_row),
            authors=[row_to_author(r) for r in author_rows],
            categories=[row_to_category(r) for r in category_rows],
        )

    def check_duplicate(self, isbn: Optional[str]) -> DuplicateCheckResult:
        if not isbn:
            return DuplicateCheckResult(is_duplicate=False)

        normalized = normalize_isbn(isbn)
        if self.exists_by_isbn(normalized):
            return DuplicateCheckResult(
                is_duplicate=True,
                duplicate_type="isbn",
                message=f'A book with ISBN "{normalized}" already exists',
            )
        return DuplicateCheckResult(is_duplicate=False)

    def find_by_id(self, book_id: UUID) -> Optional[Book]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM books WHERE id = ?", (str(book_id),)
            ).fetchone()
            return self._load(conn, row) if row else None

    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM books WHERE isbn = ?", (normalize_isbn(isbn),)
            ).fetchone()
            return self._load(conn, row) if row else None

    def exists_by_isbn(self, isbn: str) -> bool:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM books WHERE isbn = ? LIMIT 1", (normalize_isbn(isbn),)
            ).fetchone()
            return row is not None

    def get_embedding(self, book_id: UUID) -> Optional[np.ndarray]:
        """Stored embedding of a book, or None if the book does not exist."""
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT embedding FROM books WHERE id = ?", (str(book_id),)
            ).fetchone()
            return blob_to_embedding(row["embedding"]) if row else None

    def count(self) -> int:
        with self._db.connect() as conn:
            result = conn.execute("SELECT COUNT(*) AS cnt FROM books").fetchone()
            return result["cnt"]

    # =========================================================================
    # Writes
    # =========================================================================

    def _write_links(self, conn: sqlite3.Connection, book: Book) -> None:
        conn.executemany(
            "INSERT INTO book_authors (book_id, author_id, position) VALUES (?, ?, ?)",
            [(str(book.id), str(a.id), i) for i, a in enumerate(book.authors)],
        )
        conn.executemany(
            "INSERT INTO book_categories (book_id, category_id, position) VALUES (?, ?, ?)",
            [(str(book.id), str(c.id), i) for i, c in enumerate(book.categories)],
        )

    def save(self, book: Book, embedding: Sequence[float]) -> Book:
        """Insert the book row, its embedding and all links in one transaction."""
        row = book_to_row(book)
        row["embedding"] = embedding_to_blob(embedding)

        try:
            with self._db.connect() as conn:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO books
                        (id, title, type_id, format, isbn, description, available,
                         path, embedding, created_at, updated_at)
                        VALUES
                        (:id, :title, :type_id, :format, :isbn, :description, :available,
                         :path, :embedding, :created_at, :updated_at)
                        """,
                        row,
                    )
                    self._write_links(conn, book)
        except sqlite3.IntegrityError as e:
            if _is_isbn_conflict(e):
                raise DuplicateISBNError(row["isbn"]) from e
            raise PersistenceError(f"Book violates catalog constraints: {e}") from e
        except sqlite3.Error as e:
            raise PersistenceError(f"Database error while saving book: {e}") from e

        logger.debug(
            f"Saved book {book.id} with {len(book.authors)} authors, "
            f"{len(book.categories)} categories"
        )
        return book

    def update(self, book: Book) -> Book:
        """Rewrite the row and links of an existing book; the embedding is kept."""
        row = book_to_row(book)

        try:
            with self._db.connect() as conn:
                with conn:
                    cursor = conn.execute(
                        """
                        UPDATE books SET
                            title = :title,
                            type_id = :type_id,
                            format = :format,
                            isbn = :isbn,
                            description = :description,
                            available = :available,
                            path = :path,
                            updated_at = :updated_at
                        WHERE id = :id
                        """,
                        row,
                    )
                    if cursor.rowcount == 0:
                        raise BookNotFoundError(book.id)

                    conn.execute("DELETE FROM book_authors WHERE book_id = ?", (row["id"],))
                    conn.execute(
                        "DELETE FROM book_categories WHERE book_id = ?", (row["id"],)
                    )
                    self._write_links(conn, book)
        except sqlite3.IntegrityError as e:
            if _is_isbn_conflict(e):
                raise DuplicateISBNError(row["isbn"]) from e
            raise PersistenceError(f"Book violates catalog constraints: {e}") from e
        except sqlite3.Error as e:
            raise PersistenceError(f"Database error while updating book: {e}") from e

        return book

    def delete(self, book_id: UUID) -> bool:
        """Delete a book; its links go with it (ON DELETE CASCADE)."""
        try:
            with self._db.connect() as conn:
                with conn:
                    cursor = conn.execute(
                        "DELETE FROM books WHERE id = ?", (str(book_id),)
                    )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise PersistenceError(f"Database error while deleting book: {e}") from e

    def find_all(self, limit: Optional[int] = None) -> List[Book]:
        """All books, newest first."""
        with self._db.connect() as conn:
            if limit is not None:
                rows = conn.execute(
                    "SELECT * FROM books ORDER BY created_at DESC LIMIT ?", (limit,)
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM books ORDER BY created_at DESC"
                ).fetchall()
            return [self._load(conn, row) for row in rows]
