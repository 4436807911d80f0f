"""
Row <-> entity conversion shared by the SQLite repositories.

Rows are trusted (they were validated on the way in), so entities are
rebuilt with from_storage() and never re-validated.
"""

import sqlite3
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

import numpy as np

from app.domain.entities import Author, Book, BookType, Category


def row_to_author(row: sqlite3.Row) -> Author:
    return Author.from_storage(
        id=UUID(row["id"]),
        name=row["name"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def row_to_category(row: sqlite3.Row) -> Category:
    return Category.from_storage(
        id=UUID(row["id"]),
        name=row["name"],
        description=row["description"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def row_to_type(row: sqlite3.Row) -> BookType:
    return BookType.from_storage(
        id=UUID(row["id"]),
        name=row["name"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def row_to_book(
    row: sqlite3.Row,
    book_type: BookType,
    authors: Sequence[Author],
    categories: Sequence[Category],
) -> Book:
    """Convert a books row plus its resolved relations to a Book entity."""
    return Book.from_storage(
        id=UUID(row["id"]),
        title=row["title"],
        authors=authors,
        book_type=book_type,
        categories=categories,
        format=row["format"],
        isbn=row["isbn"],
        description=row["description"],
        available=bool(row["available"]),
        path=row["path"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def book_to_row(book: Book) -> dict:
    """Convert a Book entity to a books row dict (without the embedding)."""
    return {
        "id": str(book.id),
        "title": book.title,
        "type_id": str(book.book_type.id),
        "format": book.format.value,
        "isbn": book.isbn.value if book.isbn else None,
        "description": book.description,
        "available": int(book.available),
        "path": book.path,
        "created_at": book.created_at.isoformat(),
        "updated_at": book.updated_at.isoformat(),
    }


def embedding_to_blob(embedding: Sequence[float]) -> bytes:
    """Serialize a vector as little-endian float32 bytes."""
    return np.asarray(embedding, dtype="<f4").tobytes()


def blob_to_embedding(blob: Optional[bytes]) -> Optional[np.ndarray]:
    if blob is None:
        return None
    return np.frombuffer(blob, dtype="<f4").astype(np.float32)
