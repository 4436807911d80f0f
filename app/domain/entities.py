"""
Domain entities for the book catalog.

Entities are objects with a unique identity that runs through time and
different representations. They are the core building blocks of the domain.

All entities here are frozen: "mutations" go through update(), which
re-validates only the changed fields and returns a new instance sharing the
id and created_at. Two construction paths exist:

- create(): full validation, for user input
- from_storage(): no validation, for rows read back from the database
"""

import dataclasses
import re
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple, TypeVar
from uuid import UUID

from .errors import (
    DuplicateItemError,
    FieldTooLongError,
    InvalidUUIDError,
    RequiredFieldError,
    TooManyItemsError,
)
from .value_objects import ISBN, BookFormat

TITLE_MAX_LENGTH = 500
DESCRIPTION_MAX_LENGTH = 5000
PATH_MAX_LENGTH = 1000
MAX_AUTHORS = 20
MAX_CATEGORIES = 10

AUTHOR_NAME_MAX_LENGTH = 300
CATEGORY_NAME_MAX_LENGTH = 100
CATEGORY_DESCRIPTION_MAX_LENGTH = 500
BOOK_TYPE_NAME_MAX_LENGTH = 50

DEFAULT_BOOK_TYPES: Tuple[str, ...] = ("technical", "novel", "biography")
"""Types seeded into every fresh database"""

_UUID_V4 = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Field validators shared by all entities
# =============================================================================


def _require_text(field: str, value: Any) -> None:
    if value is None:
        raise RequiredFieldError(field)
    if isinstance(value, str) and not value.strip():
        raise RequiredFieldError(field)


def _require_items(field: str, items: Optional[Sequence[Any]]) -> None:
    if not items:
        raise RequiredFieldError(field)


def _check_length(field: str, value: str, max_length: int) -> None:
    if len(value) > max_length:
        raise FieldTooLongError(field, max_length)


def _check_item_count(field: str, items: Sequence[Any], max_items: int) -> None:
    if len(items) > max_items:
        raise TooManyItemsError(field, max_items)


def _parse_uuid(value: Any, field: str = "id") -> UUID:
    """Accept a UUID or its string form; only version 4 is valid."""
    text = str(value).strip()
    if not _UUID_V4.match(text):
        raise InvalidUUIDError(value, field)
    return UUID(text)


def _distinct(field: str, items: Iterable[T], label: Callable[[T], str]) -> Tuple[T, ...]:
    """Reject two items sharing an id; order is preserved."""
    seen = set()
    result = []
    for item in items:
        item_id = getattr(item, "id")
        if item_id in seen:
            raise DuplicateItemError(field, label(item))
        seen.add(item_id)
        result.append(item)
    return tuple(result)


def _optional_text(value: Optional[str]) -> Optional[str]:
    """Trim; empty strings collapse to None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _check_update_keys(entity: str, changes: Dict[str, Any], allowed: Iterable[str]) -> None:
    unknown = set(changes) - set(allowed)
    if unknown:
        raise TypeError(f"{entity}.update() got unexpected fields: {sorted(unknown)}")


# =============================================================================
# Entities
# =============================================================================


@dataclass(frozen=True, eq=False)
class Author:
    """A person credited on one or more books. Names are case-sensitive."""

    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        id: Any,
        name: str,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> "Author":
        values = cls._validate({"id": id, "name": name})
        now = _utcnow()
        return cls(
            created_at=created_at or now,
            updated_at=updated_at or created_at or now,
            **values,
        )

    @classmethod
    def from_storage(
        cls, *, id: UUID, name: str, created_at: datetime, updated_at: datetime
    ) -> "Author":
        return cls(id=id, name=name, created_at=created_at, updated_at=updated_at)

    def update(self, **changes: Any) -> "Author":
        _check_update_keys("Author", changes, ["name"])
        values = self._validate(changes)
        return dataclasses.replace(self, updated_at=_utcnow(), **values)

    @staticmethod
    def _validate(values: Dict[str, Any]) -> Dict[str, Any]:
        for field in ("id", "name"):
            if field in values:
                _require_text(field, values[field])

        result = dict(values)
        if "name" in values:
            result["name"] = values["name"].strip()
            _check_length("name", result["name"], AUTHOR_NAME_MAX_LENGTH)

        if "id" in values:
            result["id"] = _parse_uuid(values["id"])
        return result

    def __eq__(self, other: object) -> bool:
        """Two authors are equal if they have the same ID."""
        if not isinstance(other, Author):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True, eq=False)
class Category:
    """
    A reusable subject label.

    Names are stored lowercase so that uniqueness is case-insensitive.
    """

    id: UUID
    name: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        id: Any,
        name: str,
        description: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> "Category":
        values = cls._validate({"id": id, "name": name, "description": description})
        now = _utcnow()
        return cls(
            created_at=created_at or now,
            updated_at=updated_at or created_at or now,
            **values,
        )

    @classmethod
    def from_storage(
        cls,
        *,
        id: UUID,
        name: str,
        description: Optional[str],
        created_at: datetime,
        updated_at: datetime,
    ) -> "Category":
        return cls(
            id=id,
            name=name,
            description=description,
            created_at=created_at,
            updated_at=updated_at,
        )

    def update(self, **changes: Any) -> "Category":
        _check_update_keys("Category", changes, ["name", "description"])
        values = self._validate(changes)
        return dataclasses.replace(self, updated_at=_utcnow(), **values)

    @staticmethod
    def normalize_name(name: str) -> str:
        return name.strip().lower()

    @staticmethod
    def _validate(values: Dict[str, Any]) -> Dict[str, Any]:
        for field in ("id", "name"):
            if field in values:
                _require_text(field, values[field])

        result = dict(values)
        if "name" in values:
            result["name"] = Category.normalize_name(values["name"])
            _check_length("name", result["name"], CATEGORY_NAME_MAX_LENGTH)
        if "description" in values:
            result["description"] = _optional_text(values["description"])
            if result["description"] is not None:
                _check_length(
                    "description", result["description"], CATEGORY_DESCRIPTION_MAX_LENGTH
                )

        if "id" in values:
            result["id"] = _parse_uuid(values["id"])
        return result

    def __eq__(self, other: object) -> bool:
        """Two categories are equal if they have the same ID."""
        if not isinstance(other, Category):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True, eq=False)
class BookType:
    """
    High-level classification of a book (technical, novel, ...).

    Types are seeded server-side; the catalog write path only reads them.
    """

    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        id: Any,
        name: str,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> "BookType":
        values = cls._validate({"id": id, "name": name})
        now = _utcnow()
        return cls(
            created_at=created_at or now,
            updated_at=updated_at or created_at or now,
            **values,
        )

    @classmethod
    def from_storage(
        cls, *, id: UUID, name: str, created_at: datetime, updated_at: datetime
    ) -> "BookType":
        return cls(id=id, name=name, created_at=created_at, updated_at=updated_at)

    def update(self, **changes: Any) -> "BookType":
        _check_update_keys("BookType", changes, ["name"])
        values = self._validate(changes)
        return dataclasses.replace(self, updated_at=_utcnow(), **values)

    def has_name(self, name: str) -> bool:
        return self.name == name.strip().lower()

    @staticmethod
    def _validate(values: Dict[str, Any]) -> Dict[str, Any]:
        for field in ("id", "name"):
            if field in values:
                _require_text(field, values[field])

        result = dict(values)
        if "name" in values:
            result["name"] = values["name"].strip().lower()
            _check_length("name", result["name"], BOOK_TYPE_NAME_MAX_LENGTH)

        if "id" in values:
            result["id"] = _parse_uuid(values["id"])
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BookType):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False)
class Book:
    """
    Represents a book in the catalog.

    This is the central entity of the domain. Authors and categories are
    references to their own entities (many-to-many); the type is a reference
    to a persisted BookType.

    Note: the embedding vector is not part of the entity. It is an
    infrastructure concern handed to the repository alongside the book.
    """

    id: UUID
    """Unique identifier (UUID v4)"""

    title: str

    authors: Tuple[Author, ...]
    """1 to 20 distinct authors, in credit order"""

    book_type: BookType

    categories: Tuple[Category, ...]
    """1 to 10 distinct categories, in input order"""

    format: BookFormat

    isbn: Optional[ISBN]

    description: str

    available: bool
    """Whether the file is available for download"""

    path: Optional[str]
    """Location of the file in the library storage"""

    created_at: datetime
    updated_at: datetime

    _UPDATABLE = (
        "title",
        "authors",
        "book_type",
        "categories",
        "format",
        "isbn",
        "description",
        "available",
        "path",
    )

    @classmethod
    def create(
        cls,
        *,
        id: Any,
        title: str,
        authors: Sequence[Author],
        book_type: BookType,
        categories: Sequence[Category],
        format: Any,
        description: str,
        isbn: Optional[str] = None,
        available: Optional[bool] = False,
        path: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> "Book":
        """
        Factory for a new book built from user input.

        Validation order is fixed: every required-field check runs before
        any length check, and every length check before any structural
        check (UUID format, duplicates, format membership, ISBN checksum).

        Raises:
            ValidationError: Subclass naming the offending field/value.
        """
        values = cls._validate(
            {
                "id": id,
                "title": title,
                "authors": authors,
                "book_type": book_type,
                "categories": categories,
                "format": format,
                "description": description,
                "isbn": isbn,
                "available": False if available is None else available,
                "path": path,
            }
        )
        now = _utcnow()
        return cls(
            created_at=created_at or now,
            updated_at=updated_at or created_at or now,
            **values,
        )

    @classmethod
    def from_storage(
        cls,
        *,
        id: UUID,
        title: str,
        authors: Sequence[Author],
        book_type: BookType,
        categories: Sequence[Category],
        format: str,
        isbn: Optional[str],
        description: str,
        available: bool,
        path: Optional[str],
        created_at: datetime,
        updated_at: datetime,
    ) -> "Book":
        """Reconstruct a persisted book. Trusted input: nothing is validated."""
        return cls(
            id=id,
            title=title,
            authors=tuple(authors),
            book_type=book_type,
            categories=tuple(categories),
            format=BookFormat(format),
            isbn=ISBN.from_storage(isbn) if isbn else None,
            description=description,
            available=available,
            path=path,
            created_at=created_at,
            updated_at=updated_at,
        )

    def update(self, **changes: Any) -> "Book":
        """
        Return a copy with the given fields changed.

        Only the changed fields are re-validated; derived value objects
        (format, ISBN) are rebuilt from the new raw values. Passing
        isbn=None or path=None clears the field.
        """
        _check_update_keys("Book", changes, self._UPDATABLE)
        values = self._validate(changes)
        return dataclasses.replace(self, updated_at=_utcnow(), **values)

    @staticmethod
    def _validate(values: Dict[str, Any]) -> Dict[str, Any]:
        result = dict(values)

        # Required fields
        for field in ("id", "title", "format", "description"):
            if field in values:
                _require_text(field, values[field])
        for field in ("authors", "categories"):
            if field in values:
                _require_items(field, values[field])
        if "book_type" in values and values["book_type"] is None:
            raise RequiredFieldError("type")
        if "available" in values and values["available"] is None:
            raise RequiredFieldError("available")

        # Lengths and sizes
        if "title" in values:
            result["title"] = values["title"].strip()
            _check_length("title", result["title"], TITLE_MAX_LENGTH)
        if "description" in values:
            result["description"] = values["description"].strip()
            _check_length("description", result["description"], DESCRIPTION_MAX_LENGTH)
        if "path" in values:
            result["path"] = _optional_text(values["path"])
            if result["path"] is not None:
                _check_length("path", result["path"], PATH_MAX_LENGTH)
        if "authors" in values:
            _check_item_count("authors", values["authors"], MAX_AUTHORS)
        if "categories" in values:
            _check_item_count("categories", values["categories"], MAX_CATEGORIES)

        # Structure
        if "id" in values:
            result["id"] = _parse_uuid(values["id"])
        if "authors" in values:
            result["authors"] = _distinct("authors", values["authors"], lambda a: a.name)
        if "categories" in values:
            result["categories"] = _distinct(
                "categories", values["categories"], lambda c: c.name
            )
        if "format" in values:
            result["format"] = BookFormat.create(values["format"])
        if "isbn" in values:
            result["isbn"] = ISBN.create(values["isbn"]) if values["isbn"] else None
        if "available" in values:
            result["available"] = bool(values["available"])

        return result

    @property
    def author_names(self) -> Tuple[str, ...]:
        return tuple(author.name for author in self.authors)

    @property
    def category_names(self) -> Tuple[str, ...]:
        return tuple(category.name for category in self.categories)

    def get_text_for_embedding(self) -> str:
        """
        Deterministic text the embedding is generated from.

        Order: title, author names, type name, category names, description.
        """
        parts = [
            self.title,
            *self.author_names,
            self.book_type.name,
            *self.category_names,
            self.description,
        ]
        return " ".join(parts)

    def __eq__(self, other: object) -> bool:
        """Two books are equal if they have the same ID."""
        if not isinstance(other, Book):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on book ID."""
        return hash(self.id)
