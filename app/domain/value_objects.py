"""
Value objects for the domain layer.

Value objects are immutable objects that represent descriptive aspects
of the domain with no conceptual identity.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Tuple
from uuid import UUID

from .errors import InvalidBookFormatError, InvalidISBNError

_ISBN_SEPARATORS = re.compile(r"[- ]")
_ISBN10_PATTERN = re.compile(r"^[0-9]{9}[0-9X]$")
_ISBN13_PATTERN = re.compile(r"^[0-9]{13}$")


def normalize_isbn(value: str) -> str:
    """Strip hyphens and spaces and uppercase (so a trailing 'x' becomes 'X')."""
    return _ISBN_SEPARATORS.sub("", value).upper()


def _is_valid_isbn10(isbn: str) -> bool:
    if not _ISBN10_PATTERN.match(isbn):
        return False

    total = 0
    for i, char in enumerate(isbn):
        digit = 10 if char == "X" else int(char)
        total += digit * (10 - i)
    return total % 11 == 0


def _is_valid_isbn13(isbn: str) -> bool:
    if not _ISBN13_PATTERN.match(isbn):
        return False

    total = sum(int(char) * (1 if i % 2 == 0 else 3) for i, char in enumerate(isbn))
    return total % 10 == 0


def is_valid_isbn(value: str) -> bool:
    """Check an ISBN-10 or ISBN-13 (separators allowed) including its checksum."""
    normalized = normalize_isbn(value)

    if len(normalized) == 10:
        return _is_valid_isbn10(normalized)
    if len(normalized) == 13:
        return _is_valid_isbn13(normalized)
    return False


@dataclass(frozen=True)
class ISBN:
    """
    International Standard Book Number.

    The stored value is always the canonical bare form: digits only, with
    an uppercase 'X' allowed as the last character of an ISBN-10.
    """

    value: str
    """Normalized ISBN (no hyphens or spaces)"""

    @classmethod
    def create(cls, raw: str) -> "ISBN":
        """
        Validate and normalize user input.

        Raises:
            InvalidISBNError: If the length or checksum is wrong. The error
                names the original, non-normalized input.
        """
        if raw is None or not is_valid_isbn(raw):
            raise InvalidISBNError(raw)
        return cls(normalize_isbn(raw))

    @classmethod
    def from_storage(cls, value: str) -> "ISBN":
        """Rebuild from a trusted, already-normalized value (no validation)."""
        return cls(value)

    @property
    def isbn_type(self) -> Literal["ISBN-10", "ISBN-13"]:
        return "ISBN-10" if len(self.value) == 10 else "ISBN-13"

    def formatted(self) -> str:
        """
        Conventional hyphenated form (simplified grouping).

        ISBN-13: 978-X-XXXX-XXXX-X, ISBN-10: X-XXXX-XXXX-X
        """
        v = self.value
        if len(v) == 13:
            return f"{v[:3]}-{v[3:4]}-{v[4:8]}-{v[8:12]}-{v[12:]}"
        return f"{v[:1]}-{v[1:5]}-{v[5:9]}-{v[9:]}"

    def __str__(self) -> str:
        return self.value


class BookFormat(str, Enum):
    """Digital format of a book file."""

    EPUB = "epub"
    PDF = "pdf"
    MOBI = "mobi"
    AZW3 = "azw3"
    DJVU = "djvu"
    CBZ = "cbz"
    CBR = "cbr"
    TXT = "txt"
    OTHER = "other"

    @classmethod
    def create(cls, raw: str) -> "BookFormat":
        """
        Parse user input (case-insensitive, surrounding whitespace ignored).

        Raises:
            InvalidBookFormatError: If the value is not a known format.
        """
        normalized = raw.strip().lower() if isinstance(raw, str) else raw
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidBookFormatError(raw, cls.values()) from None

    @classmethod
    def values(cls) -> Tuple[str, ...]:
        return tuple(member.value for member in cls)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Outcome of BookRepository.check_duplicate()."""

    is_duplicate: bool

    duplicate_type: Optional[Literal["isbn"]] = None
    """Which rule matched. Only ISBN detection is in use."""

    message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.is_duplicate and self.duplicate_type is None:
            raise ValueError("duplicate_type is required when is_duplicate=True")


@dataclass(frozen=True)
class EmbeddingResult:
    """Vector produced by an EmbeddingService."""

    embedding: List[float]
    """The embedding vector"""

    model: str
    """Identifier of the model that produced it"""

    def __post_init__(self) -> None:
        if not self.embedding:
            raise ValueError("embedding cannot be empty")


@dataclass(frozen=True)
class CreateBookInput:
    """
    Raw request to catalog a new book.

    Nothing here is validated yet: CreateBookService validates every field
    through the domain value objects and entities.
    """

    title: str
    authors: List[str]
    description: str
    type: str
    category_names: List[str]
    format: str
    isbn: Optional[str] = None
    available: Optional[bool] = None
    path: Optional[str] = None


@dataclass(frozen=True)
class NamedRef:
    """(id, name) pair used in output representations."""

    id: UUID
    name: str


@dataclass(frozen=True)
class CreateBookOutput:
    """
    Public representation of a persisted book.

    The embedding vector is not included.
    """

    id: UUID
    title: str
    authors: List[NamedRef]
    description: str
    type: str
    categories: List[NamedRef]
    format: str
    isbn: Optional[str]
    available: bool
    path: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SeedingSummary:
    """
    Summary of a batch seeding run.

    Captures per-item outcomes so one failure never hides the rest.
    """

    total_processed: int
    created: int
    skipped: int
    errors: int
    failed_isbns: List[str] = field(default_factory=list)
    duration_s: float = 0.0

    def __post_init__(self) -> None:
        for name in ("total_processed", "created", "skipped", "errors"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative, got {getattr(self, name)}")

        # Invariant: processed = created + skipped + errors
        expected = self.created + self.skipped + self.errors
        if self.total_processed != expected:
            raise ValueError(
                f"Invariant violated: total_processed ({self.total_processed}) must equal "
                f"created + skipped + errors ({expected})"
            )
