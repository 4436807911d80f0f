"""
Domain layer - Core business logic and entities.

This layer contains the business entities, value objects, and defines
the ports (interfaces) that the infrastructure layer must implement.

It has NO dependencies on external frameworks, databases, or APIs.
"""

from .entities import Author, Book, BookType, Category, DEFAULT_BOOK_TYPES
from .value_objects import (
    ISBN,
    BookFormat,
    CreateBookInput,
    CreateBookOutput,
    DuplicateCheckResult,
    EmbeddingResult,
    NamedRef,
    SeedingSummary,
)

__all__ = [
    # Entities
    "Author",
    "Book",
    "BookType",
    "Category",
    "DEFAULT_BOOK_TYPES",
    # Value Objects
    "ISBN",
    "BookFormat",
    "CreateBookInput",
    "CreateBookOutput",
    "DuplicateCheckResult",
    "EmbeddingResult",
    "NamedRef",
    "SeedingSummary",
]
