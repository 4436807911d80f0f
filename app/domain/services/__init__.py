"""
Domain services package.

Services orchestrate domain logic that doesn't naturally belong to a single
entity. They coordinate between entities and ports to implement use cases.

Following Hexagonal Architecture principles, services depend only on domain
entities, value objects, and port protocols (never on concrete implementations).
"""

from .create_book_service import CreateBookService, MAX_EMBEDDING_TEXT_LENGTH
from .update_book_service import UpdateBookService

__all__ = [
    "CreateBookService",
    "UpdateBookService",
    "MAX_EMBEDDING_TEXT_LENGTH",
]
