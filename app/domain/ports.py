"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
They are implemented by adapters in the infrastructure layer, allowing
the domain to remain independent of technical details.

Following Hexagonal Architecture principles, the domain layer depends only
on these abstract protocols, never on concrete implementations.
"""

from typing import List, Optional, Protocol, Sequence
from uuid import UUID

from .entities import Author, Book, BookType, Category
from .value_objects import DuplicateCheckResult, EmbeddingResult


class TypeRepository(Protocol):
    """
    Port for reading book types.

    Types are a closed, server-seeded set. The write path never creates
    them; it only resolves a user-supplied name to a persisted type.
    """

    def find_by_name(self, name: str) -> Optional[BookType]:
        """
        Look up a type by name (case-insensitive).

        Args:
            name: Type name as supplied by the user

        Returns:
            The BookType if found, None otherwise
        """
        ...

    def find_by_id(self, type_id: UUID) -> Optional[BookType]:
        ...

    def find_all(self) -> List[BookType]:
        """Return every type ordered by name."""
        ...

    def count(self) -> int:
        ...


class AuthorRepository(Protocol):
    """
    Port for authors.

    Author names are trimmed but case-sensitive: "Robert C. Martin" and
    "robert c. martin" are two different authors.
    """

    def find_by_names(self, names: Sequence[str]) -> List[Author]:
        """
        Return the authors whose name matches one of the given names.

        Order of the result is unspecified. Missing names are simply
        absent from the result.
        """
        ...

    def find_or_create_many(self, names: Sequence[str]) -> List[Author]:
        """
        Resolve every name to an author, creating the missing ones.

        Must be safe under concurrent callers: two callers creating the
        same new name both end up with the same persisted row, and no
        duplicate row is ever created.

        Args:
            names: Author names in credit order (repeats allowed)

        Returns:
            One author per input name, in input order

        Raises:
            UnresolvedRelationError: If a name is still missing after the
                insert and re-read
            PersistenceError: On any other database failure
        """
        ...

    def find_by_name(self, name: str) -> Optional[Author]:
        ...

    def find_by_id(self, author_id: UUID) -> Optional[Author]:
        ...

    def find_all(self) -> List[Author]:
        ...

    def count(self) -> int:
        ...


class CategoryRepository(Protocol):
    """
    Port for categories.

    Category names are compared case-insensitively and stored lowercase,
    so "Fiction" and "FICTION" resolve to the same category.
    """

    def find_by_names(self, names: Sequence[str]) -> List[Category]:
        ...

    def find_or_create_many(self, names: Sequence[str]) -> List[Category]:
        """
        Resolve every name to a category, creating the missing ones.

        Same concurrency contract as AuthorRepository.find_or_create_many,
        with names normalized to lowercase first.

        Returns:
            One category per input name, in input order

        Raises:
            UnresolvedRelationError: If a name is still missing after the
                insert and re-read
        """
        ...

    def find_by_name(self, name: str) -> Optional[Category]:
        ...

    def find_by_id(self, category_id: UUID) -> Optional[Category]:
        ...

    def find_all(self) -> List[Category]:
        ...

    def count(self) -> int:
        ...


class BookRepository(Protocol):
    """
    Port for persisting and retrieving books.

    The embedding vector travels next to the book on save() but is never
    part of the Book entity returned by reads.
    """

    def check_duplicate(self, isbn: Optional[str]) -> DuplicateCheckResult:
        """
        Check whether a book with this (normalized) ISBN already exists.

        A missing ISBN is never a duplicate.
        """
        ...

    def save(self, book: Book, embedding: Sequence[float]) -> Book:
        """
        Persist a new book with its author/category links and embedding.

        Everything is written in one transaction: on any failure nothing
        is persisted.

        Args:
            book: The validated book entity
            embedding: The vector generated for book.get_text_for_embedding()

        Returns:
            The saved book

        Raises:
            DuplicateISBNError: If the ISBN is already taken
            PersistenceError: On any other database failure
        """
        ...

    def find_by_id(self, book_id: UUID) -> Optional[Book]:
        ...

    def find_by_isbn(self, isbn: str) -> Optional[Book]:
        ...

    def exists_by_isbn(self, isbn: str) -> bool:
        ...

    def update(self, book: Book) -> Book:
        """
        Overwrite the stored row and links of an existing book.

        The embedding is left untouched.

        Raises:
            BookNotFoundError: If no book has this id
            DuplicateISBNError: If the new ISBN belongs to another book
        """
        ...

    def delete(self, book_id: UUID) -> bool:
        """Delete a book and its links. Returns False if it did not exist."""
        ...

    def count(self) -> int:
        ...


class EmbeddingService(Protocol):
    """
    Port for generating text embeddings.

    Implementations own their own timeouts. They never retry: retrying is
    the caller's decision.
    """

    def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate an embedding vector for the given text.

        Raises:
            EmbeddingTextTooLongError: If the text exceeds the model limit
            EmbeddingServiceUnavailableError: If the backend cannot be
                reached, times out, or answers with an error
        """
        ...

    def is_available(self) -> bool:
        """Cheap readiness probe. Never raises."""
        ...
