"""
Domain service for cataloging a new book.

The service is the single entry point of the write path. It validates the
request, resolves references (type, categories, authors), generates the
semantic embedding and persists everything atomically.

Step order matters: every step that can reject the request without side
effects (validation, type lookup, duplicate ISBN check) runs before the
first write (category/author creation). A duplicate ISBN therefore never
leaves new categories or authors behind.
"""

import logging
from typing import Optional
from uuid import uuid4

from app.domain.entities import Book
from app.domain.errors import (
    DuplicateISBNError,
    EmbeddingServiceError,
    EmbeddingTextTooLongError,
    InvalidBookTypeError,
)
from app.domain.ports import (
    AuthorRepository,
    BookRepository,
    CategoryRepository,
    EmbeddingService,
    TypeRepository,
)
from app.domain.value_objects import (
    ISBN,
    BookFormat,
    CreateBookInput,
    CreateBookOutput,
    NamedRef,
)

MAX_EMBEDDING_TEXT_LENGTH = 7000
"""Longest text sent to the embedding model, in characters"""


def to_output(book: Book) -> CreateBookOutput:
    """Public representation of a book. The embedding never leaves the repository."""
    return CreateBookOutput(
        id=book.id,
        title=book.title,
        authors=[NamedRef(id=a.id, name=a.name) for a in book.authors],
        description=book.description,
        type=book.book_type.name,
        categories=[NamedRef(id=c.id, name=c.name) for c in book.categories],
        format=book.format.value,
        isbn=book.isbn.value if book.isbn else None,
        available=book.available,
        path=book.path,
        created_at=book.created_at,
        updated_at=book.updated_at,
    )


class CreateBookService:
    """
    Orchestrates the creation of a book.

    Depends only on domain ports. Nothing is retried here: a failing
    collaborator aborts the request and its error propagates unchanged.

    Usage:
        service = CreateBookService(
            book_repo=SqliteBookRepository(db),
            author_repo=SqliteAuthorRepository(db),
            category_repo=SqliteCategoryRepository(db),
            type_repo=SqliteTypeRepository(db),
            embedding_service=OllamaEmbeddingService(),
        )
        output = service.execute(CreateBookInput(...))
    """

    def __init__(
        self,
        book_repo: BookRepository,
        author_repo: AuthorRepository,
        category_repo: CategoryRepository,
        type_repo: TypeRepository,
        embedding_service: EmbeddingService,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._book_repo = book_repo
        self._author_repo = author_repo
        self._category_repo = category_repo
        self._type_repo = type_repo
        self._embedding_service = embedding_service
        self._logger = logger or logging.getLogger(__name__)

    def execute(self, request: CreateBookInput) -> CreateBookOutput:
        """
        Create a book from a raw request.

        Args:
            request: Unvalidated user input

        Returns:
            The persisted book (without its embedding)

        Raises:
            ValidationError: Any field violates its invariants
            InvalidBookTypeError: The type name does not exist
            DuplicateISBNError: Another book already has this ISBN
            EmbeddingTextTooLongError: The combined text is over the limit
            EmbeddingServiceUnavailableError: The embedding backend failed
            PersistenceError: Unexpected database failure
        """
        log = self._logger
        log.debug(f"Creating book: title={request.title!r} isbn={request.isbn!r}")

        # =====================================================================
        # Step 1: Validate value objects (no I/O)
        # =====================================================================
        BookFormat.create(request.format)
        isbn = ISBN.create(request.isbn) if request.isbn else None

        # =====================================================================
        # Step 2: Resolve the book type
        # =====================================================================
        book_type = self._type_repo.find_by_name(request.type)
        if book_type is None:
            valid_types = [t.name for t in self._type_repo.find_all()]
            log.warning(f"Rejected book with unknown type {request.type!r}")
            raise InvalidBookTypeError(request.type, valid_types)

        # =====================================================================
        # Step 3: Reject duplicates before anything is written
        # =====================================================================
        if isbn is not None:
            duplicate = self._book_repo.check_duplicate(isbn.value)
            if duplicate.is_duplicate:
                if duplicate.duplicate_type != "isbn":
                    raise RuntimeError(
                        f"Unexpected duplicate type: {duplicate.duplicate_type}"
                    )
                log.warning(f"Rejected duplicate ISBN {isbn.value}")
                raise DuplicateISBNError(isbn.value)

        # =====================================================================
        # Step 4-5: Find or create categories and authors
        # =====================================================================
        categories = self._category_repo.find_or_create_many(request.category_names)
        log.debug(f"Resolved {len(categories)} categories")

        authors = self._author_repo.find_or_create_many(request.authors)
        log.debug(f"Resolved {len(authors)} authors")

        # =====================================================================
        # Step 6: Build the entity
        # =====================================================================
        book = Book.create(
            id=str(uuid4()),
            title=request.title,
            authors=authors,
            book_type=book_type,
            categories=categories,
            format=request.format,
            description=request.description,
            isbn=request.isbn,
            available=request.available if request.available is not None else False,
            path=request.path,
        )

        # =====================================================================
        # Step 7-8: Generate the embedding
        # =====================================================================
        text = book.get_text_for_embedding()
        if len(text) > MAX_EMBEDDING_TEXT_LENGTH:
            log.error(
                f"Embedding text too long for book {book.id}: "
                f"{len(text)} > {MAX_EMBEDDING_TEXT_LENGTH}"
            )
            raise EmbeddingTextTooLongError(len(text), MAX_EMBEDDING_TEXT_LENGTH)

        try:
            embedding = self._embedding_service.generate_embedding(text)
        except EmbeddingServiceError as e:
            log.error(f"Embedding generation failed for book {book.id}: {e}")
            raise
        log.debug(
            f"Generated {len(embedding.embedding)}-dim embedding with {embedding.model}"
        )

        # =====================================================================
        # Step 9: Persist atomically
        # =====================================================================
        saved = self._book_repo.save(book, embedding.embedding)

        log.info(f"Created book {saved.id} ({saved.title!r})")
        return to_output(saved)
