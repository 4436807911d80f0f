"""
Seeding service for bulk-loading the catalog.

This service drives CreateBookService over a list of books:
1. Skip books whose ISBN is already cataloged
2. Create the rest, retrying transient embedding failures with backoff
3. Track per-book outcomes so one failure never aborts the run
4. Return a summary of the operation

Retry policy: only EmbeddingServiceUnavailableError is retried (the
embedding backend is down, slow, or answered non-2xx). Every other error
is permanent for that book: retrying a validation error cannot succeed.
"""

import json
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from app.domain.errors import DuplicateISBNError, EmbeddingServiceUnavailableError
from app.domain.ports import BookRepository
from app.domain.services import CreateBookService
from app.domain.value_objects import CreateBookInput, CreateBookOutput, SeedingSummary

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_S = 1.0

CREATED = "created"
SKIPPED = "skipped"
ERROR = "error"


def _entry_to_input(entry: dict) -> CreateBookInput:
    """Map one JSON entry to a CreateBookInput. Raises ValueError if malformed."""
    if not isinstance(entry, dict):
        raise ValueError(f"expected an object, got {type(entry).__name__}")

    missing = [
        key
        for key in ("title", "authors", "description", "type", "categories", "format")
        if key not in entry
    ]
    if missing:
        raise ValueError(f"missing keys: {', '.join(missing)}")
    if not isinstance(entry["authors"], list) or not isinstance(entry["categories"], list):
        raise ValueError("authors and categories must be lists")

    return CreateBookInput(
        title=entry["title"],
        authors=list(entry["authors"]),
        description=entry["description"],
        type=entry["type"],
        category_names=list(entry["categories"]),
        format=entry["format"],
        isbn=entry.get("isbn"),
        available=entry.get("available"),
        path=entry.get("path"),
    )


def read_books_file(path: Union[str, Path]) -> List[CreateBookInput]:
    """
    Load seed data from a JSON array of book objects.

    Entries that are not well-formed objects are logged and skipped; field
    values are validated later by CreateBookService.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON array
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of books")

    books = []
    for index, entry in enumerate(data):
        try:
            books.append(_entry_to_input(entry))
        except ValueError as e:
            logger.warning(f"Skipping entry #{index} in {path}: {e}")
    logger.info(f"Loaded {len(books)} books from {path} ({len(data) - len(books)} invalid)")
    return books


class BookSeedingService:
    """
    Batch caller of CreateBookService with a consumer-side retry policy.

    Books are processed sequentially, in batches of `batch_size` (batches
    only structure progress logging).
    """

    def __init__(
        self,
        create_book: CreateBookService,
        book_repo: BookRepository,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_s: float = DEFAULT_BASE_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Args:
            create_book: The orchestrator that creates one book
            book_repo: Used to skip books already in the catalog
            batch_size: Books per progress batch
            max_retries: Total attempts per book for retryable failures
            base_delay_s: Delay before the 2nd attempt; doubles afterwards
            sleep: Injected for tests
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")

        self._create_book = create_book
        self._book_repo = book_repo
        self._batch_size = batch_size
        self._max_retries = max_retries
        self._base_delay_s = base_delay_s
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based): base * 2^(attempt-1)."""
        return self._base_delay_s * (2 ** (attempt - 1))

    def create_with_retry(self, book: CreateBookInput) -> CreateBookOutput:
        """
        Create one book, retrying only while the embedding service is unavailable.

        Raises:
            EmbeddingServiceUnavailableError: After max_retries failed attempts
            CatalogError: Any non-retryable failure, on the first occurrence
        """
        attempt = 1
        while True:
            try:
                return self._create_book.execute(book)
            except EmbeddingServiceUnavailableError as e:
                if attempt >= self._max_retries:
                    raise
                delay = self.backoff_delay(attempt)
                self._logger.warning(
                    f"Embedding service unavailable for {book.title!r}; retrying in "
                    f"{delay:.2f}s (attempt {attempt}/{self._max_retries}): {e}"
                )
                self._sleep(delay)
                attempt += 1

    def seed_one(self, book: CreateBookInput) -> str:
        """Process one book; returns CREATED, SKIPPED or ERROR. Never raises."""
        label = book.isbn or book.title
        try:
            if book.isbn and self._book_repo.exists_by_isbn(book.isbn):
                self._logger.debug(f"Skipping existing book: {label}")
                return SKIPPED

            self.create_with_retry(book)
            return CREATED

        except DuplicateISBNError:
            # Created concurrently between the existence check and the save
            self._logger.debug(f"Skipping book created concurrently: {label}")
            return SKIPPED
        except Exception as e:
            self._logger.error(f"Failed to seed {label}: {type(e).__name__}: {e}")
            return ERROR

    def seed(self, books: Sequence[CreateBookInput]) -> SeedingSummary:
        """
        Seed all books and report per-outcome counts.

        failed_isbns lists the ISBN of every failed book (its title when it
        has no ISBN), in processing order.
        """
        started = time.monotonic()
        created = skipped = errors = 0
        failed: List[str] = []

        total_batches = (len(books) + self._batch_size - 1) // self._batch_size
        self._logger.info(
            f"Seeding {len(books)} books in {total_batches} batches of {self._batch_size}"
        )

        for batch_index in range(total_batches):
            start = batch_index * self._batch_size
            batch = books[start : start + self._batch_size]

            for book in batch:
                outcome = self.seed_one(book)
                if outcome == CREATED:
                    created += 1
                elif outcome == SKIPPED:
                    skipped += 1
                else:
                    errors += 1
                    failed.append(book.isbn or book.title)

            self._logger.info(
                f"Batch {batch_index + 1}/{total_batches} done: "
                f"{created} created, {skipped} skipped, {errors} errors so far"
            )

        summary = SeedingSummary(
            total_processed=created + skipped + errors,
            created=created,
            skipped=skipped,
            errors=errors,
            failed_isbns=failed,
            duration_s=time.monotonic() - started,
        )
        self._logger.info(
            f"Seeding complete in {summary.duration_s:.2f}s: {summary.created} created, "
            f"{summary.skipped} skipped, {summary.errors} errors"
        )
        return summary
