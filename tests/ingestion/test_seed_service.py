"""
Tests for BookSeedingService.

This test suite validates the seeding pipeline:
- Skipping books already in the catalog
- Retry with exponential backoff on embedding outages only
- Per-book outcome tracking and the final summary
- Reading the seed file
"""

import json
import logging

import pytest
from unittest.mock import Mock
from uuid import uuid4

from app.domain.errors import (
    DuplicateISBNError,
    EmbeddingServiceUnavailableError,
    EmbeddingTextTooLongError,
    InvalidBookTypeError,
    PersistenceError,
    RequiredFieldError,
)
from app.domain.value_objects import CreateBookInput, SeedingSummary
from app.ingestion.seed_service import BookSeedingService, read_books_file


def make_input(isbn="9780132350884", title="Clean Code"):
    return CreateBookInput(
        title=title,
        authors=["Robert C. Martin"],
        description="Craftsmanship",
        type="technical",
        category_names=["programming"],
        format="pdf",
        isbn=isbn,
    )


@pytest.fixture
def create_book():
    """Mock CreateBookService."""
    service = Mock()
    service.execute.return_value = Mock(id=uuid4())
    return service


@pytest.fixture
def book_repo():
    repo = Mock()
    repo.exists_by_isbn.return_value = False
    return repo


@pytest.fixture
def sleep():
    return Mock()


@pytest.fixture
def seeder(create_book, book_repo, sleep):
    return BookSeedingService(
        create_book=create_book,
        book_repo=book_repo,
        batch_size=2,
        max_retries=3,
        base_delay_s=1.0,
        sleep=sleep,
    )


# ============================================================================
# RETRY POLICY
# ============================================================================

class TestRetryPolicy:
    def test_retries_unavailable_then_succeeds(self, seeder, create_book, sleep):
        create_book.execute.side_effect = [
            EmbeddingServiceUnavailableError("HTTP 503"),
            EmbeddingServiceUnavailableError("timeout"),
            Mock(id=uuid4()),
        ]

        summary = seeder.seed([make_input()])

        assert summary.created == 1
        assert create_book.execute.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_gives_up_after_max_retries(self, seeder, create_book, sleep):
        create_book.execute.side_effect = EmbeddingServiceUnavailableError()

        summary = seeder.seed([make_input()])

        assert summary.errors == 1
        assert summary.failed_isbns == ["9780132350884"]
        assert create_book.execute.call_count == 3
        assert sleep.call_count == 2

    @pytest.mark.parametrize(
        "error",
        [
            RequiredFieldError("title"),
            InvalidBookTypeError("poetry", ["novel"]),
            EmbeddingTextTooLongError(8000, 7000),
            PersistenceError("disk I/O error"),
        ],
    )
    def test_other_errors_are_not_retried(self, seeder, create_book, sleep, error):
        create_book.execute.side_effect = error

        summary = seeder.seed([make_input()])

        assert summary.errors == 1
        assert create_book.execute.call_count == 1
        sleep.assert_not_called()

    def test_retry_is_logged_with_title_and_delay(self, seeder, create_book, caplog):
        create_book.execute.side_effect = [
            EmbeddingServiceUnavailableError("HTTP 503"),
            Mock(id=uuid4()),
        ]

        with caplog.at_level(logging.WARNING, logger="app.ingestion.seed_service"):
            seeder.seed([make_input()])

        (record,) = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert "'Clean Code'" in record.getMessage()
        assert "retrying in 1.00s (attempt 1/3)" in record.getMessage()

    def test_backoff_doubles(self, seeder):
        assert [seeder.backoff_delay(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_create_with_retry_reraises_last_error(self, seeder, create_book):
        create_book.execute.side_effect = EmbeddingServiceUnavailableError("down")

        with pytest.raises(EmbeddingServiceUnavailableError):
            seeder.create_with_retry(make_input())


# ============================================================================
# OUTCOMES
# ============================================================================

class TestOutcomes:
    def test_existing_isbn_is_skipped_without_creating(self, seeder, create_book, book_repo):
        book_repo.exists_by_isbn.return_value = True

        summary = seeder.seed([make_input()])

        assert summary.skipped == 1
        create_book.execute.assert_not_called()

    def test_duplicate_raised_by_service_counts_as_skipped(self, seeder, create_book):
        create_book.execute.side_effect = DuplicateISBNError("9780132350884")

        summary = seeder.seed([make_input()])

        assert summary.skipped == 1
        assert summary.errors == 0

    def test_book_without_isbn_is_not_checked(self, seeder, book_repo):
        summary = seeder.seed([make_input(isbn=None)])

        assert summary.created == 1
        book_repo.exists_by_isbn.assert_not_called()

    def test_one_failure_does_not_abort_the_run(self, seeder, create_book):
        """Invariant: total_processed = created + skipped + errors."""
        create_book.execute.side_effect = [
            Mock(id=uuid4()),
            RequiredFieldError("title"),
            Mock(id=uuid4()),
            DuplicateISBNError("0132350882"),
            Mock(id=uuid4()),
        ]
        books = [
            make_input(isbn=None, title=f"Book {i}") for i in range(5)
        ]

        summary = seeder.seed(books)

        assert isinstance(summary, SeedingSummary)
        assert summary.total_processed == 5
        assert summary.created == 3
        assert summary.skipped == 1
        assert summary.errors == 1
        assert summary.failed_isbns == ["Book 1"]
        assert summary.duration_s >= 0

    def test_empty_input(self, seeder):
        summary = seeder.seed([])

        assert summary.total_processed == 0

    def test_invalid_configuration(self, create_book, book_repo):
        with pytest.raises(ValueError, match="batch_size"):
            BookSeedingService(create_book, book_repo, batch_size=0)
        with pytest.raises(ValueError, match="max_retries"):
            BookSeedingService(create_book, book_repo, max_retries=0)


# ============================================================================
# SEED FILE
# ============================================================================

class TestReadBooksFile:
    def test_reads_entries(self, tmp_path):
        path = tmp_path / "books.json"
        path.write_text(json.dumps([
            {
                "isbn": "9780132350884",
                "title": "Clean Code",
                "authors": ["Robert C. Martin"],
                "description": "Craftsmanship",
                "type": "technical",
                "categories": ["Programming"],
                "format": "pdf",
                "available": False,
            }
        ]), encoding="utf-8")

        (book,) = read_books_file(path)

        assert book.title == "Clean Code"
        assert book.category_names == ["Programming"]
        assert book.available is False
        assert book.path is None

    def test_malformed_entries_are_skipped(self, tmp_path):
        path = tmp_path / "books.json"
        path.write_text(json.dumps([
            "not an object",
            {"title": "No authors"},
            {
                "title": "Dune",
                "authors": "Frank Herbert",
                "description": "x",
                "type": "novel",
                "categories": ["sf"],
                "format": "epub",
            },
            {
                "title": "Dune",
                "authors": ["Frank Herbert"],
                "description": "x",
                "type": "novel",
                "categories": ["sf"],
                "format": "epub",
            },
        ]), encoding="utf-8")

        books = read_books_file(path)

        assert [b.title for b in books] == ["Dune"]
        assert books[0].isbn is None

    def test_top_level_must_be_array(self, tmp_path):
        path = tmp_path / "books.json"
        path.write_text(json.dumps({"books": []}), encoding="utf-8")

        with pytest.raises(ValueError, match="JSON array"):
            read_books_file(path)
