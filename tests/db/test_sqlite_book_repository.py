"""
Tests for SqliteBookRepository.

Validates atomic saves (book row, links and embedding), ISBN uniqueness,
reassembly of relations on read, updates and deletes.

Test Pattern: AAA (Arrange-Act-Assert)
"""

import sqlite3

import numpy as np
import pytest
from uuid import uuid4

from app.domain.entities import Author, Book
from app.domain.errors import BookNotFoundError, DuplicateISBNError, PersistenceError
from app.infrastructure.db.sqlite_author_repository import SqliteAuthorRepository
from app.infrastructure.db.sqlite_book_repository import SqliteBookRepository
from app.infrastructure.db.sqlite_category_repository import SqliteCategoryRepository
from app.infrastructure.db.sqlite_database import SqliteDatabase
from app.infrastructure.db.sqlite_type_repository import SqliteTypeRepository


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def db(tmp_path):
    return SqliteDatabase(tmp_path / "test_catalog.db")


@pytest.fixture
def repo(db):
    return SqliteBookRepository(db)


@pytest.fixture
def make_book(db):
    """Factory for valid books whose authors/categories are persisted."""
    authors = SqliteAuthorRepository(db)
    categories = SqliteCategoryRepository(db)
    technical = SqliteTypeRepository(db).find_by_name("technical")

    def _make(
        isbn="9780132350884",
        author_names=("Robert C. Martin",),
        category_names=("programming", "craft"),
        **overrides,
    ):
        kwargs = dict(
            id=str(uuid4()),
            title="Clean Code",
            authors=authors.find_or_create_many(list(author_names)),
            book_type=technical,
            categories=categories.find_or_create_many(list(category_names)),
            format="pdf",
            description="A handbook of agile software craftsmanship",
            isbn=isbn,
        )
        kwargs.update(overrides)
        return Book.create(**kwargs)

    return _make


EMBEDDING = [0.25, -0.5, 0.125]


def count_rows(db, table):
    with db.connect() as conn:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


# ============================================================================
# SAVE
# ============================================================================

class TestSave:
    def test_save_and_read_back(self, repo, make_book):
        # Arrange
        book = make_book(author_names=("Andrew Hunt", "David Thomas"))

        # Act
        repo.save(book, EMBEDDING)
        loaded = repo.find_by_id(book.id)

        # Assert
        assert loaded == book
        assert loaded.title == "Clean Code"
        assert loaded.author_names == ("Andrew Hunt", "David Thomas")
        assert loaded.category_names == ("programming", "craft")
        assert loaded.book_type.name == "technical"
        assert loaded.isbn.value == "9780132350884"
        assert loaded.available is False
        assert loaded.created_at == book.created_at

    def test_embedding_stored_as_float32(self, repo, make_book):
        book = make_book()

        repo.save(book, EMBEDDING)

        stored = repo.get_embedding(book.id)
        assert stored.dtype == np.float32
        np.testing.assert_allclose(stored, EMBEDDING)

    def test_writes_link_rows(self, db, repo, make_book):
        repo.save(make_book(), EMBEDDING)

        assert count_rows(db, "book_authors") == 1
        assert count_rows(db, "book_categories") == 2

    def test_duplicate_isbn_raises_and_writes_nothing(self, db, repo, make_book):
        # Arrange
        repo.save(make_book(), EMBEDDING)
        second = make_book(isbn="978-0-13-235088-4")

        # Act / Assert
        with pytest.raises(DuplicateISBNError) as exc_info:
            repo.save(second, EMBEDDING)

        assert exc_info.value.isbn == "9780132350884"
        assert repo.count() == 1
        assert count_rows(db, "book_authors") == 1

    def test_books_without_isbn_do_not_conflict(self, repo, make_book):
        repo.save(make_book(isbn=None), EMBEDDING)
        repo.save(make_book(isbn=None), EMBEDDING)

        assert repo.count() == 2

    def test_failed_link_rolls_back_book_row(self, db, repo, make_book):
        """A broken foreign key aborts the whole transaction."""
        # Arrange: an author that was never persisted
        ghost = Author.create(id=str(uuid4()), name="Nobody")
        book = make_book().update(authors=[ghost])

        # Act
        with pytest.raises(PersistenceError):
            repo.save(book, EMBEDDING)

        # Assert
        assert repo.count() == 0
        assert count_rows(db, "book_categories") == 0


# ============================================================================
# READS
# ============================================================================

class TestReads:
    def test_check_duplicate(self, repo, make_book):
        repo.save(make_book(), EMBEDDING)

        result = repo.check_duplicate("978-0-13-235088-4")

        assert result.is_duplicate is True
        assert result.duplicate_type == "isbn"
        assert repo.check_duplicate("0132350882").is_duplicate is False
        assert repo.check_duplicate(None).is_duplicate is False

    def test_find_by_isbn_normalizes(self, repo, make_book):
        book = make_book()
        repo.save(book, EMBEDDING)

        assert repo.find_by_isbn("978 0 13 235088 4") == book
        assert repo.exists_by_isbn("9780132350884") is True
        assert repo.find_by_isbn("0132350882") is None

    def test_find_by_id_missing(self, repo):
        assert repo.find_by_id(uuid4()) is None

    def test_category_order_is_preserved(self, repo, make_book):
        book = make_book(category_names=("zeta", "alpha", "mid"))
        repo.save(book, EMBEDDING)

        assert repo.find_by_id(book.id).category_names == ("zeta", "alpha", "mid")

    def test_find_all(self, repo, make_book):
        repo.save(make_book(isbn=None), EMBEDDING)
        repo.save(make_book(isbn=None), EMBEDDING)

        assert len(repo.find_all()) == 2
        assert len(repo.find_all(limit=1)) == 1


# ============================================================================
# UPDATE AND DELETE
# ============================================================================

class TestUpdateAndDelete:
    def test_update_persists_changes(self, repo, make_book):
        book = make_book()
        repo.save(book, EMBEDDING)

        repo.update(book.update(available=True, path="/lib/clean-code.pdf"))

        loaded = repo.find_by_id(book.id)
        assert loaded.available is True
        assert loaded.path == "/lib/clean-code.pdf"
        np.testing.assert_allclose(repo.get_embedding(book.id), EMBEDDING)

    def test_update_rewrites_links(self, db, repo, make_book):
        book = make_book()
        repo.save(book, EMBEDDING)
        (poetry,) = SqliteCategoryRepository(db).find_or_create_many(["poetry"])

        repo.update(book.update(categories=[poetry]))

        assert repo.find_by_id(book.id).category_names == ("poetry",)

    def test_update_unknown_book(self, repo, make_book):
        with pytest.raises(BookNotFoundError):
            repo.update(make_book())

    def test_update_to_taken_isbn(self, repo, make_book):
        repo.save(make_book(), EMBEDDING)
        other = make_book(isbn="0132350882")
        repo.save(other, EMBEDDING)

        with pytest.raises(DuplicateISBNError):
            repo.update(other.update(isbn="9780132350884"))

    def test_delete_cascades_links(self, db, repo, make_book):
        book = make_book()
        repo.save(book, EMBEDDING)

        assert repo.delete(book.id) is True
        assert repo.delete(book.id) is False
        assert count_rows(db, "book_authors") == 0
        assert count_rows(db, "book_categories") == 0
        # Authors and categories outlive the book
        assert count_rows(db, "authors") == 1

    def test_author_in_use_cannot_be_deleted(self, db, repo, make_book):
        book = make_book()
        repo.save(book, EMBEDDING)

        with db.connect() as conn:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute("DELETE FROM authors WHERE id = ?", (str(book.authors[0].id),))
