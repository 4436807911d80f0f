"""
Tests for SqliteTypeRepository and the seeded default types.
"""

import pytest

from app.domain.entities import DEFAULT_BOOK_TYPES
from app.infrastructure.db.sqlite_database import SqliteDatabase
from app.infrastructure.db.sqlite_type_repository import SqliteTypeRepository


@pytest.fixture
def db(tmp_path):
    return SqliteDatabase(tmp_path / "test_catalog.db")


@pytest.fixture
def repo(db):
    return SqliteTypeRepository(db)


class TestDefaultTypes:
    def test_default_types_are_seeded(self, repo):
        assert sorted(t.name for t in repo.find_all()) == sorted(DEFAULT_BOOK_TYPES)

    def test_seeding_is_idempotent(self, db, tmp_path):
        """Opening the same file again does not duplicate types."""
        SqliteDatabase(db.path)

        assert SqliteTypeRepository(db).count() == len(DEFAULT_BOOK_TYPES)


class TestLookups:
    @pytest.mark.parametrize("name", ["technical", "Technical", "  NOVEL "])
    def test_find_by_name_is_case_insensitive(self, repo, name):
        found = repo.find_by_name(name)

        assert found is not None
        assert found.name == name.strip().lower()

    @pytest.mark.parametrize("name", ["poetry", "", "   "])
    def test_unknown_type(self, repo, name):
        assert repo.find_by_name(name) is None

    def test_find_by_id(self, repo):
        technical = repo.find_by_name("technical")

        assert repo.find_by_id(technical.id) == technical
