"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of repositories and services
for use with FastAPI's Depends() system.

Note: We use module-level singletons instead of @lru_cache with Depends()
parameters, which is an antipattern that can cause unexpected behavior.
"""

from typing import Optional

from app.config import Settings, load_settings
from app.domain.ports import BookRepository, EmbeddingService
from app.domain.services import CreateBookService, UpdateBookService
from app.infrastructure.db.sqlite_author_repository import SqliteAuthorRepository
from app.infrastructure.db.sqlite_book_repository import SqliteBookRepository
from app.infrastructure.db.sqlite_category_repository import SqliteCategoryRepository
from app.infrastructure.db.sqlite_database import SqliteDatabase
from app.infrastructure.db.sqlite_type_repository import SqliteTypeRepository
from app.infrastructure.embedding.factory import build_embedding_service

# Module-level singletons (initialized lazily)
_settings: Optional[Settings] = None
_database: Optional[SqliteDatabase] = None
_book_repository: Optional[BookRepository] = None
_embedding_service: Optional[EmbeddingService] = None
_create_book_service: Optional[CreateBookService] = None
_update_book_service: Optional[UpdateBookService] = None


def get_settings() -> Settings:
    """Settings read once from the environment."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_database() -> SqliteDatabase:
    """Provide a singleton database (creates the schema on first use)."""
    global _database
    if _database is None:
        _database = SqliteDatabase(get_settings().db_path)
    return _database


def get_book_repository() -> BookRepository:
    global _book_repository
    if _book_repository is None:
        _book_repository = SqliteBookRepository(get_database())
    return _book_repository


def get_embedding_service() -> EmbeddingService:
    """Provide the embedding backend selected by EMBEDDING_BACKEND."""
    global _embedding_service
    if _embedding_service is None:
        _embedding_service = build_embedding_service(get_settings())
    return _embedding_service


def get_create_book_service() -> CreateBookService:
    """Provide the CreateBookService with all dependencies wired."""
    global _create_book_service
    if _create_book_service is None:
        db = get_database()
        _create_book_service = CreateBookService(
            book_repo=get_book_repository(),
            author_repo=SqliteAuthorRepository(db),
            category_repo=SqliteCategoryRepository(db),
            type_repo=SqliteTypeRepository(db),
            embedding_service=get_embedding_service(),
        )
    return _create_book_service


def get_update_book_service() -> UpdateBookService:
    global _update_book_service
    if _update_book_service is None:
        _update_book_service = UpdateBookService(book_repo=get_book_repository())
    return _update_book_service


def reset_dependencies() -> None:
    """
    Reset all singletons. Useful for testing.

    This allows tests to inject mock dependencies by resetting
    the module state between test cases.
    """
    global _settings, _database, _book_repository, _embedding_service
    global _create_book_service, _update_book_service

    _settings = None
    _database = None
    _book_repository = None
    _embedding_service = None
    _create_book_service = None
    _update_book_service = None
