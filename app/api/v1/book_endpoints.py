"""
API endpoints for cataloging books.

This module defines the FastAPI routes for creating and updating books.
It handles HTTP concerns and delegates to domain services; domain errors
are turned into responses by the handlers in app.api.v1.errors.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.domain.errors import BookNotFoundError
from app.domain.ports import BookRepository, EmbeddingService
from app.domain.services import CreateBookService, UpdateBookService
from app.domain.services.create_book_service import to_output
from app.api.v1 import schemas as api
from app.api.v1.converters import (
    api_request_to_domain,
    domain_output_to_api,
    update_request_to_changes,
)
from app.api.v1.dependencies import (
    get_book_repository,
    get_create_book_service,
    get_database,
    get_embedding_service,
    get_update_book_service,
)
from app.infrastructure.db.sqlite_database import SqliteDatabase

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": api.ErrorResponse, "description": "Invalid input"},
    409: {"model": api.ErrorResponse, "description": "ISBN already cataloged"},
    503: {"model": api.ErrorResponse, "description": "Embedding service unavailable"},
}


@router.post(
    "/books",
    response_model=api.BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def create_book(
    request: api.CreateBookRequest,
    service: CreateBookService = Depends(get_create_book_service),
) -> api.BookResponse:
    """
    Catalog a new book.

    Unknown authors and categories are created on the fly; the type must
    already exist. The book's embedding is generated before it is saved.
    """
    output = service.execute(api_request_to_domain(request))
    return domain_output_to_api(output)


@router.get(
    "/books/{book_id}",
    response_model=api.BookResponse,
    responses={404: {"model": api.ErrorResponse}},
)
def get_book_by_id(
    book_id: UUID,
    book_repo: BookRepository = Depends(get_book_repository),
) -> api.BookResponse:
    """
    Get a book by its unique identifier.

    Raises:
        404: Book not found
    """
    book = book_repo.find_by_id(book_id)
    if book is None:
        raise BookNotFoundError(book_id)
    return domain_output_to_api(to_output(book))


@router.patch(
    "/books/{book_id}",
    response_model=api.BookResponse,
    responses={404: {"model": api.ErrorResponse}, 400: {"model": api.ErrorResponse}},
)
def update_book(
    book_id: UUID,
    request: api.UpdateBookRequest,
    service: UpdateBookService = Depends(get_update_book_service),
) -> api.BookResponse:
    """Change the availability and/or storage path of a book."""
    output = service.execute(book_id, update_request_to_changes(request))
    return domain_output_to_api(output)


@router.get("/health", response_model=api.HealthResponse)
def health(
    database: SqliteDatabase = Depends(get_database),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
) -> api.HealthResponse:
    """Readiness of the database and the embedding backend."""
    db_ok = database.ping()
    embedding_ok = embedding_service.is_available()
    return api.HealthResponse(
        status="ok" if db_ok and embedding_ok else "degraded",
        database=db_ok,
        embedding_service=embedding_ok,
    )
