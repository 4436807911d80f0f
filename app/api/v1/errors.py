"""
Mapping from domain errors to HTTP responses.

Every error response has the same body: {"error": message, "kind": class name}.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.domain.errors import (
    BookNotFoundError,
    CatalogError,
    DuplicateISBNError,
    EmbeddingServiceUnavailableError,
    EmbeddingTextTooLongError,
    InvalidReferenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; the first matching class wins.
STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidReferenceError, status.HTTP_400_BAD_REQUEST),
    (EmbeddingTextTooLongError, status.HTTP_400_BAD_REQUEST),
    (DuplicateISBNError, status.HTTP_409_CONFLICT),
    (BookNotFoundError, status.HTTP_404_NOT_FOUND),
    (EmbeddingServiceUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(error: Exception) -> int:
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(error: Exception) -> JSONResponse:
    status_code = status_for(error)
    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        message = "Internal server error"
    else:
        message = str(error)
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "kind": type(error).__name__},
    )


async def _catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    return error_response(exc)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, _catalog_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
