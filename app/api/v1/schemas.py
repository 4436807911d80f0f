"""
Request and response models for the catalog API.

These models only describe the wire format. Field invariants (lengths,
ISBN checksum, known formats and types) are enforced by the domain, so the
API reports them with the domain's own error messages.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CreateBookRequest(BaseModel):
    """
    Request body for POST /books.
    """
    title: str = Field(description="Book title")
    authors: list[str] = Field(description="Author names, in credit order")
    description: str = Field(description="Book description/summary")
    type: str = Field(description="Book type (e.g. 'technical', 'novel')")
    categories: list[str] = Field(description="Category names (created if new)")
    format: str = Field(description="File format (e.g. 'pdf', 'epub')")
    isbn: str | None = Field(default=None, description="ISBN-10 or ISBN-13")
    available: bool | None = Field(default=None, description="Whether the file can be downloaded")
    path: str | None = Field(default=None, description="Location of the file in storage")


class UpdateBookRequest(BaseModel):
    """
    Request body for PATCH /books/{book_id}.

    Omitted fields are left unchanged; an explicit null path clears it.
    """
    available: bool | None = None
    path: str | None = None


class NamedRef(BaseModel):
    id: UUID
    name: str


class BookResponse(BaseModel):
    """
    API representation of a cataloged book.

    The embedding vector is never exposed.
    """

    id: UUID = Field(description="Unique identifier for this book in our system")
    title: str
    authors: list[NamedRef]
    description: str
    type: str
    categories: list[NamedRef]
    format: str
    isbn: str | None = None
    available: bool
    path: str | None = None
    created_at: datetime = Field(description="When this book was added to our catalog")
    updated_at: datetime = Field(description="When this book was last updated")


class ErrorResponse(BaseModel):
    error: str = Field(description="Human-readable message")
    kind: str = Field(description="Error class name, e.g. 'DuplicateISBNError'")


class HealthResponse(BaseModel):
    status: str = Field(description="'ok' when every dependency is ready, else 'degraded'")
    database: bool
    embedding_service: bool
