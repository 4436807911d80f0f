"""
Typed exceptions for the catalog domain.

Every failure the write path can produce has its own class so callers can
react by kind instead of parsing messages. The hierarchy follows the error
taxonomy of the catalog:

    CatalogError
    ├── ValidationError (also a ValueError)
    │   ├── RequiredFieldError
    │   ├── FieldTooLongError
    │   ├── TooManyItemsError
    │   ├── DuplicateItemError
    │   ├── InvalidUUIDError
    │   ├── InvalidISBNError
    │   └── InvalidBookFormatError
    ├── ConflictError
    │   └── DuplicateISBNError
    ├── InvalidReferenceError
    │   └── InvalidBookTypeError
    ├── EmbeddingServiceError
    │   ├── EmbeddingServiceUnavailableError
    │   └── EmbeddingTextTooLongError
    └── NotFoundError
        └── BookNotFoundError

PersistenceError is not a CatalogError: it signals an internal
fault (a bug or a broken database), never a problem with the caller's input.
"""

from typing import Iterable, Optional


class CatalogError(Exception):
    """Base class for all expected catalog failures."""


# =============================================================================
# Validation errors
# =============================================================================


class ValidationError(CatalogError, ValueError):
    """Input violates a field invariant. Raised before any I/O happens."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class RequiredFieldError(ValidationError):
    def __init__(self, field: str) -> None:
        super().__init__(f'"{field}" is required and cannot be empty', field)


class FieldTooLongError(ValidationError):
    def __init__(self, field: str, max_length: int) -> None:
        super().__init__(
            f'"{field}" exceeds maximum length of {max_length} characters', field
        )
        self.max_length = max_length


class TooManyItemsError(ValidationError):
    def __init__(self, field: str, max_items: int) -> None:
        super().__init__(f'"{field}" exceeds maximum of {max_items} items', field)
        self.max_items = max_items


class DuplicateItemError(ValidationError):
    def __init__(self, field: str, value: str) -> None:
        super().__init__(f'Duplicate value "{value}" in "{field}"', field)
        self.value = value


class InvalidUUIDError(ValidationError):
    def __init__(self, value: object, field: str = "id") -> None:
        super().__init__(f'Invalid UUID format: "{value}"', field)
        self.value = value


class InvalidISBNError(ValidationError):
    def __init__(self, value: str) -> None:
        super().__init__(
            f'Invalid ISBN: "{value}". Must be a valid ISBN-10 or ISBN-13 '
            f"with correct checksum.",
            "isbn",
        )
        self.value = value


class InvalidBookFormatError(ValidationError):
    def __init__(self, value: str, valid_formats: Iterable[str]) -> None:
        self.valid_formats = list(valid_formats)
        super().__init__(
            f'Invalid book format: "{value}". '
            f"Valid formats are: {', '.join(self.valid_formats)}",
            "format",
        )
        self.value = value


# =============================================================================
# Conflict errors
# =============================================================================


class ConflictError(CatalogError):
    """The write would violate a uniqueness rule of the catalog."""


class DuplicateISBNError(ConflictError):
    def __init__(self, isbn: str) -> None:
        super().__init__(f'A book with ISBN "{isbn}" already exists')
        self.isbn = isbn


# =============================================================================
# Reference errors
# =============================================================================


class InvalidReferenceError(CatalogError):
    """A referenced entity (by name) does not exist server-side."""


class InvalidBookTypeError(InvalidReferenceError):
    def __init__(self, value: str, valid_types: Iterable[str]) -> None:
        self.valid_types = list(valid_types)
        if self.valid_types:
            hint = f"Valid types are: {', '.join(self.valid_types)}"
        else:
            hint = "No book types are configured"
        super().__init__(f'Invalid book type: "{value}". {hint}')
        self.value = value


# =============================================================================
# Embedding service errors
# =============================================================================


class EmbeddingServiceError(CatalogError):
    """Base class for failures around embedding generation."""


class EmbeddingServiceUnavailableError(EmbeddingServiceError):
    """Service unreachable, timed out, or answered with a non-2xx status.

    This is the only error class worth retrying.
    """

    def __init__(self, reason: Optional[str] = None) -> None:
        if reason:
            message = f"Embedding service unavailable: {reason}"
        else:
            message = "Embedding service unavailable, please try again later"
        super().__init__(message)
        self.reason = reason


class EmbeddingTextTooLongError(EmbeddingServiceError):
    def __init__(self, actual_length: int, max_length: int) -> None:
        super().__init__(
            f"Embedding text exceeds maximum length: {actual_length} characters "
            f"(max: {max_length})"
        )
        self.actual_length = actual_length
        self.max_length = max_length


# =============================================================================
# Not-found errors
# =============================================================================


class NotFoundError(CatalogError):
    """A referenced entity is absent on an update path."""


class BookNotFoundError(NotFoundError):
    def __init__(self, identifier: object) -> None:
        super().__init__(f"Book not found: {identifier}")
        self.identifier = identifier


# =============================================================================
# Internal errors
# =============================================================================


class PersistenceError(RuntimeError):
    """Unexpected database failure. Never caused by caller input."""


class UnresolvedRelationError(PersistenceError):
    """find_or_create_many could not resolve every requested name."""

    def __init__(self, relation: str, missing: Iterable[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"Failed to find or create the requested {relation}: "
            f"{', '.join(self.missing)}"
        )
        self.relation = relation
