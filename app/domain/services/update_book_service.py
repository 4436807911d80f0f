"""
Domain service for updating the mutable fields of a cataloged book.
"""

import logging
from typing import Any, Mapping, Optional
from uuid import UUID

from app.domain.errors import BookNotFoundError
from app.domain.ports import BookRepository
from app.domain.value_objects import CreateBookOutput

from .create_book_service import to_output

UPDATABLE_FIELDS = ("available", "path")


class UpdateBookService:
    """
    Applies a partial update to a persisted book.

    Only `available` and `path` can change after creation: every other
    field feeds the embedding, which is never regenerated here.
    """

    def __init__(
        self,
        book_repo: BookRepository,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._book_repo = book_repo
        self._logger = logger or logging.getLogger(__name__)

    def execute(self, book_id: UUID, changes: Mapping[str, Any]) -> CreateBookOutput:
        """
        Update a book.

        Args:
            book_id: Id of the book to update
            changes: Fields to change. Absent keys are left untouched;
                path=None clears the path.

        Returns:
            The updated book

        Raises:
            BookNotFoundError: If no book has this id
            ValueError: If changes names a field that cannot be updated
            ValidationError: If a new value violates its invariant
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        book = self._book_repo.find_by_id(book_id)
        if book is None:
            self._logger.warning(f"Update requested for unknown book {book_id}")
            raise BookNotFoundError(book_id)

        if not changes:
            return to_output(book)

        updated = self._book_repo.update(book.update(**changes))
        self._logger.info(f"Updated book {book_id}: {sorted(changes)}")
        return to_output(updated)
