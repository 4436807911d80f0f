"""
Converters between domain value objects and API schemas.

This module centralizes all conversion logic between the domain layer
and the API layer, maintaining clean separation of concerns.
"""

from dataclasses import asdict

from app.domain import value_objects as domain_vo
from app.api.v1 import schemas as api


def api_request_to_domain(request: api.CreateBookRequest) -> domain_vo.CreateBookInput:
    """
    Convert an API create request to the domain input DTO.

    Args:
        request: Validated API request body

    Returns:
        CreateBookInput for CreateBookService
    """
    return domain_vo.CreateBookInput(
        title=request.title,
        authors=list(request.authors),
        description=request.description,
        type=request.type,
        category_names=list(request.categories),
        format=request.format,
        isbn=request.isbn,
        available=request.available,
        path=request.path,
    )


def domain_output_to_api(output: domain_vo.CreateBookOutput) -> api.BookResponse:
    """
    Convert the domain output DTO to the API response model.
    """
    return api.BookResponse(**asdict(output))


def update_request_to_changes(request: api.UpdateBookRequest) -> dict:
    """Only the fields the client actually sent."""
    return request.model_dump(exclude_unset=True)
