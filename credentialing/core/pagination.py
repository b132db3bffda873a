"""
Core pagination utilities for the engines and API endpoints.
"""
from typing import TypeVar, Generic, List, Sequence, Tuple
from pydantic import BaseModel
import math

T = TypeVar("T")


class PageResponse(BaseModel, Generic[T]):
    """
    Paginated response model.

    Attributes:
        items: List of items for the current page
        total: Total number of items
        page: Current page number
        size: Number of items per page
        pages: Total number of pages
        has_next: Whether there is a next page
        has_prev: Whether there is a previous page
    """
    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool


def page_count(total: int, size: int) -> int:
    """Number of pages needed for ``total`` items at ``size`` per page."""
    return math.ceil(total / size) if total > 0 else 0


def paginate_items(items: Sequence[T], page: int, size: int) -> Tuple[List[T], int, int]:
    """
    Slice an already ordered sequence.

    Args:
        items: Ordered items
        page: Page number (1-indexed)
        size: Number of items per page

    Returns:
        Tuple of (items on the page, total item count, total pages). A page
        beyond the last one yields an empty list.
    """
    total = len(items)
    offset = (page - 1) * size
    return list(items[offset:offset + size]), total, page_count(total, size)
