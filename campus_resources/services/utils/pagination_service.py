import math
from typing import Any, Dict, List, Sequence, TypeVar

T = TypeVar('T')


def paginate(items: Sequence[T], page: int, page_size: int) -> List[T]:
    """
    Returns the 1-indexed `page` of `items`.

    A page past the end is an empty list, never an error. Pages below 1 are
    read as page 1.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    page = max(page, 1)
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


def total_pages(total: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    return max(1, math.ceil(total / page_size))


class PaginationService:
    @staticmethod
    def get_paginated_data(
        items: Sequence[T],
        page: int = 1,
        page_size: int = 10,
    ) -> Dict[str, Any]:
        """
        Generic page slice over an already filtered, already sorted list.

        Args:
            items: Filtered catalog entries
            page: 1-indexed page number
            page_size: Entries per page

        Returns:
            dict with the page items and paging metadata

        Example:
            // First load
            fetch('/api/resources/?page_size=10')   // page=1

            // Next page
            fetch('/api/resources/?page=2&page_size=10')
        """
        page = max(page, 1)
        total = len(items)
        return {
            "items": paginate(items, page, page_size),
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": total_pages(total, page_size),
            "has_more": page * page_size < total,
        }
