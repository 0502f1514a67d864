"""
Offset pagination shared by the book, reader and lending listings.

    currentPage = offset / limit + 1
    totalPages  = ceil(total / limit)

An offset that is not a multiple of the limit yields a fractional page
(offset=5, limit=10 → 1.5); whole pages are reported as integers.
"""

import math
from typing import Tuple, Union

from library_api.exceptions import ValidationError

Page = Union[int, float]


def page_info(total: int, limit: int, offset: int) -> Tuple[Page, int]:
    """Returns (current_page, total_pages) for an offset/limit window."""
    if limit <= 0:
        raise ValidationError(message="limit must be greater than 0", field="limit")
    if offset < 0:
        raise ValidationError(message="offset must not be negative", field="offset")

    current = offset / limit + 1
    current_page: Page = int(current) if current.is_integer() else current
    total_pages = math.ceil(total / limit)
    return current_page, total_pages
