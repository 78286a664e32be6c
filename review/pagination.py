"""
Page-window computation shared by every paginated list.
"""

import math
from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page:
    """A window over a collection. Indices are 0-based, end exclusive."""
    page: int
    page_size: int
    count: int
    start_index: int
    end_index: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.count / self.page_size))

    @property
    def is_empty(self) -> bool:
        return self.start_index == self.end_index

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "count": self.count,
            "total_pages": self.total_pages,
            "start_index": self.start_index,
            "end_index": self.end_index,
        }


def paginate(count: int, page_size: int, requested_page: int) -> Page:
    """
    Compute the window for `requested_page`.

    The page is clamped into [1, max(1, ceil(count / page_size))], so an
    out-of-range request lands on the nearest real page and an empty
    collection yields an empty page 1.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    last_page = max(1, math.ceil(count / page_size))
    page = min(max(requested_page, 1), last_page)

    start = min((page - 1) * page_size, count)
    end = min(start + page_size, count)
    return Page(page=page, page_size=page_size, count=count, start_index=start, end_index=end)


def page_slice(items: Sequence[T], requested_page: int, page_size: int) -> tuple[Page, list[T]]:
    """Paginate a sequence, returning the window and its items."""
    window = paginate(len(items), page_size, requested_page)
    return window, list(items[window.start_index:window.end_index])
