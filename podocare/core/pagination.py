"""
Pagination utilities.

Pure helpers used by the local repositories to slice collections and by
list screens to compute page windows, plus a small stateful controller that
holds (current_page, page_size) for a paginated list.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, TypeVar, Union

from .config import DEFAULT_PAGE_SIZE

T = TypeVar("T")

ELLIPSIS = "..."
MAX_VISIBLE_PAGES = 7

PageSlot = Union[int, str]


@dataclass(frozen=True)
class ItemRange:
    """1-based inclusive range of items shown on a page (0, 0 when empty)."""

    start: int
    end: int


def total_pages_for(total_items: int, page_size: int) -> int:
    if page_size <= 0:
        return 1
    return math.ceil(max(0, total_items) / page_size)


def compute_visible_pages(current_page: int, total_pages: int) -> List[PageSlot]:
    """
    Page numbers to display, compressed with ELLIPSIS markers.

    Returns at most MAX_VISIBLE_PAGES slots; first and last page are always
    present once the list is compressed.
    """
    total_pages = max(1, total_pages)

    if total_pages <= MAX_VISIBLE_PAGES:
        return list(range(1, total_pages + 1))

    if current_page <= 4:
        return [1, 2, 3, 4, 5, ELLIPSIS, total_pages]

    if current_page >= total_pages - 3:
        return [1, ELLIPSIS] + list(range(total_pages - 4, total_pages + 1))

    return [
        1,
        ELLIPSIS,
        current_page - 1,
        current_page,
        current_page + 1,
        ELLIPSIS,
        total_pages,
    ]


def compute_item_range(current_page: int, page_size: int, total_items: int) -> ItemRange:
    start = 0 if total_items == 0 else (current_page - 1) * page_size + 1
    end = min(current_page * page_size, total_items)
    return ItemRange(start=start, end=end)


def clamp_page(requested_page: int, total_pages: int) -> int:
    return max(1, min(requested_page, max(1, total_pages)))


def paginate_array(items: Sequence[T], page: int, page_size: int) -> List[T]:
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


class PaginationController:
    """
    Holds the (current_page, page_size) state of one paginated list.

    total_pages is derived from total_items and page_size; whenever either
    changes the current page is clamped down if it fell out of range.
    Changing the page size always returns to page 1.
    """

    def __init__(
        self,
        total_items: int = 0,
        page_size: Optional[int] = None,
        current_page: int = 1,
    ):
        self._initial_page = current_page
        self._initial_page_size = page_size or DEFAULT_PAGE_SIZE
        self._page_size = self._initial_page_size
        self._total_items = max(0, total_items)
        self._current_page = clamp_page(current_page, self.total_pages)

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def total_items(self) -> int:
        return self._total_items

    @property
    def total_pages(self) -> int:
        return total_pages_for(self._total_items, self._page_size)

    @property
    def item_range(self) -> ItemRange:
        return compute_item_range(self._current_page, self._page_size, self._total_items)

    @property
    def visible_pages(self) -> List[PageSlot]:
        return compute_visible_pages(self._current_page, self.total_pages)

    def go_to_page(self, page: int) -> int:
        self._current_page = clamp_page(page, self.total_pages)
        return self._current_page

    def set_page_size(self, size: int) -> None:
        if size < 1:
            raise ValueError("Page size must be positive")
        self._page_size = size
        self._current_page = 1

    def set_total_items(self, total_items: int) -> None:
        self._total_items = max(0, total_items)
        self._clamp_to_range()

    def go_to_first_page(self) -> int:
        return self.go_to_page(1)

    def go_to_last_page(self) -> int:
        return self.go_to_page(self.total_pages)

    def go_to_next_page(self) -> int:
        return self.go_to_page(self._current_page + 1)

    def go_to_previous_page(self) -> int:
        return self.go_to_page(self._current_page - 1)

    def reset(self) -> None:
        self._page_size = self._initial_page_size
        self._current_page = clamp_page(self._initial_page, self.total_pages)

    def params(self, search: Optional[str] = None, **filters: Any):
        """Build the PageParams for the page currently selected."""
        from podocare.domain.entities import PageParams

        return PageParams(
            page=self._current_page,
            limit=self._page_size,
            search=search or None,
            filters=dict(filters),
        )

    def _clamp_to_range(self) -> None:
        max_page = max(1, self.total_pages)
        if self._current_page > max_page:
            self._current_page = max_page

    def to_dict(self) -> Dict[str, Any]:
        item_range = self.item_range
        return {
            "current_page": self._current_page,
            "page_size": self._page_size,
            "total_items": self._total_items,
            "total_pages": self.total_pages,
            "start": item_range.start,
            "end": item_range.end,
        }
