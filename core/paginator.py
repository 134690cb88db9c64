"""
Fixed-size pagination and the page-button window.

Used by every list view. Local lists know their own length; the news feed
paginates with the total reported by the news collaborator instead.
"""

import math
from dataclasses import dataclass, field
from typing import Generic, List, Sequence, TypeVar

T = TypeVar("T")

WINDOW_WIDTH = 5


@dataclass
class Page(Generic[T]):
    """One rendered page of a list."""

    items: List[T]
    current_page: int
    total_pages: int
    total_count: int
    window: List[int] = field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


def total_pages_for(count: int, page_size: int) -> int:
    """Number of pages for ``count`` items; never less than 1."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return max(1, math.ceil(max(count, 0) / page_size))


def page_window(total_pages: int, current_page: int, width: int = WINDOW_WIDTH) -> List[int]:
    """Page numbers to show as buttons.

    The window is centred on the current page and clamped to the first or
    last ``width`` pages near either end.

    Args:
        total_pages: Number of pages
        current_page: Page being displayed
        width: Number of buttons

    Returns:
        Ascending list of page numbers
    """
    if total_pages <= width:
        return list(range(1, total_pages + 1))
    half = width // 2
    if current_page <= half + 1:
        start = 1
    elif current_page >= total_pages - half:
        start = total_pages - width + 1
    else:
        start = current_page - half
    return list(range(start, start + width))


def paginate(
    ordered: Sequence[T], page_size: int, current_page: int, width: int = WINDOW_WIDTH
) -> Page[T]:
    """Slice ``ordered`` into the requested page.

    An out-of-range page yields an empty item list rather than an error.

    Args:
        ordered: Filtered and sorted items
        page_size: Items per page (>= 1)
        current_page: 1-based page number
        width: Page-button window width

    Returns:
        Page with the items of ``current_page``
    """
    total = len(ordered)
    total_pages = total_pages_for(total, page_size)
    if current_page < 1:
        items: List[T] = []
    else:
        start = (current_page - 1) * page_size
        items = list(ordered[start : start + page_size])
    return Page(
        items=items,
        current_page=current_page,
        total_pages=total_pages,
        total_count=total,
        window=page_window(total_pages, current_page, width),
    )


def paginate_remote(
    items: Sequence[T],
    total_results: int,
    page_size: int,
    current_page: int,
    width: int = WINDOW_WIDTH,
) -> Page[T]:
    """Build a Page for items the collaborator already sliced.

    ``items`` is the page the collaborator returned; ``total_results`` is its
    reported total, which drives the page count.
    """
    total_pages = total_pages_for(total_results, page_size)
    in_range = 1 <= current_page <= total_pages
    return Page(
        items=list(items[:page_size]) if in_range else [],
        current_page=current_page,
        total_pages=total_pages,
        total_count=max(total_results, 0),
        window=page_window(total_pages, current_page, width),
    )
