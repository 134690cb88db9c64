"""
List view state: filter -> sort -> paginate.

A ListView owns the query, facet selector, sort key and current page of one
list (tool catalog, learning articles). Changing the query, selector or sort
key sends the view back to page 1 so the displayed page always belongs to
the current filter state.

Fetches are tagged with a generation number. Only the result of the most
recent fetch is applied; results of superseded or discarded fetches are
dropped.
"""

import logging
from typing import Generic, Optional, Sequence, TypeVar

from core.errors import InvalidInput
from core.filter_engine import MATCH_ALL, filter_items
from core.item_store import ItemStore
from core.paginator import WINDOW_WIDTH, Page, paginate
from core.sort_engine import SORT_KEYS, sort_items

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ListView(Generic[T]):
    """Filter, sort and page state for one list."""

    def __init__(
        self,
        page_size: int,
        facet_field: str = "category",
        store: Optional[ItemStore[T]] = None,
        window_width: int = WINDOW_WIDTH,
        match_all: Sequence = MATCH_ALL,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.page_size = page_size
        self.facet_field = facet_field
        self.window_width = window_width
        self.match_all = match_all
        self.store: ItemStore[T] = store if store is not None else ItemStore()
        self.query = ""
        self.category = ""
        self.sort_key = ""
        self.current_page = 1
        self._generation = 0

    # ==================== FILTER / SORT STATE ====================

    def set_query(self, query: Optional[str]) -> None:
        query = query or ""
        if query != self.query:
            self.query = query
            self._reset_page()

    def set_category(self, category: Optional[str]) -> None:
        category = "" if category in self.match_all else category
        if category != self.category:
            self.category = category
            self._reset_page()

    def set_sort(self, sort_key: Optional[str]) -> None:
        sort_key = sort_key or ""
        if sort_key not in SORT_KEYS:
            raise InvalidInput(f"Unknown sort key '{sort_key}'")
        if sort_key != self.sort_key:
            self.sort_key = sort_key
            self._reset_page()

    def go_to(self, page: int) -> None:
        self.current_page = page

    def _reset_page(self) -> None:
        if self.current_page != 1:
            logger.debug(f"Filter state changed, page {self.current_page} -> 1")
        self.current_page = 1

    # ==================== RENDERING ====================

    def facets(self):
        return self.store.facets(self.facet_field)

    def render(self) -> Page[T]:
        """Run the pipeline for the current state."""
        subset = filter_items(self.store, self.query, self.category, self.facet_field, self.match_all)
        ordered = sort_items(subset, self.sort_key, self.store.save_counts)
        return paginate(ordered, self.page_size, self.current_page, self.window_width)

    # ==================== FETCH GENERATIONS ====================

    def begin_fetch(self) -> int:
        """Start a fetch; returns the token its result must carry."""
        self._generation += 1
        logger.debug(f"Fetch generation {self._generation} started")
        return self._generation

    def apply_fetch(self, token: int, store: ItemStore[T]) -> bool:
        """Install a fetched collection if ``token`` is still current.

        A new collection is an upstream change, so the view returns to page 1.

        Returns:
            True if applied, False if the fetch was superseded or discarded
        """
        if token != self._generation:
            logger.debug(f"Dropping stale fetch {token} (current {self._generation})")
            return False
        self.store = store
        self._reset_page()
        return True

    def discard(self) -> None:
        """Leaving the view: any fetch still in flight will be ignored."""
        self._generation += 1
