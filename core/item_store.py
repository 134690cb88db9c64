"""
In-memory item collection for one list view.

Holds the full collection fetched from the backend together with its
provenance metadata (per-item save counts) and the facet values derived
from it.
"""

import logging
from typing import Callable, Dict, Generic, Iterable, Iterator, List, Mapping, Optional, Tuple, TypeVar

from core.dto.catalog import ItemId
from core.errors import NotFound
from core.ports.backend import Backend, Row

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ItemStore(Generic[T]):
    """Immutable snapshot of a list's items plus derived metadata.

    Usage:
        store = ItemStore.load(backend, "ai_tools", Item.from_row)
        categories = store.facets("category")
    """

    def __init__(self, items: Iterable[T] = (), save_counts: Optional[Mapping] = None):
        self._items: Tuple[T, ...] = ()
        self._by_id: Dict[ItemId, T] = {}
        self._facets: Dict[str, List[str]] = {}
        self.save_counts: Dict[ItemId, int] = dict(save_counts or {})
        self.replace(items)

    @classmethod
    def load(
        cls, backend: Backend, table: str, parse: Callable[[Row], T]
    ) -> "ItemStore[T]":
        """Fetch every row of ``table`` and parse it into records.

        Raises:
            RemoteFailure: Backend unavailable
            UnexpectedShape: A row failed validation
        """
        rows = backend.query_items(table)
        items = [parse(row) for row in rows]
        logger.debug(f"Loaded {len(items)} rows from {table}")
        return cls(items)

    def replace(self, items: Iterable[T]) -> None:
        """Swap in a new collection; facets are recomputed lazily."""
        self._items = tuple(items)
        self._by_id = {getattr(item, "id", None): item for item in self._items}
        self._facets = {}

    def set_save_counts(self, counts: Mapping) -> None:
        self.save_counts = dict(counts)

    @property
    def items(self) -> Tuple[T, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def get(self, item_id: ItemId) -> T:
        try:
            return self._by_id[item_id]
        except KeyError:
            raise NotFound(f"Item {item_id} not found")

    def resolve(self, raw_id) -> ItemId:
        """Map an id typed as text (e.g. on the command line) to the stored id.

        Unknown ids are returned unchanged.
        """
        if raw_id in self._by_id:
            return raw_id
        for item_id in self._by_id:
            if str(item_id) == str(raw_id):
                return item_id
        return raw_id

    def __contains__(self, item_id) -> bool:
        return item_id in self._by_id

    def facets(self, field: str) -> List[str]:
        """Distinct values of ``field`` in first-seen order."""
        if field not in self._facets:
            seen: Dict[str, None] = {}
            for item in self._items:
                value = getattr(item, field)
                if value not in seen:
                    seen[value] = None
            self._facets[field] = list(seen)
        return list(self._facets[field])
