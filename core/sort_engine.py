"""Optional ordering of a filtered list."""

from typing import List, Mapping, Optional, Sequence, TypeVar

from core.errors import InvalidInput

T = TypeVar("T")

POPULARITY = "popularity"
SORT_KEYS = ("", POPULARITY)


def sort_items(
    items: Sequence[T],
    key: Optional[str] = "",
    save_counts: Optional[Mapping] = None,
) -> List[T]:
    """Order items by ``key`` without touching the input sequence.

    "popularity" sorts by descending save count; ties keep their incoming
    order. An empty key returns a copy in the same order.

    Args:
        items: Filtered items
        key: "" or "popularity"
        save_counts: Item id -> save count (missing ids count as 0)

    Returns:
        New ordered list

    Raises:
        InvalidInput: Unknown sort key
    """
    if not key:
        return list(items)
    if key == POPULARITY:
        counts: Mapping = save_counts or {}
        # sorted() is stable
        return sorted(items, key=lambda item: counts.get(item.id, 0), reverse=True)
    raise InvalidInput(f"Unknown sort key '{key}'. Use one of: {', '.join(k for k in SORT_KEYS if k)}")

