"""Text and facet filtering for listed items."""

from typing import Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

# Selectors that match every item. A catalog category may itself be
# named "all", so only the learning view treats "all" as unfiltered.
MATCH_ALL = ("", None)
MATCH_ALL_LEVELS = MATCH_ALL + ("all",)


def matches(
    item,
    query: Optional[str],
    category: Optional[str],
    field: str = "category",
    match_all: Sequence = MATCH_ALL,
) -> bool:
    """Check one item against the title query and the facet selector."""
    if query and query.lower() not in item.title.lower():
        return False
    if category in match_all:
        return True
    return getattr(item, field) == category


def filter_items(
    items: Iterable[T],
    query: Optional[str] = "",
    category: Optional[str] = "",
    field: str = "category",
    match_all: Sequence = MATCH_ALL,
) -> List[T]:
    """Return the items matching both the query and the facet selector.

    The query is a case-insensitive substring test on the title. The
    selector is an exact match on ``field`` unless it is one of
    ``match_all``.
    Input order is preserved.

    Args:
        items: Items to filter
        query: Title substring ("" matches all)
        category: Facet value
        field: Record attribute the selector compares against
        match_all: Selector values that disable the facet filter

    Returns:
        New list with the matching items
    """
    return [item for item in items if matches(item, query, category, field, match_all)]
