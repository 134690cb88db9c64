"""
Unit tests for the list pipeline: filter_items, sort_items and the paginator.

Pure functions, no backend needed.
"""

import os
import sys
from dataclasses import dataclass

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.filter_engine import MATCH_ALL_LEVELS, filter_items, matches
from core.paginator import page_window, paginate, paginate_remote, total_pages_for
from core.sort_engine import POPULARITY, sort_items


@dataclass(frozen=True)
class Tool:
    id: int
    title: str
    category: str


TOOLS = [
    Tool(1, "ChatGPT", "Text"),
    Tool(2, "Midjourney", "Images"),
    Tool(3, "GPT Engineer", "Code"),
    Tool(4, "Stable Diffusion", "Images"),
    Tool(5, "Claude", "Text"),
]


# ============================================================================
# Test filter_items()
# ============================================================================


def test_filter_query_case_insensitive():
    """Query matches titles as a case-insensitive substring."""
    result = filter_items(TOOLS, query="gpt")
    assert [t.id for t in result] == [1, 3]
    print("✓ test_filter_query_case_insensitive passed")


def test_filter_category_exact():
    result = filter_items(TOOLS, category="Images")
    assert [t.id for t in result] == [2, 4]
    print("✓ test_filter_category_exact passed")


def test_filter_query_and_category():
    result = filter_items(TOOLS, query="diff", category="Images")
    assert [t.id for t in result] == [4]
    print("✓ test_filter_query_and_category passed")


@pytest.mark.parametrize("selector", ["", None])
def test_filter_match_all_selectors(selector):
    """An empty selector matches every item."""
    assert filter_items(TOOLS, category=selector) == TOOLS


def test_filter_category_named_all():
    """A catalog category called "all" is an ordinary facet value."""
    tools = TOOLS + [Tool(6, "Zapier", "all")]
    assert [t.id for t in filter_items(tools, category="all")] == [6]
    assert filter_items(tools, category="all", match_all=MATCH_ALL_LEVELS) == tools


def test_filter_is_subset_and_keeps_order():
    result = filter_items(TOOLS, query="a")
    assert all(t in TOOLS for t in result)
    assert result == [t for t in TOOLS if "a" in t.title.lower()]
    print("✓ test_filter_is_subset_and_keeps_order passed")


def test_filter_does_not_mutate_input():
    items = list(TOOLS)
    filter_items(items, query="zzz")
    assert items == TOOLS


def test_filter_no_match():
    assert filter_items(TOOLS, query="nothing like this") == []


def test_matches_other_facet_field():
    @dataclass
    class Article:
        title: str
        difficulty: str

    article = Article("Intro", "Средний")
    assert matches(article, "", "Средний", field="difficulty")
    assert not matches(article, "", "Продвинутый", field="difficulty")
    assert matches(article, "", "all", field="difficulty", match_all=MATCH_ALL_LEVELS)
    assert not matches(article, "", "all", field="difficulty")


# ============================================================================
# Test sort_items()
# ============================================================================


def test_sort_popularity_descending():
    counts = {1: 2, 2: 5, 3: 0, 4: 1}
    result = sort_items(TOOLS, POPULARITY, counts)
    assert [t.id for t in result] == [2, 1, 4, 3, 5]
    print("✓ test_sort_popularity_descending passed")


def test_sort_popularity_is_stable():
    """Ties keep their incoming order."""
    counts = {1: 1, 2: 1, 3: 1, 4: 1, 5: 1}
    result = sort_items(TOOLS, POPULARITY, counts)
    assert result == TOOLS
    print("✓ test_sort_popularity_is_stable passed")


def test_sort_missing_counts_are_zero():
    result = sort_items(TOOLS, POPULARITY, {5: 3})
    assert [t.id for t in result] == [5, 1, 2, 3, 4]


def test_sort_empty_key_keeps_order_and_copies():
    result = sort_items(TOOLS, "", {2: 10})
    assert result == TOOLS
    assert result is not TOOLS


def test_sort_unknown_key():
    with pytest.raises(ValueError):
        sort_items(TOOLS, "price")


# ============================================================================
# Test paginator
# ============================================================================


@pytest.mark.parametrize(
    "count,size,expected",
    [(0, 9, 1), (1, 9, 1), (9, 9, 1), (10, 9, 2), (18, 9, 2), (19, 9, 3), (23, 5, 5)],
)
def test_total_pages(count, size, expected):
    assert total_pages_for(count, size) == expected


def test_total_pages_rejects_bad_page_size():
    with pytest.raises(ValueError):
        total_pages_for(10, 0)


def test_page_window_examples():
    """10 pages: page 1 -> 1..5, page 7 -> 5..9, page 10 -> 6..10."""
    assert page_window(10, 1) == [1, 2, 3, 4, 5]
    assert page_window(10, 7) == [5, 6, 7, 8, 9]
    assert page_window(10, 10) == [6, 7, 8, 9, 10]
    print("✓ test_page_window_examples passed")


def test_page_window_fewer_pages_than_width():
    assert page_window(3, 2) == [1, 2, 3]
    assert page_window(1, 1) == [1]


def test_page_window_always_contains_current():
    for total in range(1, 15):
        for current in range(1, total + 1):
            window = page_window(total, current)
            assert current in window
            assert len(window) == min(5, total)
            assert window == list(range(window[0], window[-1] + 1))


def test_paginate_sizes_sum_to_total():
    items = list(range(23))
    pages = [paginate(items, 5, p) for p in range(1, 6)]
    assert [len(p.items) for p in pages] == [5, 5, 5, 5, 3]
    assert sum(len(p.items) for p in pages) == 23
    assert pages[-1].items == [20, 21, 22]
    print("✓ test_paginate_sizes_sum_to_total passed")


def test_paginate_flags():
    page = paginate(list(range(20)), 9, 2)
    assert page.total_pages == 3
    assert page.total_count == 20
    assert page.has_previous and page.has_next
    assert page.window == [1, 2, 3]


def test_paginate_empty_list():
    page = paginate([], 9, 1)
    assert page.items == []
    assert page.total_pages == 1


@pytest.mark.parametrize("current", [0, -1, 4])
def test_paginate_out_of_range_page_is_empty(current):
    page = paginate(list(range(20)), 9, current)
    assert page.items == []


def test_paginate_remote_uses_reported_total():
    page = paginate_remote(["a", "b"], 95, 10, 3)
    assert page.items == ["a", "b"]
    assert page.total_pages == 10
    assert page.total_count == 95
    assert page.window == [1, 2, 3, 4, 5]
