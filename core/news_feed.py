"""
Blog feed: paged news from the news collaborator.

Pagination follows the same contract as local lists, but the page count
comes from the total the collaborator reports, not from a local count.
"""

import logging
from typing import Optional

from config import Config
from core.dto.catalog import NewsArticle
from core.paginator import WINDOW_WIDTH, Page, paginate_remote, total_pages_for
from core.ports.news import NewsSource

logger = logging.getLogger(__name__)


class NewsFeed:
    """Query, sort and page state for the blog."""

    def __init__(
        self,
        source: NewsSource,
        page_size: int = Config.NEWS_PER_PAGE,
        sort_key: str = "publishedAt",
        window_width: int = WINDOW_WIDTH,
    ):
        self.source = source
        self.page_size = page_size
        self.sort_key = sort_key
        self.window_width = window_width
        self.query = ""
        self.current_page = 1
        self._generation = 0
        # Last total reported for the current query and sort.
        self._total_results: Optional[int] = None

    def set_query(self, query: Optional[str]) -> None:
        query = query or ""
        if query != self.query:
            self.query = query
            self.current_page = 1
            self._total_results = None

    def set_sort(self, sort_key: str) -> None:
        if sort_key != self.sort_key:
            self.sort_key = sort_key
            self.current_page = 1
            self._total_results = None

    def go_to(self, page: int) -> None:
        self.current_page = page

    def load(self) -> Optional[Page[NewsArticle]]:
        """Fetch and render the current page.

        Pages below 1, or past the last page of the most recent reported
        total, render empty without a fetch.

        Returns:
            The page, or None if the feed was discarded while fetching

        Raises:
            RemoteFailure: News collaborator failed
        """
        self._generation += 1
        token = self._generation
        requested = self.current_page
        if requested < 1:
            return paginate_remote([], 0, self.page_size, requested, self.window_width)
        known = self._total_results
        if known is not None and requested > total_pages_for(known, self.page_size):
            logger.debug(f"News page {requested} is past the last page, not fetching")
            return paginate_remote([], known, self.page_size, requested, self.window_width)

        news = self.source.fetch_articles(self.query, self.sort_key, self.page_size, requested)
        if token != self._generation:
            logger.debug(f"Dropping stale news page {requested}")
            return None
        self._total_results = news.total_results
        return paginate_remote(
            news.articles, news.total_results, self.page_size, requested, self.window_width
        )

    def discard(self) -> None:
        """Leaving the blog: ignore any page still being fetched."""
        self._generation += 1
