"""Abstract interface for the news collaborator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from core.dto.catalog import NewsArticle


@dataclass
class NewsPage:
    """One page of news as reported by the collaborator.

    Attributes:
        articles: Articles of the requested page
        total_results: Total matching articles across all pages
    """

    articles: List[NewsArticle]
    total_results: int


class NewsSource(ABC):
    """Paged news search."""

    @abstractmethod
    def fetch_articles(
        self, query: str, sort_key: str, page_size: int, page: int
    ) -> NewsPage:
        """Fetch one page of articles matching ``query``."""
        pass
