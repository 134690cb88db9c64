"""
News client for the Toolshelf blog.
Fetches articles from a NewsAPI-compatible ``/everything`` endpoint.
"""

import logging
from typing import Optional

import requests

from config import Config
from core.dto.catalog import NewsArticle
from core.errors import InvalidInput, RemoteFailure, UnexpectedShape
from core.ports.news import NewsPage, NewsSource

logger = logging.getLogger(__name__)

NEWS_SORT_KEYS = ("publishedAt", "relevancy", "popularity")


class NewsClient(NewsSource):
    """Fetches news articles for the blog view."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or Config.NEWS_API_KEY
        self.base_url = base_url or Config.NEWS_API_URL
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.http = http or requests.Session()

    def fetch_articles(
        self,
        query: str = "",
        sort_key: str = "publishedAt",
        page_size: int = 10,
        page: int = 1,
    ) -> NewsPage:
        """Fetch one page of articles.

        Args:
            query: Search terms (Config.NEWS_QUERY if empty)
            sort_key: publishedAt, relevancy or popularity
            page_size: Articles per page
            page: 1-based page number

        Returns:
            NewsPage with the articles and the reported total

        Raises:
            RemoteFailure: Network or HTTP error, or an error status in the body
            UnexpectedShape: Body does not look like a news response
        """
        if sort_key not in NEWS_SORT_KEYS:
            raise InvalidInput(f"Unknown news sort key '{sort_key}'")
        if not self.api_key:
            raise RemoteFailure("NEWS_API_KEY is not configured")

        params = {
            "q": query or Config.NEWS_QUERY,
            "sortBy": sort_key,
            "pageSize": page_size,
            "page": page,
        }
        try:
            response = self.http.request(
                "GET",
                self.base_url,
                params=params,
                headers={"X-Api-Key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.warning(f"News API returned HTTP {status}")
            raise RemoteFailure(f"News API error {status}")
        except requests.exceptions.RequestException as e:
            logger.warning(f"News API request failed: {e}")
            raise RemoteFailure(f"Cannot reach news API: {e}")

        try:
            data = response.json()
        except ValueError:
            raise UnexpectedShape("News API sent a non-JSON body")

        return self._parse(data)

    @staticmethod
    def _parse(data) -> NewsPage:
        if not isinstance(data, dict):
            raise UnexpectedShape("News API: expected an object")
        if data.get("status") == "error":
            raise RemoteFailure(f"News API error: {data.get('message', 'unknown error')}")

        articles = data.get("articles")
        total = data.get("totalResults")
        if not isinstance(articles, list):
            raise UnexpectedShape("News API: 'articles' is not a list")
        if isinstance(total, bool) or not isinstance(total, int):
            raise UnexpectedShape("News API: 'totalResults' is not an integer")

        return NewsPage(
            articles=[NewsArticle.from_row(row) for row in articles],
            total_results=total,
        )
