"""
ToolshelfService - Service Layer

This module provides one entry point per user action of the catalog, the
learning module and the blog. It wires the list pipeline, the save registry
and the assessment engine to the collaborators, and turns every
CatalogError into a failed ServiceResult so rendering code never sees a
raw collaborator error.

Usage:
    service = ToolshelfService(backend, session, news=NewsClient())
    result = service.catalog_page(query="gpt", sort="popularity")
    if result.success:
        page = result.data["page"]
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from config import Config
from core.action_guard import ActionGuard
from core.assessment import AssessmentEngine, QuizSession
from core.dto.catalog import Item, ItemId, LearningArticle
from core.errors import AlreadyExists, CatalogError
from core.filter_engine import MATCH_ALL_LEVELS
from core.item_store import ItemStore
from core.list_view import ListView
from core.news_feed import NewsFeed
from core.ports.backend import Backend
from core.ports.news import NewsSource
from core.save_registry import SaveRegistry
from core.session import SessionContext

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Generic result wrapper for service operations.

    ``error_kind`` carries the CatalogError kind ("unauthenticated",
    "already_exists", ...) so callers can pick a notice, a login redirect
    or a retry prompt.
    """

    success: bool
    message: str = ""
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None


class ToolshelfService:
    """Service layer for Toolshelf user actions."""

    def __init__(
        self,
        backend: Backend,
        session: SessionContext,
        news: Optional[NewsSource] = None,
    ):
        self.backend = backend
        self.session = session
        self.news = news
        self.guard = ActionGuard()
        self.registry = SaveRegistry(backend, session, guard=self.guard)
        self.assessment = AssessmentEngine(backend, session, guard=self.guard)
        self._feed: Optional[NewsFeed] = None

    def _run(self, action: str, fn: Callable[[], ServiceResult]) -> ServiceResult:
        try:
            return fn()
        except AlreadyExists as e:
            return ServiceResult(success=False, message=str(e), error=str(e), error_kind=e.kind)
        except CatalogError as e:
            logger.warning(f"{action} failed: {e}")
            return ServiceResult(success=False, error=str(e), error_kind=e.kind)

    # ==================== CATALOG ====================

    def load_tools(self) -> ItemStore[Item]:
        """Fetch the catalog with save counts rebuilt from the relation table."""
        store = ItemStore.load(self.backend, Config.TOOLS_TABLE, Item.from_row)
        self.registry.refresh()
        store.set_save_counts(self.registry.counts_for(item.id for item in store))
        return store

    def catalog_page(
        self, query: str = "", category: str = "", sort: str = "", page: int = 1
    ) -> ServiceResult:
        def run():
            view: ListView[Item] = ListView(Config.TOOLS_PER_PAGE, window_width=Config.PAGE_WINDOW)
            token = view.begin_fetch()
            view.apply_fetch(token, self.load_tools())
            view.set_query(query)
            view.set_category(category)
            view.set_sort(sort)
            view.go_to(page)

            user = self.session.current
            saved = self.registry.saved_by_user(user.user_id) if user else set()
            return ServiceResult(
                success=True,
                data={
                    "page": view.render(),
                    "categories": view.facets(),
                    "save_counts": view.store.save_counts,
                    "saved_ids": saved,
                },
            )

        return self._run("catalog_page", run)

    def save_tool(self, tool_id: ItemId) -> ServiceResult:
        def run():
            user = self.session.require_user()
            store = ItemStore.load(self.backend, Config.TOOLS_TABLE, Item.from_row)
            tool = store.get(store.resolve(tool_id))
            self.registry.save(user.user_id, tool.id)
            return ServiceResult(success=True, message=f"Saved '{tool.title}'.", data={"tool": tool})

        return self._run("save_tool", run)

    def delete_saved_tool(self, tool_id: ItemId) -> ServiceResult:
        def run():
            user = self.session.require_user()
            store = ItemStore.load(self.backend, Config.TOOLS_TABLE, Item.from_row)
            removed = self.registry.delete(user.user_id, store.resolve(tool_id))
            message = "Tool removed from saved." if removed else "Tool was not saved."
            return ServiceResult(success=True, message=message, data={"removed": removed})

        return self._run("delete_saved_tool", run)

    def saved_tools(self) -> ServiceResult:
        def run():
            user = self.session.require_user()
            store = ItemStore.load(self.backend, Config.TOOLS_TABLE, Item.from_row)
            return ServiceResult(
                success=True, data={"items": self.registry.saved_items(user.user_id, store)}
            )

        return self._run("saved_tools", run)

    # ==================== LEARNING ====================

    def load_articles(self) -> ItemStore[LearningArticle]:
        return ItemStore.load(self.backend, Config.ARTICLES_TABLE, LearningArticle.from_row)

    def learning_page(self, difficulty: str = "all", page: int = 1) -> ServiceResult:
        def run():
            user = self.session.require_user()
            view: ListView[LearningArticle] = ListView(
                Config.ARTICLES_PER_PAGE,
                facet_field="difficulty",
                window_width=Config.PAGE_WINDOW,
                match_all=MATCH_ALL_LEVELS,
            )
            token = view.begin_fetch()
            view.apply_fetch(token, self.load_articles())
            view.set_category(difficulty)
            view.go_to(page)
            return ServiceResult(
                success=True,
                data={
                    "page": view.render(),
                    "difficulties": view.facets(),
                    "passed": self.assessment.passed_tests(user.user_id),
                },
            )

        return self._run("learning_page", run)

    def open_test(self, article_id: ItemId) -> ServiceResult:
        def run():
            self.session.require_user()
            articles = self.load_articles()
            article = articles.get(articles.resolve(article_id))
            quiz = self.assessment.open_test(article.id)
            return ServiceResult(
                success=True,
                data={
                    "quiz": quiz,
                    "article": article,
                    "statistics": self.assessment.statistics_for(article.id),
                },
            )

        return self._run("open_test", run)

    def submit_test(self, quiz: QuizSession) -> ServiceResult:
        def run():
            result = self.assessment.submit(quiz)
            return ServiceResult(
                success=True,
                message=f"Your score: {result.score}%",
                data={"result": result},
            )

        return self._run("submit_test", run)

    def test_statistics(self, article_id: ItemId) -> ServiceResult:
        def run():
            statistics = self.assessment.statistics_for(self.load_articles().resolve(article_id))
            return ServiceResult(success=True, data={"statistics": statistics})

        return self._run("test_statistics", run)

    def profile(self) -> ServiceResult:
        def run():
            user = self.session.require_user()
            articles = self.load_articles()
            return ServiceResult(
                success=True,
                data={
                    "user": user,
                    "progress": self.assessment.progress_report(user.user_id, articles),
                },
            )

        return self._run("profile", run)

    # ==================== BLOG ====================

    def blog_page(
        self, query: str = "", sort: str = "publishedAt", page: int = 1
    ) -> ServiceResult:
        def run():
            if self.news is None:
                return ServiceResult(
                    success=False, error="News source not configured", error_kind="remote_failure"
                )
            if self._feed is None:
                self._feed = NewsFeed(self.news, window_width=Config.PAGE_WINDOW)
            feed = self._feed
            feed.set_query(query)
            feed.set_sort(sort)
            feed.go_to(page)
            return ServiceResult(success=True, data={"page": feed.load()})

        return self._run("blog_page", run)
