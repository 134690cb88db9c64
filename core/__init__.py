"""
Toolshelf Core - AI tool catalog and learning library.

Main components:
- ListView: Filter, sort and paginate a list of records
- SaveRegistry: Saved tools and popularity counts
- AssessmentEngine: Article tests, scoring and statistics
- ToolshelfService: One entry point per user action
"""

from core.assessment import AssessmentEngine, QuizSession, SessionState
from core.item_store import ItemStore
from core.list_view import ListView
from core.news_feed import NewsFeed
from core.paginator import Page, page_window, paginate
from core.save_registry import SaveCountIndex, SaveRegistry
from core.session import SessionContext, UserSession

__all__ = [
    "ListView",
    "ItemStore",
    "Page",
    "paginate",
    "page_window",
    "NewsFeed",
    # Saved tools
    "SaveRegistry",
    "SaveCountIndex",
    # Tests
    "AssessmentEngine",
    "QuizSession",
    "SessionState",
    # Session
    "SessionContext",
    "UserSession",
]
