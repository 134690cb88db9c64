"""Ports (interfaces) for Toolshelf core dependency inversion.

These abstract interfaces define how the core reaches its collaborators,
allowing different implementations for different environments
(SQLite for the CLI, a hosted table API for the web front-end).
"""

from .backend import Backend, Row
from .news import NewsPage, NewsSource

__all__ = [
    "Backend",
    "Row",
    "NewsPage",
    "NewsSource",
]
