"""
Toolshelf Clients - HTTP collaborators (table backend, news feed).
"""

from clients.news import NewsClient, NewsPage
from clients.rest_backend import RestBackend

__all__ = [
    "NewsClient",
    "NewsPage",
    "RestBackend",
]
