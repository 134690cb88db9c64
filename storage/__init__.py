"""
Toolshelf Storage - local SQLite backend.
"""

from storage.database import Database

__all__ = [
    "Database",
]
