"""Abstract interface for the table backend.

The core depends on this abstraction rather than on a concrete store.

Implementations:
- Database: local SQLite store (storage/database.py)
- RestBackend: hosted table API over HTTP (clients/rest_backend.py)

Implementations raise RemoteFailure for transport/storage errors and
UnexpectedShape for malformed responses; nothing else escapes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from core.session import UserSession

Row = Dict[str, Any]


class Backend(ABC):
    """Table storage accessed by equality predicates."""

    @abstractmethod
    def query_items(self, table: str, predicates: Optional[Row] = None) -> List[Row]:
        """Return rows of ``table`` whose fields equal every predicate.

        Args:
            table: Table name
            predicates: Field -> value equality tests (all rows if empty)

        Returns:
            List of row dictionaries in storage order
        """
        pass

    @abstractmethod
    def insert_row(self, table: str, row: Row) -> None:
        """Insert a new row."""
        pass

    @abstractmethod
    def upsert_row(self, table: str, row: Row, conflict_key: Sequence[str]) -> None:
        """Insert ``row`` or replace the row with the same ``conflict_key`` values."""
        pass

    @abstractmethod
    def delete_row(self, table: str, predicates: Row) -> int:
        """Delete matching rows.

        Returns:
            Number of rows deleted (0 is not an error)
        """
        pass

    @abstractmethod
    def increment(self, table: str, key: Row, counters: Dict[str, int]) -> Row:
        """Atomically add ``counters`` to the row identified by ``key``.

        Creates the row (counters starting from zero) when it does not exist.

        Returns:
            The row after the increment
        """
        pass

    @abstractmethod
    def current_session(self) -> Optional[UserSession]:
        """Return the authenticated user, or None."""
        pass
