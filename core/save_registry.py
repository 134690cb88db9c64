"""
Saved-tool relations and popularity counts.

A user can save an item at most once. The number of users that saved an
item (its save count) drives the "popularity" sort. Counts are kept in an
index keyed by item id, built once from the full relation set and then
updated by every save and delete made through this registry.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Set

from config import Config
from core.action_guard import ActionGuard
from core.dto.catalog import ItemId, SavedRelation
from core.errors import AlreadyExists, Unauthenticated
from core.item_store import ItemStore
from core.ports.backend import Backend
from core.session import SessionContext

logger = logging.getLogger(__name__)


class SaveCountIndex:
    """Item id -> number of saved relations."""

    def __init__(self, relations: Iterable[SavedRelation] = ()):
        self._counts: Counter = Counter(r.item_id for r in relations)

    def count(self, item_id: ItemId) -> int:
        return self._counts.get(item_id, 0)

    def add(self, item_id: ItemId) -> None:
        self._counts[item_id] += 1

    def remove(self, item_id: ItemId, n: int = 1) -> None:
        remaining = self._counts.get(item_id, 0) - n
        if remaining > 0:
            self._counts[item_id] = remaining
        else:
            self._counts.pop(item_id, None)

    def as_dict(self) -> Dict[ItemId, int]:
        return dict(self._counts)


class SaveRegistry:
    """Creates, removes and counts SavedRelations.

    Usage:
        registry = SaveRegistry(backend, session)
        registry.save(user_id, tool_id)
        counts = registry.counts_for(tool_ids)
    """

    def __init__(
        self,
        backend: Backend,
        session: SessionContext,
        guard: Optional[ActionGuard] = None,
        table: str = Config.SAVED_TABLE,
    ):
        self.backend = backend
        self.session = session
        self.guard = guard or ActionGuard()
        self.table = table
        self._index: Optional[SaveCountIndex] = None

    def _require_user(self, user_id: str) -> str:
        current = self.session.require_user()
        if str(user_id) != current.user_id:
            raise Unauthenticated(f"Session belongs to {current.user_id}, not {user_id}")
        return current.user_id

    # ==================== MUTATIONS ====================

    def save(self, user_id: str, item_id: ItemId) -> SavedRelation:
        """Save ``item_id`` for ``user_id``.

        Raises:
            Unauthenticated: No session, or the session is another user's
            AlreadyExists: The user already saved this item
            ActionInFlight: The same save is still pending
            RemoteFailure: Backend error
        """
        user_id = self._require_user(user_id)
        relation = SavedRelation(user_id=user_id, item_id=item_id)

        with self.guard.claim(("save", user_id, item_id)):
            existing = self.backend.query_items(self.table, relation.to_row())
            if existing:
                raise AlreadyExists(f"Tool {item_id} is already saved.")
            self.backend.insert_row(self.table, relation.to_row())

        if self._index is not None:
            self._index.add(item_id)
        logger.info(f"User {user_id} saved tool {item_id}")
        return relation

    def delete(self, user_id: str, item_id: ItemId) -> bool:
        """Remove the relation if present.

        Returns:
            True if a relation was removed, False if there was none
        """
        user_id = self._require_user(user_id)
        relation = SavedRelation(user_id=user_id, item_id=item_id)

        with self.guard.claim(("delete", user_id, item_id)):
            removed = self.backend.delete_row(self.table, relation.to_row())

        if removed and self._index is not None:
            self._index.remove(item_id, removed)
        if removed:
            logger.info(f"User {user_id} removed saved tool {item_id}")
        return bool(removed)

    # ==================== COUNTS ====================

    def refresh(self) -> SaveCountIndex:
        """Rebuild the count index from the full relation set."""
        rows = self.backend.query_items(self.table)
        self._index = SaveCountIndex(SavedRelation.from_row(row) for row in rows)
        logger.debug(f"Save count index rebuilt from {len(rows)} relations")
        return self._index

    def _ensure_index(self) -> SaveCountIndex:
        if self._index is None:
            return self.refresh()
        return self._index

    def count_for(self, item_id: ItemId) -> int:
        return self._ensure_index().count(item_id)

    def counts_for(self, item_ids: Iterable[ItemId]) -> Dict[ItemId, int]:
        """Save counts for one list render."""
        index = self._ensure_index()
        return {item_id: index.count(item_id) for item_id in item_ids}

    # ==================== PER-USER ====================

    def saved_by_user(self, user_id: str) -> Set[ItemId]:
        rows = self.backend.query_items(self.table, {"user_id": str(user_id)})
        return {SavedRelation.from_row(row).item_id for row in rows}

    def saved_items(self, user_id: str, store: ItemStore) -> List:
        """The user's saved items, in catalog order."""
        user_id = self._require_user(user_id)
        saved = self.saved_by_user(user_id)
        return [item for item in store if item.id in saved]
