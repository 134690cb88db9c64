"""
Unit tests for SaveRegistry, SaveCountIndex and ActionGuard.

Uses the in-memory backend from conftest.py.
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.action_guard import ActionGuard
from core.dto.catalog import Item, SavedRelation
from core.errors import ActionInFlight, AlreadyExists, AlreadySaved, RemoteFailure, Unauthenticated
from core.item_store import ItemStore
from core.save_registry import SaveCountIndex, SaveRegistry
from core.session import SessionContext


@pytest.fixture
def registry(backend, session):
    return SaveRegistry(backend, session)


# ============================================================================
# save() / delete()
# ============================================================================


def test_save_creates_relation(registry, backend):
    relation = registry.save("user-1", 2)
    assert relation == SavedRelation(user_id="user-1", item_id=2)
    assert backend.tables["saved_tools"] == [{"user_id": "user-1", "tool_id": 2}]
    assert registry.count_for(2) == 1
    print("✓ test_save_creates_relation passed")


def test_double_save_raises_already_exists(registry):
    """Second save is rejected; the count went up by exactly one."""
    registry.save("user-1", 2)
    with pytest.raises(AlreadyExists):
        registry.save("user-1", 2)
    assert registry.count_for(2) == 1
    print("✓ test_double_save_raises_already_exists passed")


def test_already_saved_alias():
    assert AlreadySaved is AlreadyExists


def test_backend_unique_violation_is_already_exists(registry, backend):
    """A duplicate the existence check missed is still reported as AlreadyExists."""
    backend.tables["saved_tools"] = []
    registry.refresh()
    original_query = backend.query_items

    def query_without_existing(table, predicates=None):
        if table == "saved_tools" and predicates:
            return []
        return original_query(table, predicates)

    backend.tables["saved_tools"].append({"user_id": "user-1", "tool_id": 3})
    backend.query_items = query_without_existing
    with pytest.raises(AlreadyExists):
        registry.save("user-1", 3)


def test_save_requires_session(backend):
    registry = SaveRegistry(backend, SessionContext())
    with pytest.raises(Unauthenticated):
        registry.save("user-1", 1)
    assert "saved_tools" not in backend.tables


def test_save_for_another_user_rejected(registry, backend):
    with pytest.raises(Unauthenticated):
        registry.save("someone-else", 1)
    assert "insert_row" not in backend.calls


def test_save_remote_failure_leaves_count(registry, backend):
    registry.refresh()
    backend.fail_on.add("insert_row")
    with pytest.raises(RemoteFailure):
        registry.save("user-1", 1)
    assert registry.count_for(1) == 0


def test_delete_removes_relation(registry, backend):
    registry.save("user-1", 1)
    assert registry.delete("user-1", 1) is True
    assert backend.tables["saved_tools"] == []
    assert registry.count_for(1) == 0


def test_delete_missing_is_noop(registry, backend):
    """Deleting a relation that does not exist succeeds without effect."""
    registry.save("user-1", 1)
    assert registry.delete("user-1", 4) is False
    assert registry.count_for(1) == 1
    assert len(backend.tables["saved_tools"]) == 1
    print("✓ test_delete_missing_is_noop passed")


def test_delete_requires_session(backend):
    with pytest.raises(Unauthenticated):
        SaveRegistry(backend, SessionContext()).delete("user-1", 1)


# ============================================================================
# Counts
# ============================================================================


def test_counts_from_existing_relations(backend, session):
    backend.tables["saved_tools"] = [
        {"user_id": "a", "tool_id": 1},
        {"user_id": "b", "tool_id": 1},
        {"user_id": "c", "tool_id": 3},
    ]
    registry = SaveRegistry(backend, session)
    assert registry.counts_for([1, 2, 3]) == {1: 2, 2: 0, 3: 1}


def test_counts_track_saves_without_refetch(registry, backend):
    registry.counts_for([1])
    queries = backend.calls.count("query_items")
    registry.save("user-1", 1)
    registry.delete("user-1", 1)
    registry.save("user-1", 1)
    assert registry.count_for(1) == 1
    # one existence check per save, no rebuild
    assert backend.calls.count("query_items") == queries + 2


def test_count_index_remove_never_negative():
    index = SaveCountIndex([SavedRelation("a", 1)])
    index.remove(1, 5)
    assert index.count(1) == 0
    assert index.as_dict() == {}


def test_saved_items_in_catalog_order(registry, backend):
    registry.save("user-1", 4)
    registry.save("user-1", 1)
    backend.tables["saved_tools"].append({"user_id": "other", "tool_id": 2})
    store = ItemStore.load(backend, "ai_tools", Item.from_row)
    assert [t.id for t in registry.saved_items("user-1", store)] == [1, 4]
    assert registry.saved_by_user("user-1") == {1, 4}


# ============================================================================
# ActionGuard
# ============================================================================


def test_guard_rejects_duplicate_pending_action():
    guard = ActionGuard()
    with guard.claim(("save", "u", 1)):
        assert guard.is_pending(("save", "u", 1))
        with pytest.raises(ActionInFlight):
            with guard.claim(("save", "u", 1)):
                pass
        # other entities are independent
        with guard.claim(("save", "u", 2)):
            pass
    assert not guard.is_pending(("save", "u", 1))


def test_guard_released_after_failure():
    guard = ActionGuard()
    with pytest.raises(RuntimeError):
        with guard.claim("k"):
            raise RuntimeError("boom")
    assert not guard.is_pending("k")


def test_save_while_same_save_pending(backend, session):
    guard = ActionGuard()
    registry = SaveRegistry(backend, session, guard=guard)
    with guard.claim(("save", "user-1", 1)):
        with pytest.raises(ActionInFlight):
            registry.save("user-1", 1)
    assert registry.save("user-1", 1).item_id == 1
