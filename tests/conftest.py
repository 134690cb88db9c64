"""
Shared fixtures: an in-memory Backend and a logged-in session.
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.errors import AlreadyExists, RemoteFailure
from core.ports.backend import Backend
from core.session import SessionContext, UserSession


class MemoryBackend(Backend):
    """Backend port over plain lists of dicts.

    ``unique`` maps a table to the fields that must be unique together.
    ``fail_on`` names port methods that raise RemoteFailure.
    """

    def __init__(self, tables=None, session=None, unique=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.session = session or SessionContext()
        self.unique = unique or {"saved_tools": ("user_id", "tool_id")}
        self.fail_on = set()
        self.calls = []

    def _check(self, method):
        self.calls.append(method)
        if method in self.fail_on:
            raise RemoteFailure(f"{method} failed")

    @staticmethod
    def _matches(row, predicates):
        return all(row.get(k) == v for k, v in (predicates or {}).items())

    def query_items(self, table, predicates=None):
        self._check("query_items")
        return [dict(r) for r in self.tables.get(table, []) if self._matches(r, predicates)]

    def insert_row(self, table, row):
        self._check("insert_row")
        rows = self.tables.setdefault(table, [])
        key = self.unique.get(table)
        if key and any(all(r.get(k) == row.get(k) for k in key) for r in rows):
            raise AlreadyExists(f"duplicate row in {table}")
        rows.append(dict(row))

    def upsert_row(self, table, row, conflict_key):
        self._check("upsert_row")
        rows = self.tables.setdefault(table, [])
        for existing in rows:
            if all(existing.get(k) == row.get(k) for k in conflict_key):
                existing.update(row)
                return
        rows.append(dict(row))

    def delete_row(self, table, predicates):
        self._check("delete_row")
        rows = self.tables.get(table, [])
        kept = [r for r in rows if not self._matches(r, predicates)]
        self.tables[table] = kept
        return len(rows) - len(kept)

    def increment(self, table, key, counters):
        self._check("increment")
        rows = self.tables.setdefault(table, [])
        for existing in rows:
            if self._matches(existing, key):
                for field, delta in counters.items():
                    existing[field] = existing.get(field, 0) + delta
                return dict(existing)
        row = {**key, **counters}
        rows.append(row)
        return dict(row)

    def current_session(self):
        return self.session.current


TOOLS = [
    {"id": 1, "title": "ChatGPT", "description": "Chat", "category": "Text", "price": "Freemium", "official_link": "https://chat.openai.com"},
    {"id": 2, "title": "Midjourney", "description": "Images", "category": "Images", "price": "Paid", "official_link": "https://midjourney.com"},
    {"id": 3, "title": "Copilot", "description": "Code", "category": "Code", "price": "Paid", "official_link": "https://github.com/features/copilot"},
    {"id": 4, "title": "Stable Diffusion", "description": "Images", "category": "Images", "price": "Free", "official_link": "https://stability.ai"},
]

ARTICLES = [
    {"id": 1, "title": "Neural networks", "author": "A", "content": "x" * 300, "difficulty_level": "Начинающий", "source_url": ""},
    {"id": 2, "title": "Prompting", "author": "B", "content": "short", "difficulty_level": "Средний", "source_url": ""},
]

QUESTIONS = [
    {"id": 1, "article_id": 1, "question": "Q1", "options": {"a": "A1", "b": "B1"}, "correct_answer": "a"},
    {"id": 2, "article_id": 1, "question": "Q2", "options": {"a": "A2", "b": "B2"}, "correct_answer": "b"},
    {"id": 3, "article_id": 1, "question": "Q3", "options": {"a": "A3", "b": "B3"}, "correct_answer": "a"},
    {"id": 4, "article_id": 1, "question": "Q4", "options": {"a": "A4", "b": "B4"}, "correct_answer": "b"},
]


@pytest.fixture
def session():
    return SessionContext(UserSession(user_id="user-1", email="user@example.com"))


@pytest.fixture
def backend(session):
    return MemoryBackend(
        tables={
            "ai_tools": TOOLS,
            "learning_articles": ARTICLES,
            "article_tests": QUESTIONS,
        },
        session=session,
    )
