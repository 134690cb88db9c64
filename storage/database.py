"""
Database management for Toolshelf.
Local SQLite implementation of the table backend, plus schema management.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from config import Config
from core.errors import AlreadyExists, RemoteFailure
from core.ports.backend import Backend, Row
from core.session import SessionContext, UserSession

logger = logging.getLogger(__name__)


class Database(Backend):
    """Manages SQLite database operations for Toolshelf."""

    def __init__(
        self, db_path: Optional[Path] = None, session: Optional[SessionContext] = None
    ):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Uses Config.DB_PATH if not provided.
            session: Session context reported by current_session()
        """
        self.db_path = db_path or Config.DB_PATH
        self.session = session or SessionContext()
        self.conn: Optional[sqlite3.Connection] = None
        self._columns: Dict[str, List[str]] = {}

    def connect(self):
        """Establish database connection."""
        try:
            self.conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise RemoteFailure(f"Cannot open database {self.db_path}: {e}")
        self.conn.row_factory = sqlite3.Row  # Enable dict-like access
        self.conn.execute("PRAGMA foreign_keys = ON")

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self.conn:
            if exc_type is None:
                self.conn.commit()
            else:
                self.conn.rollback()
            self.close()

    def initialize(self):
        """Create all tables and indexes."""
        if not self.conn:
            self.connect()

        self._create_tables()
        self._create_indexes()
        self.conn.commit()

    def _create_tables(self):
        """Create database tables."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS ai_tools (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT,
                category TEXT NOT NULL,
                price TEXT,
                official_link TEXT
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS learning_articles (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                author TEXT,
                content TEXT,
                difficulty_level TEXT NOT NULL,
                source_url TEXT
            )
        """)

        # options holds a JSON object: option key -> label
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS article_tests (
                id INTEGER PRIMARY KEY,
                article_id INTEGER NOT NULL,
                question TEXT NOT NULL,
                options TEXT NOT NULL,
                correct_answer TEXT NOT NULL,
                FOREIGN KEY (article_id) REFERENCES learning_articles(id)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS saved_tools (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                tool_id INTEGER NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, tool_id),
                FOREIGN KEY (tool_id) REFERENCES ai_tools(id)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS test_statistics (
                article_id INTEGER PRIMARY KEY,
                total_attempts INTEGER NOT NULL DEFAULT 0,
                successful_passes INTEGER NOT NULL DEFAULT 0,
                CHECK (successful_passes <= total_attempts)
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS user_article_progress (
                user_id TEXT NOT NULL,
                article_id INTEGER NOT NULL,
                test_passed BOOLEAN NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (user_id, article_id)
            )
        """)

    def _create_indexes(self):
        """Create database indexes for performance."""
        self.conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_saved_tools_tool
            ON saved_tools(tool_id)
        """)
        self.conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_article_tests_article
            ON article_tests(article_id)
        """)
        self.conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_ai_tools_category
            ON ai_tools(category)
        """)

    # ==================== HELPERS ====================

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block in one transaction, mapping sqlite errors."""
        if not self.conn:
            self.connect()
        try:
            with self.conn:
                yield self.conn
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise AlreadyExists(f"Row already exists: {e}")
            raise RemoteFailure(f"Constraint violated: {e}")
        except sqlite3.Error as e:
            logger.warning(f"SQLite error: {e}")
            raise RemoteFailure(f"Database error: {e}")

    def _table_columns(self, table: str) -> List[str]:
        if table not in self._columns:
            with self._transaction() as conn:
                rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
            if not rows:
                raise RemoteFailure(f"Unknown table '{table}'")
            self._columns[table] = [row[1] for row in rows]
        return self._columns[table]

    def _check_fields(self, table: str, fields: Sequence[str]) -> None:
        columns = self._table_columns(table)
        unknown = [f for f in fields if f not in columns]
        if unknown:
            raise RemoteFailure(f"Unknown column(s) for {table}: {', '.join(unknown)}")

    @staticmethod
    def _encode(value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False)
        return value

    def _where(self, table: str, predicates: Optional[Row]):
        if not predicates:
            return "", []
        self._check_fields(table, list(predicates))
        clause = " AND ".join(f"{field} = ?" for field in predicates)
        return f" WHERE {clause}", [self._encode(v) for v in predicates.values()]

    # ==================== BACKEND PORT ====================

    def query_items(self, table: str, predicates: Optional[Row] = None) -> List[Row]:
        where, params = self._where(table, predicates)
        with self._transaction() as conn:
            rows = conn.execute(f"SELECT * FROM {table}{where} ORDER BY rowid", params).fetchall()
        return [dict(row) for row in rows]

    def insert_row(self, table: str, row: Row) -> None:
        self._check_fields(table, list(row))
        fields = ", ".join(row)
        marks = ", ".join("?" for _ in row)
        with self._transaction() as conn:
            conn.execute(
                f"INSERT INTO {table} ({fields}) VALUES ({marks})",
                [self._encode(v) for v in row.values()],
            )

    def upsert_row(self, table: str, row: Row, conflict_key: Sequence[str]) -> None:
        self._check_fields(table, list(row) + list(conflict_key))
        fields = ", ".join(row)
        marks = ", ".join("?" for _ in row)
        updates = ", ".join(f"{f} = excluded.{f}" for f in row if f not in conflict_key)
        action = f"DO UPDATE SET {updates}" if updates else "DO NOTHING"
        with self._transaction() as conn:
            conn.execute(
                f"INSERT INTO {table} ({fields}) VALUES ({marks}) "
                f"ON CONFLICT ({', '.join(conflict_key)}) {action}",
                [self._encode(v) for v in row.values()],
            )

    def delete_row(self, table: str, predicates: Row) -> int:
        if not predicates:
            raise RemoteFailure("Refusing to delete without predicates")
        where, params = self._where(table, predicates)
        with self._transaction() as conn:
            cursor = conn.execute(f"DELETE FROM {table}{where}", params)
        return cursor.rowcount

    def increment(self, table: str, key: Row, counters: Dict[str, int]) -> Row:
        self._check_fields(table, list(key) + list(counters))
        fields = list(key) + list(counters)
        marks = ", ".join("?" for _ in fields)
        updates = ", ".join(f"{c} = {c} + excluded.{c}" for c in counters)
        where, params = self._where(table, key)
        with self._transaction() as conn:
            conn.execute(
                f"INSERT INTO {table} ({', '.join(fields)}) VALUES ({marks}) "
                f"ON CONFLICT ({', '.join(key)}) DO UPDATE SET {updates}",
                [self._encode(v) for v in key.values()] + list(counters.values()),
            )
            row = conn.execute(f"SELECT * FROM {table}{where}", params).fetchone()
        return dict(row)

    def current_session(self) -> Optional[UserSession]:
        return self.session.current

    # ==================== SEED DATA ====================

    def import_rows(self, table: str, rows: List[Row]) -> int:
        """Insert or replace ``rows`` (used to seed a local catalog).

        Returns:
            Number of rows written
        """
        for row in rows:
            self._check_fields(table, list(row))
        count = 0
        with self._transaction() as conn:
            for row in rows:
                conn.execute(
                    f"INSERT OR REPLACE INTO {table} ({', '.join(row)}) "
                    f"VALUES ({', '.join('?' for _ in row)})",
                    [self._encode(v) for v in row.values()],
                )
                count += 1
        logger.info(f"Imported {count} rows into {table}")
        return count
