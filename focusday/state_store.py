"""
State Store - the single persistence gateway for focusday.
Block, plan, session and settings stores read and write through here.
"""

import json
import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from focusday import db as db_module
from focusday import safe_sql
from focusday.errors import PartialBatchFailure, PersistenceError

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    if isinstance(value, dict | list):
        return json.dumps(value)
    if isinstance(value, bool):
        return 1 if value else 0
    return value


class StateStore:
    """
    Central state store over one SQLite file.

    Every sqlite3.Error is re-raised as PersistenceError so callers only
    handle the domain taxonomy.
    """

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or db_module.get_db_path_str()
        logger.info("StateStore initializing with DB: %s", self.db_path)
        db_module.ensure_migrations(self.db_path)

    @contextmanager
    def _get_conn(self) -> Generator[sqlite3.Connection, None, None]:
        with db_module.get_connection(self.db_path) as conn:
            yield conn

    # ==================== CRUD Operations ====================

    def insert(self, table: str, data: dict) -> str:
        """Insert a row. Returns ID."""
        columns = list(data.keys())
        values = [_encode(v) for v in data.values()]
        try:
            with self._get_conn() as conn:
                conn.execute(safe_sql.insert(table, columns), values)
        except sqlite3.Error as e:
            raise PersistenceError(f"insert into {table}", e) from e
        return data.get("id", "")

    def insert_many(self, table: str, items: list[dict]) -> int:
        """
        Insert multiple rows in one transaction. Returns count.

        Raises PartialBatchFailure if any row fails; the batch is then
        reported as failed as a whole.
        """
        if not items:
            return 0

        columns = list(items[0].keys())
        sql = safe_sql.insert(table, columns)

        try:
            with self._get_conn() as conn:
                conn.executemany(sql, [[_encode(item.get(c)) for c in columns] for item in items])
        except sqlite3.Error as e:
            raise PartialBatchFailure(f"bulk insert into {table}", len(items), e) from e
        return len(items)

    def upsert(self, table: str, data: dict, conflict: list[str], update_columns: list[str]) -> None:
        """Insert a row, or update *update_columns* of the row matching *conflict*."""
        columns = list(data.keys())
        sql = safe_sql.upsert(table, columns, conflict, update_columns)
        try:
            with self._get_conn() as conn:
                conn.execute(sql, [_encode(v) for v in data.values()])
        except sqlite3.Error as e:
            raise PersistenceError(f"upsert into {table}", e) from e

    def update(self, table: str, id: str, data: dict) -> bool:
        """Update a row. Returns True if a row changed."""
        if not data:
            return False

        values = [_encode(v) for v in data.values()]
        values.append(id)
        try:
            with self._get_conn() as conn:
                result = conn.execute(safe_sql.update(table, list(data.keys())), values)
                return result.rowcount > 0
        except sqlite3.Error as e:
            raise PersistenceError(f"update {table}", e) from e

    def delete_where(self, table: str, where: str, params: list) -> int:
        """Delete every row matching *where*. Returns the row count."""
        try:
            with self._get_conn() as conn:
                result = conn.execute(safe_sql.delete(table, where), params)
                return result.rowcount
        except sqlite3.Error as e:
            raise PersistenceError(f"delete from {table}", e) from e

    def query(self, sql: str, params: list | None = None) -> list[dict]:
        """Execute raw query. Returns list of dicts."""
        try:
            with self._get_conn() as conn:
                rows = conn.execute(sql, params or []).fetchall()
                return [dict(row) for row in rows]
        except sqlite3.Error as e:
            raise PersistenceError("query", e) from e


# Singleton accessor
_store: StateStore | None = None


def get_store(db_path: str | None = None) -> StateStore:
    """Get the process-wide state store."""
    global _store  # noqa: PLW0603
    if _store is None:
        _store = StateStore(db_path)
    return _store
