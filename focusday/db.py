"""
Centralized Database Access for focusday.

Single source of truth for:
- DB path resolution
- Connection factory
- Schema convergence (delegated to schema_engine)

ALL code must use this module (or StateStore, which uses it) for DB access.
No direct sqlite3.connect() elsewhere.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from focusday import paths, schema, schema_engine

logger = logging.getLogger(__name__)

# ============================================================
# DB PATH RESOLUTION
# ============================================================


def get_db_path() -> Path:
    """
    Get the canonical DB path.

    Resolution order:
    1. FOCUSDAY_DB env var (explicit override)
    2. ~/.focusday/data/focusday.db (default via paths.db_path())
    """
    return paths.db_path()


def get_db_path_str() -> str:
    """Get DB path as string for sqlite3.connect()."""
    return str(get_db_path())


# ============================================================
# CONNECTION FACTORY
# ============================================================


@contextmanager
def get_connection(
    db_path: str | None = None,
    row_factory: bool = True,
) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a database connection with proper setup.

    Commits when the block exits cleanly; an exception inside the block
    leaves the transaction uncommitted.

    Usage:
        with get_connection() as conn:
            conn.execute(...)
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path))
    if row_factory:
        conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


# ============================================================
# SCHEMA INTROSPECTION
# ============================================================


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
    return cursor.fetchone() is not None


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from PRAGMA user_version."""
    cursor = conn.execute("PRAGMA user_version")
    return cursor.fetchone()[0]


# ============================================================
# SCHEMA CONVERGENCE - delegates to schema_engine
# ============================================================


def run_migrations(conn: sqlite3.Connection) -> dict:
    """
    Converge the database schema to match focusday.schema declarations.

    Returns a results dict for logging.
    """
    previous_version = get_schema_version(conn)
    results = schema_engine.converge(conn)
    results["previous_version"] = previous_version
    return results


_converged_paths: set[str] = set()


def ensure_migrations(db_path: str | None = None) -> dict:
    """Ensure schema has converged for *db_path*. Safe to call multiple times."""
    path = db_path or get_db_path_str()
    if path in _converged_paths:
        return {"status": "skipped"}

    with get_connection(path) as conn:
        version_before = get_schema_version(conn)
        results = run_migrations(conn)

    if results.get("tables_created"):
        logger.info("Tables created: %s", results["tables_created"])
    if results.get("columns_added"):
        logger.info("Columns added: %s", results["columns_added"])
    if results.get("errors"):
        logger.warning("Convergence errors: %s", results["errors"])
    logger.info(
        "Schema converged for %s: user_version %s -> %s",
        path,
        version_before,
        results.get("schema_version"),
    )

    _converged_paths.add(path)
    return results


# ============================================================
# DEBUG INFO
# ============================================================


def get_db_info(db_path: str | None = None) -> dict:
    """
    Get DB info for `focusday init` and the /api/schedule/debug endpoint.

    Returns dict with path, exists, size, version, table columns.
    """
    path = Path(db_path) if db_path else get_db_path()
    info = {
        "resolved_db_path": str(path),
        "exists": path.exists(),
        "file_size": None,
        "sqlite_version": sqlite3.sqlite_version,
        "user_version": None,
        "target_schema_version": schema.SCHEMA_VERSION,
        "tables": {},
    }

    if path.exists():
        info["file_size"] = path.stat().st_size
        with get_connection(str(path)) as conn:
            info["user_version"] = get_schema_version(conn)
            for table in schema.TABLES:
                info["tables"][table] = table_exists(conn, table)

    return info
