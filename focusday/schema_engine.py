"""
Schema convergence: compare the database with focusday.schema and add
whatever is missing.

converge() creates missing tables, adds missing columns and indexes, then
stamps PRAGMA user_version. It never drops a table or a column, so running
it against an older database only ever widens it.
"""

import logging
import re
import sqlite3

from focusday import safe_sql, schema

logger = logging.getLogger(__name__)

# CREATE TABLE clauses SQLite refuses in ALTER TABLE ADD COLUMN
_NOT_ADDABLE = [
    re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE),
    re.compile(r"\bUNIQUE\b", re.IGNORECASE),
    re.compile(r"\bDEFAULT\s*\(.*\)", re.IGNORECASE),
]


def addable_column_ddl(col_ddl: str) -> str:
    """
    Reduce a CREATE TABLE column definition to one ADD COLUMN accepts.

    Constraints and expression defaults are dropped; a NOT NULL column left
    without a default gets an empty-string one.
    """
    ddl = col_ddl
    for pattern in _NOT_ADDABLE:
        ddl = pattern.sub("", ddl)
    ddl = " ".join(ddl.split())
    if re.search(r"\bNOT\s+NULL\b", ddl, re.IGNORECASE) and "DEFAULT" not in ddl.upper():
        ddl += " DEFAULT ''"
    return ddl


def create_table_sql(name: str, table_def: dict) -> str:
    lines = [f"    {col} {ddl}" for col, ddl in table_def["columns"]]
    lines += [f"    UNIQUE({', '.join(cols)})" for cols in table_def.get("unique", [])]
    body = ",\n".join(lines)
    return f"CREATE TABLE IF NOT EXISTS [{name}] (\n{body}\n)"


def _existing_tables(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {row[0] for row in rows}


def _existing_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row[1] for row in conn.execute(safe_sql.table_info(table)).fetchall()}


def _record(results: dict, key: str, value: str) -> None:
    results[key].append(value)
    logger.info("schema_engine: %s %s", key.replace("_", " "), value)


def _fail(results: dict, what: str, error: sqlite3.Error) -> None:
    message = f"{what}: {error}"
    results["errors"].append(message)
    logger.warning("schema_engine: %s", message)


def converge(conn: sqlite3.Connection) -> dict:
    """Bring *conn* up to schema.TABLES and schema.INDEXES. Returns what changed."""
    results = {"tables_created": [], "columns_added": [], "indexes_created": [], "errors": []}
    tables = _existing_tables(conn)

    for name, table_def in schema.TABLES.items():
        if name not in tables:
            try:
                conn.execute(create_table_sql(name, table_def))
                _record(results, "tables_created", name)
            except sqlite3.OperationalError as e:
                _fail(results, f"CREATE TABLE {name}", e)
            continue

        present = _existing_columns(conn, name)
        for col, ddl in table_def["columns"]:
            if col in present:
                continue
            try:
                conn.execute(safe_sql.add_column(name, col, addable_column_ddl(ddl)))
                _record(results, "columns_added", f"{name}.{col}")
            except sqlite3.OperationalError as e:
                _fail(results, f"ADD COLUMN {name}.{col}", e)

    for idx_name, table, columns, where in schema.INDEXES:
        partial = f" WHERE {where}" if where else ""
        sql = f"CREATE INDEX IF NOT EXISTS [{idx_name}] ON [{table}]({columns}){partial}"
        try:
            conn.execute(sql)  # nosec B608
            results["indexes_created"].append(idx_name)
        except sqlite3.OperationalError as e:
            _fail(results, f"CREATE INDEX {idx_name}", e)

    conn.execute(safe_sql.set_user_version(schema.SCHEMA_VERSION))
    results["schema_version"] = schema.SCHEMA_VERSION
    return results
