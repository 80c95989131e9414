"""
SQL builders for the StateStore and the schema engine.

SQLite binds values with ? but not identifiers, so table and column names
are interpolated here and nowhere else, each one checked first. Values
always travel as parameters.
"""

# ruff: noqa: S608 - identifiers pass _ident() before interpolation.

from __future__ import annotations

import re

_IDENT_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _ident(name: str) -> str:
    if not _IDENT_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def _idents(names: list[str]) -> str:
    return ",".join(_ident(n) for n in names)


# ==== Schema ====


def table_info(table: str) -> str:
    return f"PRAGMA table_info([{_ident(table)}])"


def set_user_version(version: int) -> str:
    if not isinstance(version, int) or version < 0:
        raise ValueError(f"Invalid schema version: {version!r}")
    return f"PRAGMA user_version = {version}"


def add_column(table: str, column: str, column_ddl: str) -> str:
    """ALTER TABLE ADD COLUMN. *column_ddl* comes from focusday.schema."""
    return f"ALTER TABLE [{_ident(table)}] ADD COLUMN [{_ident(column)}] {column_ddl}"


# ==== Rows ====


def insert(table: str, columns: list[str]) -> str:
    placeholders = ",".join("?" for _ in columns)
    return f"INSERT INTO {_ident(table)} ({_idents(columns)}) VALUES ({placeholders})"


def upsert(table: str, columns: list[str], conflict: list[str], update_columns: list[str]) -> str:
    """
    INSERT ... ON CONFLICT DO UPDATE.

    Only *update_columns* are overwritten on conflict; the rest of the
    existing row (its id and created_at, typically) is kept.
    """
    base = insert(table, columns)
    target = _idents(conflict)
    if not update_columns:
        return f"{base} ON CONFLICT({target}) DO NOTHING"
    sets = ",".join(f"{_ident(c)} = excluded.{c}" for c in update_columns)
    return f"{base} ON CONFLICT({target}) DO UPDATE SET {sets}"


def update(table: str, set_columns: list[str]) -> str:
    """UPDATE by primary key; the id is the last bound value."""
    sets = ",".join(f"{_ident(c)} = ?" for c in set_columns)
    return f"UPDATE {_ident(table)} SET {sets} WHERE id = ?"


def delete(table: str, where: str) -> str:
    return f"DELETE FROM {_ident(table)} WHERE {where}"
