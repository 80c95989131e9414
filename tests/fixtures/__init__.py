"""
Test fixtures for deterministic testing.

This module provides:
- fixture_db: temp SQLite stores seeded with pinned todos
- seed.json: the pinned todos
"""

from .fixture_db import create_fixture_store, guard_no_live_db, load_seed_data

__all__ = ["create_fixture_store", "guard_no_live_db", "load_seed_data"]
