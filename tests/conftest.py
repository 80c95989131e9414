"""
Test configuration: repo root on sys.path, per-test app home, live DB guard.

Every test gets its own FOCUSDAY_HOME under tmp_path, so nothing touches
~/.focusday. Stores are built on a temp SQLite file via the `store` fixture.
"""

import sqlite3
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import focusday.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from focusday import state_store  # noqa: E402
from focusday.time_blocks.block_store import BlockStore  # noqa: E402
from tests.fixtures import create_fixture_store, guard_no_live_db  # noqa: E402

OWNER = "user-1"
# Monday
NOW = datetime(2026, 3, 2, 9, 0)

_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live DB access."""
    guard_no_live_db(database)
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point the app home and DB at tmp_path and reset the store singleton."""
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)
    monkeypatch.setenv("FOCUSDAY_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("FOCUSDAY_DB", str(tmp_path / "home" / "focusday.db"))
    monkeypatch.setattr(state_store, "_store", None)
    yield


@pytest.fixture
def store(tmp_path):
    """StateStore on a fresh temp DB with seeded todos."""
    return create_fixture_store(tmp_path / "test.db")


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def blocks(store, clock):
    return BlockStore(store, OWNER, clock=clock)


@pytest.fixture
def anonymous_blocks(store, clock):
    return BlockStore(store, None, clock=clock)
