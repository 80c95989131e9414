"""
Fixture store factory for deterministic tests.

Creates a StateStore on a temp SQLite file, converged to the current schema
and seeded from tests/fixtures/seed.json. Tests MUST use this, never the
live ~/.focusday/data/focusday.db.
"""

import json
from pathlib import Path
from typing import Any

from focusday.state_store import StateStore

SEED_PATH = Path(__file__).parent / "seed.json"


def guard_no_live_db(db_path: str | Path) -> None:
    """Fail loudly if tests try to access the live database."""
    path_str = str(db_path)
    if ".focusday/data/focusday.db" in path_str:
        raise RuntimeError(
            f"DETERMINISM VIOLATION: Test attempted to access live DB at {db_path}.\n"
            "Use create_fixture_store() from tests/fixtures."
        )


def load_seed_data() -> dict[str, Any]:
    """Load pinned seed data from seed.json."""
    return json.loads(SEED_PATH.read_text())


def create_fixture_store(db_path: str | Path) -> StateStore:
    """Converged StateStore at *db_path* with the seeded todos."""
    guard_no_live_db(db_path)
    store = StateStore(str(db_path))
    store.insert_many("todos", load_seed_data()["todos"])
    return store
