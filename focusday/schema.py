"""
Declarative Schema Definition - THE single source of truth.

Every table and index for focusday lives here. Nothing else defines schema.
The schema_engine reads this and converges any database to match.

Adding a column = add one line here. The engine handles the rest.

Column definitions use CREATE TABLE syntax. The schema_engine knows how
to derive ALTER TABLE ADD COLUMN DDL (strips PK, adjusts NOT NULL, etc.).
"""

from collections import OrderedDict

# =============================================================================
# Schema version - bump when you change this file
# =============================================================================
SCHEMA_VERSION = 3

# =============================================================================
# Table Definitions
#
# Format: TABLES[name] = {"columns": [(col_name, col_ddl), ...], "unique": [...]}
# =============================================================================

TABLES: dict[str, dict] = OrderedDict()

# ---------------------------------------------------------------------------
# time_blocks: single blocks and recurring families
# ---------------------------------------------------------------------------
TABLES["time_blocks"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("todo_id", "TEXT"),
        ("title", "TEXT NOT NULL"),
        ("description", "TEXT"),
        ("start_time", "TEXT NOT NULL"),
        ("end_time", "TEXT NOT NULL"),
        ("color", "TEXT DEFAULT '#06b6d4'"),
        ("block_type", "TEXT DEFAULT 'task'"),
        ("is_recurring", "INTEGER DEFAULT 0"),
        # JSON: {"frequency": "daily", "interval": 1}
        ("recurrence_pattern", "TEXT"),
        ("parent_block_id", "TEXT"),
        ("instance_date", "TEXT"),
        ("buffer_minutes", "INTEGER DEFAULT 0"),
        ("energy_level", "TEXT"),
        ("completed_at", "TEXT"),
        ("reminder_minutes_before", "INTEGER DEFAULT 0"),
        ("reminder_sent", "INTEGER DEFAULT 0"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
        ("updated_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
}

# ---------------------------------------------------------------------------
# daily_plans: output of the planning ritual, one row per owner per date
# ---------------------------------------------------------------------------
TABLES["daily_plans"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("date", "TEXT NOT NULL"),
        # JSON list of todo ids, selection order
        ("top_priorities", "TEXT DEFAULT '[]'"),
        ("intention", "TEXT"),
        ("reflection", "TEXT"),
        ("is_completed", "INTEGER DEFAULT 0"),
        ("completed_at", "TEXT"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
        ("updated_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
    "unique": [("user_id", "date")],
}

# ---------------------------------------------------------------------------
# pomodoro_sessions: one row per tracked timer phase
# ---------------------------------------------------------------------------
TABLES["pomodoro_sessions"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("time_block_id", "TEXT"),
        ("phase", "TEXT NOT NULL"),
        ("duration_seconds", "INTEGER NOT NULL"),
        ("started_at", "TEXT NOT NULL"),
        ("ended_at", "TEXT"),
        ("was_completed", "INTEGER DEFAULT 0"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
}

# ---------------------------------------------------------------------------
# schedule_settings: per-owner overrides of config/schedule.yaml
# ---------------------------------------------------------------------------
TABLES["schedule_settings"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL UNIQUE"),
        ("work_start_time", "TEXT DEFAULT '09:00'"),
        ("work_end_time", "TEXT DEFAULT '17:00'"),
        ("default_block_duration", "INTEGER DEFAULT 60"),
        ("show_24_hours", "INTEGER DEFAULT 1"),
        ("default_view", "TEXT DEFAULT 'day'"),
        ("pomodoro_work_minutes", "INTEGER DEFAULT 25"),
        ("pomodoro_break_minutes", "INTEGER DEFAULT 5"),
        ("pomodoro_long_break_minutes", "INTEGER DEFAULT 15"),
        ("pomodoro_sessions_before_long", "INTEGER DEFAULT 4"),
        ("planning_ritual_enabled", "INTEGER DEFAULT 1"),
        ("planning_ritual_time", "TEXT DEFAULT '08:00'"),
        ("energy_tracking_enabled", "INTEGER DEFAULT 0"),
        ("auto_schedule_enabled", "INTEGER DEFAULT 0"),
        ("buffer_between_blocks", "INTEGER DEFAULT 5"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
        ("updated_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
}

# ---------------------------------------------------------------------------
# todos: owned by the task service, read-only here
# ---------------------------------------------------------------------------
TABLES["todos"] = {
    "columns": [
        ("id", "TEXT PRIMARY KEY"),
        ("user_id", "TEXT NOT NULL"),
        ("title", "TEXT NOT NULL"),
        ("completed", "INTEGER DEFAULT 0"),
        ("priority", "TEXT"),
        ("due_time", "TEXT"),
        ("created_at", "TEXT NOT NULL DEFAULT (datetime('now'))"),
    ],
}

# =============================================================================
# Indexes: (name, table, columns, partial WHERE or None)
# =============================================================================

INDEXES: list[tuple[str, str, str, str | None]] = [
    ("idx_time_blocks_user_start", "time_blocks", "user_id, start_time", None),
    ("idx_time_blocks_user_date", "time_blocks", "user_id, instance_date", None),
    (
        "idx_time_blocks_parent",
        "time_blocks",
        "parent_block_id",
        "parent_block_id IS NOT NULL",
    ),
    (
        "idx_time_blocks_reminder",
        "time_blocks",
        "start_time, reminder_sent",
        "reminder_sent = 0",
    ),
    ("idx_daily_plans_user_date", "daily_plans", "user_id, date", None),
    ("idx_pomodoro_sessions_user_started", "pomodoro_sessions", "user_id, started_at", None),
    ("idx_pomodoro_sessions_block", "pomodoro_sessions", "time_block_id", None),
    ("idx_todos_user", "todos", "user_id, completed", None),
]
