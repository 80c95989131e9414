"""
Centralized configuration for focusday.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("FOCUSDAY_LOG_LEVEL", "INFO")
"""Root log level for CLI and API entry points."""

LOG_JSON: bool | None = (
    None
    if "FOCUSDAY_LOG_JSON" not in os.environ
    else os.environ["FOCUSDAY_LOG_JSON"].lower() in ("1", "true", "yes")
)
"""Force JSON (true) or human (false) log lines; unset auto-detects from the TTY."""

LOG_FILE: str | None = os.environ.get("FOCUSDAY_LOG_FILE") or None
"""Also write JSON log lines to this rotating file when set."""

# ============================================================
# Recurrence
# ============================================================

RECURRING_HORIZON_DAYS: int = int(os.environ.get("FOCUSDAY_RECURRING_HORIZON_DAYS", "30"))
"""Days of instances materialized when a recurring family is created."""

RECURRING_EXTEND_HORIZON_DAYS: int = int(os.environ.get("FOCUSDAY_RECURRING_EXTEND_DAYS", "35"))
"""Rolling window kept filled by RecurrenceMaterializer.extend_all()."""

# ============================================================
# Day layout
# ============================================================

HOUR_HEIGHT: int = int(os.environ.get("FOCUSDAY_HOUR_HEIGHT", "60"))
"""Pixels per hour in the day grid."""

MIN_BLOCK_HEIGHT: int = 30
"""Smallest rendered block height, in pixels."""

# ============================================================
# Blocks
# ============================================================

DEFAULT_BLOCK_COLOR: str = "#06b6d4"

BLOCK_COLORS: dict[str, str] = {
    "task": "#06b6d4",
    "focus": "#3b82f6",
    "break": "#22c55e",
    "meeting": "#8b5cf6",
    "personal": "#f59e0b",
}

REMINDER_LOOKAHEAD_MINUTES: int = int(os.environ.get("FOCUSDAY_REMINDER_LOOKAHEAD", "30"))
"""Window scanned by BlockStore.upcoming_for_reminder()."""

# ============================================================
# Planning ritual
# ============================================================

MAX_PRIORITIES: int = 3

# ============================================================
# API
# ============================================================

CORS_ORIGINS: str = os.environ.get("CORS_ORIGINS", "*")
API_HOST: str = os.environ.get("FOCUSDAY_API_HOST", "127.0.0.1")
API_PORT: int = int(os.environ.get("FOCUSDAY_API_PORT", "8420"))

# ============================================================
# CLI
# ============================================================

CLI_OWNER: str = os.environ.get("FOCUSDAY_USER", "local")
"""Owner id the CLI acts as."""
