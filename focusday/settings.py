"""
Schedule settings: yaml defaults overlaid by the owner's stored row.

Loads config/schedule.yaml. Falls back to hardcoded defaults if the file is
missing or unreadable.
"""

import logging
import uuid
from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime, time
from pathlib import Path

import yaml

from focusday import paths
from focusday.errors import PersistenceError, ValidationError
from focusday.state_store import StateStore

logger = logging.getLogger(__name__)

VIEWS = ("day", "week", "timeline")


@dataclass(frozen=True)
class ScheduleSettings:
    work_start_time: str = "09:00"
    work_end_time: str = "17:00"
    default_block_duration: int = 60
    show_24_hours: bool = True
    default_view: str = "day"
    pomodoro_work_minutes: int = 25
    pomodoro_break_minutes: int = 5
    pomodoro_long_break_minutes: int = 15
    pomodoro_sessions_before_long: int = 4
    planning_ritual_enabled: bool = True
    planning_ritual_time: str = "08:00"
    energy_tracking_enabled: bool = False
    auto_schedule_enabled: bool = False
    buffer_between_blocks: int = 5

    @property
    def ritual_time(self) -> time:
        return parse_hhmm(self.planning_ritual_time)

    def to_dict(self) -> dict:
        return asdict(self)


_FIELD_NAMES = {f.name for f in fields(ScheduleSettings)}
_BOOL_FIELDS = {f.name for f in fields(ScheduleSettings) if f.type in (bool, "bool")}


def parse_hhmm(value: str) -> time:
    """Parse an 'HH:MM' string."""
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid time format (use HH:MM): {value!r}") from e


def _flatten(raw: dict) -> dict:
    """Map the nested yaml layout onto flat ScheduleSettings fields."""
    flat = {k: v for k, v in raw.items() if k in _FIELD_NAMES}
    for key, value in (raw.get("pomodoro") or {}).items():
        flat[f"pomodoro_{key}"] = value
    ritual = raw.get("planning_ritual") or {}
    if "enabled" in ritual:
        flat["planning_ritual_enabled"] = ritual["enabled"]
    if "time" in ritual:
        flat["planning_ritual_time"] = ritual["time"]
    return {k: v for k, v in flat.items() if k in _FIELD_NAMES}


def load_defaults(config_path: Path | None = None) -> ScheduleSettings:
    """Build ScheduleSettings from config/schedule.yaml."""
    if config_path is None:
        config_path = paths.project_root() / "config" / "schedule.yaml"
    if not config_path.exists():
        logger.warning("Schedule config not found at %s, using defaults", config_path)
        return ScheduleSettings()
    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as exc:
        logger.error("Failed to load schedule config: %s", exc)
        return ScheduleSettings()
    return replace(ScheduleSettings(), **_flatten(raw))


def validate_updates(updates: dict) -> dict:
    """Drop unknown keys and check the values that have a fixed domain."""
    clean = {k: v for k, v in updates.items() if k in _FIELD_NAMES and v is not None}
    for key in ("work_start_time", "work_end_time", "planning_ritual_time"):
        if key in clean:
            parse_hhmm(clean[key])
    if "default_view" in clean and clean["default_view"] not in VIEWS:
        raise ValidationError(f"default_view must be one of {VIEWS}")
    for key in (
        "pomodoro_work_minutes",
        "pomodoro_break_minutes",
        "pomodoro_long_break_minutes",
        "pomodoro_sessions_before_long",
    ):
        if key not in clean:
            continue
        try:
            value = int(clean[key])
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{key} must be a whole number") from e
        if value < 1:
            raise ValidationError(f"{key} must be at least 1")
    return clean


class SettingsStore:
    """Per-owner schedule settings in the schedule_settings table."""

    TABLE = "schedule_settings"

    def __init__(self, store: StateStore, owner_id: str | None, defaults: ScheduleSettings | None = None):
        self.store = store
        self.owner_id = owner_id
        self.defaults = defaults or load_defaults()

    def fetch(self) -> ScheduleSettings:
        """Owner's settings, or the defaults when there is no owner or no row."""
        if not self.owner_id:
            return self.defaults
        try:
            rows = self.store.query(
                "SELECT * FROM schedule_settings WHERE user_id = ?", [self.owner_id]
            )
        except PersistenceError as e:
            logger.error("Error fetching schedule settings: %s", e)
            return self.defaults
        if not rows:
            return self.defaults
        return self._row_to_settings(rows[0])

    def upsert(self, **updates) -> ScheduleSettings | None:
        """Create or update the owner's settings. Returns None on failure."""
        if not self.owner_id:
            logger.error("No authenticated user")
            return None
        try:
            clean = validate_updates(updates)
        except ValidationError as e:
            logger.warning("Rejected settings update: %s", e)
            return None

        merged = replace(self.fetch(), **clean).to_dict()
        now = datetime.now().isoformat(timespec="seconds")
        row = {
            "id": f"settings_{uuid.uuid4().hex[:12]}",
            "user_id": self.owner_id,
            **merged,
            "created_at": now,
            "updated_at": now,
        }
        try:
            self.store.upsert(
                self.TABLE,
                row,
                conflict=["user_id"],
                update_columns=[*merged.keys(), "updated_at"],
            )
        except PersistenceError as e:
            logger.error("Error upserting schedule settings: %s", e)
            return None
        return self.fetch()

    def _row_to_settings(self, row: dict) -> ScheduleSettings:
        values = {}
        for name in _FIELD_NAMES:
            if row.get(name) is None:
                continue
            values[name] = bool(row[name]) if name in _BOOL_FIELDS else row[name]
        return replace(self.defaults, **values)
