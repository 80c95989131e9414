"""
Time block records and their row mapping.
"""

import json
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from focusday import config
from focusday.errors import ValidationError


class BlockType(StrEnum):
    TASK = "task"
    FOCUS = "focus"
    BREAK = "break"
    MEETING = "meeting"
    PERSONAL = "personal"


class EnergyLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BlockRole(StrEnum):
    """Where a block sits relative to a recurring family."""

    SINGLE = "single"
    TEMPLATE = "template"  # family root, also the first dated occurrence
    INSTANCE = "instance"


@dataclass(frozen=True)
class RecurrencePattern:
    frequency: str = "daily"
    interval: int = 1

    def __post_init__(self):
        if self.frequency != "daily":
            raise ValidationError(f"Unsupported recurrence frequency: {self.frequency!r}")
        if self.interval != 1:
            raise ValidationError(f"Unsupported recurrence interval: {self.interval!r}")

    @classmethod
    def from_value(cls, value) -> "RecurrencePattern | None":
        """Accept a pattern, a dict, a JSON string or None."""
        if value is None or isinstance(value, RecurrencePattern):
            return value
        if isinstance(value, str):
            value = json.loads(value)
        return cls(frequency=value.get("frequency", "daily"), interval=int(value.get("interval", 1)))

    def to_dict(self) -> dict:
        return {"frequency": self.frequency, "interval": self.interval}


def to_iso(value: datetime | None) -> str | None:
    """Serialize a naive local datetime with second precision."""
    return value.isoformat(timespec="seconds") if value else None


def from_iso(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def parse_block_type(value: str | BlockType) -> BlockType:
    try:
        return BlockType(value)
    except ValueError as e:
        raise ValidationError(f"Unknown block type: {value!r}") from e


def validate_range(start: datetime, end: datetime) -> None:
    if end <= start:
        raise ValidationError("End time must be after start time")


@dataclass
class TimeBlock:
    id: str
    user_id: str
    title: str
    start_time: datetime
    end_time: datetime
    block_type: BlockType = BlockType.TASK
    color: str = config.DEFAULT_BLOCK_COLOR
    description: str | None = None
    todo_id: str | None = None
    is_recurring: bool = False
    recurrence_pattern: RecurrencePattern | None = None
    parent_block_id: str | None = None
    instance_date: date | None = None
    buffer_minutes: int = 0
    energy_level: EnergyLevel | None = None
    completed_at: datetime | None = None
    reminder_minutes_before: int = 0
    reminder_sent: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        validate_range(self.start_time, self.end_time)
        self.block_type = parse_block_type(self.block_type)
        if self.energy_level is not None:
            try:
                self.energy_level = EnergyLevel(self.energy_level)
            except ValueError as e:
                raise ValidationError(f"Unknown energy level: {self.energy_level!r}") from e
        if self.parent_block_id and not self.is_recurring:
            raise ValidationError("A block with a parent must be recurring")

    @property
    def duration_min(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    @property
    def role(self) -> BlockRole:
        if not self.is_recurring:
            return BlockRole.SINGLE
        return BlockRole.INSTANCE if self.parent_block_id else BlockRole.TEMPLATE

    @property
    def family_root_id(self) -> str:
        """Id of the family root; a non-recurring block is its own root."""
        return self.parent_block_id or self.id

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "todo_id": self.todo_id,
            "title": self.title,
            "description": self.description,
            "start_time": to_iso(self.start_time),
            "end_time": to_iso(self.end_time),
            "color": self.color,
            "block_type": self.block_type.value,
            "is_recurring": 1 if self.is_recurring else 0,
            "recurrence_pattern": (
                json.dumps(self.recurrence_pattern.to_dict()) if self.recurrence_pattern else None
            ),
            "parent_block_id": self.parent_block_id,
            "instance_date": self.instance_date.isoformat() if self.instance_date else None,
            "buffer_minutes": self.buffer_minutes,
            "energy_level": self.energy_level.value if self.energy_level else None,
            "completed_at": to_iso(self.completed_at),
            "reminder_minutes_before": self.reminder_minutes_before,
            "reminder_sent": 1 if self.reminder_sent else 0,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    def to_dict(self) -> dict:
        """JSON-friendly view used by the API."""
        data = self.to_row()
        data["is_recurring"] = self.is_recurring
        data["reminder_sent"] = self.reminder_sent
        data["recurrence_pattern"] = (
            self.recurrence_pattern.to_dict() if self.recurrence_pattern else None
        )
        data["role"] = self.role.value
        return data


def row_to_block(row: dict) -> TimeBlock:
    """Convert database row to TimeBlock object."""
    instance_date = row.get("instance_date")
    return TimeBlock(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        start_time=from_iso(row["start_time"]),
        end_time=from_iso(row["end_time"]),
        block_type=row.get("block_type") or BlockType.TASK,
        color=row.get("color") or config.DEFAULT_BLOCK_COLOR,
        description=row.get("description"),
        todo_id=row.get("todo_id"),
        is_recurring=bool(row.get("is_recurring", 0)),
        recurrence_pattern=RecurrencePattern.from_value(row.get("recurrence_pattern")),
        parent_block_id=row.get("parent_block_id"),
        instance_date=date.fromisoformat(instance_date) if instance_date else None,
        buffer_minutes=row.get("buffer_minutes") or 0,
        energy_level=row.get("energy_level"),
        completed_at=from_iso(row.get("completed_at")),
        reminder_minutes_before=row.get("reminder_minutes_before") or 0,
        reminder_sent=bool(row.get("reminder_sent", 0)),
        created_at=from_iso(row.get("created_at")),
        updated_at=from_iso(row.get("updated_at")),
    )
