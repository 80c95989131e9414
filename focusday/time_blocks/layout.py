"""
Day Layout Engine - maps blocks onto a vertical hour grid.

Pure functions; no storage access. Blocks stack in a single column, so
overlapping blocks are drawn on top of each other.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from focusday import config

from .models import TimeBlock


@dataclass(frozen=True)
class PositionedBlock:
    block: TimeBlock
    top_px: float
    height_px: float

    def to_dict(self) -> dict:
        return {"block": self.block.to_dict(), "top_px": self.top_px, "height_px": self.height_px}


@dataclass(frozen=True)
class DayLayout:
    day: date
    items: list[PositionedBlock]
    now_fraction: float | None = None
    hour_height: int = config.HOUR_HEIGHT

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "items": [item.to_dict() for item in self.items],
            "now_fraction": self.now_fraction,
            "hour_height": self.hour_height,
        }


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    is_hour_mark: bool
    is_current: bool


def minutes_since_midnight(value: datetime) -> int:
    return value.hour * 60 + value.minute


def block_geometry(
    block: TimeBlock, hour_height: int = config.HOUR_HEIGHT, start_hour: int = 0
) -> tuple[float, float]:
    """(top_px, height_px) for one block."""
    top = (minutes_since_midnight(block.start_time) - start_hour * 60) / 60 * hour_height
    height = max(config.MIN_BLOCK_HEIGHT, block.duration_min / 60 * hour_height)
    return top, height


def layout_day(
    blocks: list[TimeBlock],
    day: date,
    now: datetime | None = None,
    hour_height: int = config.HOUR_HEIGHT,
    start_hour: int = 0,
    end_hour: int = 24,
) -> DayLayout:
    """Position the blocks that start on *day*, ordered by start."""
    items = []
    for block in sorted(blocks, key=lambda b: b.start_time):
        if block.start_time.date() != day:
            continue
        top, height = block_geometry(block, hour_height, start_hour)
        items.append(PositionedBlock(block=block, top_px=top, height_px=height))

    now = now or datetime.now()
    now_fraction = None
    if now.date() == day and start_hour * 60 <= minutes_since_midnight(now) < end_hour * 60:
        now_fraction = minutes_since_midnight(now) / 1440

    return DayLayout(day=day, items=items, now_fraction=now_fraction, hour_height=hour_height)


def slot_start(day: date, hour: int, second_half: bool = False) -> datetime:
    """Candidate start for a click on an hour row, snapped to :00 or :30."""
    return datetime.combine(day, time(hour, 30 if second_half else 0))


def click_to_start(
    day: date, y_px: float, hour_height: int = config.HOUR_HEIGHT, start_hour: int = 0
) -> datetime:
    """Convert a vertical click offset into a snapped start time."""
    y_px = max(0.0, y_px)
    hour = min(23, start_hour + int(y_px // hour_height))
    second_half = (y_px % hour_height) >= hour_height / 2
    return slot_start(day, hour, second_half)


def initial_scroll_px(day: date, now: datetime | None = None, hour_height: int = config.HOUR_HEIGHT) -> float:
    """Two hours above the current time when viewing today, 08:00 otherwise."""
    now = now or datetime.now()
    if now.date() == day:
        return max(0.0, (minutes_since_midnight(now) / 60 - 2) * hour_height)
    return 8 * hour_height


def time_slots(day: date, now: datetime | None = None) -> list[TimeSlot]:
    """Half-hour grid rows for *day*."""
    now = now or datetime.now()
    midnight = datetime.combine(day, time.min)
    slots = []
    for i in range(48):
        start = midnight + timedelta(minutes=30 * i)
        slots.append(
            TimeSlot(
                start=start,
                is_hour_mark=start.minute == 0,
                is_current=start <= now < start + timedelta(minutes=30),
            )
        )
    return slots
