"""
Time Blocks Module

Scheduled slots on a user's day and the rules around them.

Objects:
- TimeBlock (single block, recurring root or materialized instance)
- RecurrencePattern (daily, interval 1)

Invariants:
- end_time is always after start_time
- An instance always points at its family root
- Overlap is reported, never enforced
"""

from .block_store import BlockStore, DaySummary
from .conflicts import Conflict, check_overlap, find_conflicts, find_overlapping, overlaps
from .layout import DayLayout, PositionedBlock, click_to_start, initial_scroll_px, layout_day, time_slots
from .models import BlockRole, BlockType, EnergyLevel, RecurrencePattern, TimeBlock
from .recurrence import (
    FamilyDeleteResult,
    RecurrenceMaterializer,
    RecurringBlockSpec,
    RecurringResult,
    RecurringStats,
)

__all__ = [
    "BlockStore",
    "DaySummary",
    "TimeBlock",
    "BlockType",
    "BlockRole",
    "EnergyLevel",
    "RecurrencePattern",
    "RecurrenceMaterializer",
    "RecurringBlockSpec",
    "RecurringResult",
    "RecurringStats",
    "FamilyDeleteResult",
    "Conflict",
    "check_overlap",
    "find_conflicts",
    "find_overlapping",
    "overlaps",
    "DayLayout",
    "PositionedBlock",
    "layout_day",
    "click_to_start",
    "initial_scroll_px",
    "time_slots",
]
