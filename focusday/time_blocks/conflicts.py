"""
Overlap detection between time blocks.

Advisory only: nothing here prevents a save. Intervals are half-open, so
blocks that merely touch (one ends when the next starts) do not overlap.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from .block_store import BlockStore
from .models import TimeBlock, to_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    block_a_id: str
    block_b_id: str
    overlap_start: datetime
    overlap_end: datetime

    @property
    def overlap_minutes(self) -> int:
        return int((self.overlap_end - self.overlap_start).total_seconds() // 60)

    def to_dict(self) -> dict:
        return {
            "block_a_id": self.block_a_id,
            "block_b_id": self.block_b_id,
            "overlap_start": to_iso(self.overlap_start),
            "overlap_end": to_iso(self.overlap_end),
            "overlap_minutes": self.overlap_minutes,
        }


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


def find_overlapping(
    blocks: list[TimeBlock], start: datetime, end: datetime, exclude_id: str | None = None
) -> list[TimeBlock]:
    return [
        b
        for b in blocks
        if b.id != exclude_id and overlaps(b.start_time, b.end_time, start, end)
    ]


def find_conflicts(blocks: list[TimeBlock]) -> list[Conflict]:
    """Every overlapping pair, in start order."""
    ordered = sorted(blocks, key=lambda b: (b.start_time, b.end_time))
    conflicts = []
    for i, a in enumerate(ordered):
        for b in ordered[i + 1 :]:
            if b.start_time >= a.end_time:
                break
            conflicts.append(
                Conflict(
                    block_a_id=a.id,
                    block_b_id=b.id,
                    overlap_start=max(a.start_time, b.start_time),
                    overlap_end=min(a.end_time, b.end_time),
                )
            )
    return conflicts


def check_overlap(
    blocks: BlockStore, start: datetime, end: datetime, exclude_id: str | None = None
) -> list[TimeBlock]:
    """Owner blocks intersecting [start, end), minus *exclude_id*."""
    found = blocks.query_rows(
        "start_time < ? AND end_time > ?", [to_iso(end), to_iso(start)]
    )
    found = [b for b in found if b.id != exclude_id]
    if found:
        logger.debug("Range %s-%s overlaps %d block(s)", start, end, len(found))
    return found
