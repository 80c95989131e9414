"""
Block Store - CRUD over time blocks for one owner.

Every operation is bound to the owner the store was built for. Without an
owner, reads return empty results and writes report failure. Storage errors
are logged and surfaced as None/False, never raised to the caller.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from focusday import config
from focusday.errors import NotAuthenticatedError, PersistenceError, ValidationError
from focusday.state_store import StateStore, get_store

from .models import (
    BlockType,
    EnergyLevel,
    TimeBlock,
    parse_block_type,
    row_to_block,
    to_iso,
    validate_range,
)

logger = logging.getLogger(__name__)

# Columns update_block() may change
UPDATABLE_FIELDS = frozenset(
    {
        "todo_id",
        "title",
        "description",
        "start_time",
        "end_time",
        "color",
        "block_type",
        "buffer_minutes",
        "energy_level",
        "completed_at",
        "reminder_minutes_before",
    }
)


def new_block_id() -> str:
    return f"block_{uuid.uuid4().hex[:12]}"


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[local midnight, next local midnight) for *day*."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


@dataclass
class DaySummary:
    date: str
    total_blocks: int
    completed_blocks: int
    total_minutes: int
    focus_minutes: int
    break_minutes: int
    meeting_minutes: int


def summarize(day: date, blocks: list[TimeBlock]) -> DaySummary:
    """Totals for a day's blocks. Focus time counts both focus and task blocks."""
    by_type: dict[BlockType, int] = {}
    for block in blocks:
        by_type[block.block_type] = by_type.get(block.block_type, 0) + block.duration_min
    return DaySummary(
        date=day.isoformat(),
        total_blocks=len(blocks),
        completed_blocks=sum(1 for b in blocks if b.is_completed),
        total_minutes=sum(by_type.values()),
        focus_minutes=by_type.get(BlockType.FOCUS, 0) + by_type.get(BlockType.TASK, 0),
        break_minutes=by_type.get(BlockType.BREAK, 0),
        meeting_minutes=by_type.get(BlockType.MEETING, 0),
    )


class BlockStore:
    """
    Time block persistence for a single owner.

    Responsibilities:
    - Fetch blocks by day or range
    - Create, update, reschedule, complete and delete blocks
    - Reminder bookkeeping and day summaries
    """

    TABLE = "time_blocks"

    def __init__(
        self,
        store: StateStore | None = None,
        owner_id: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store or get_store()
        self.owner_id = owner_id
        self.clock = clock

    def require_owner(self) -> str:
        if not self.owner_id:
            raise NotAuthenticatedError()
        return self.owner_id

    # ==================== Reads ====================

    def fetch_by_date(self, day: date) -> list[TimeBlock]:
        """Blocks starting on *day*, ordered by start."""
        start, end = day_bounds(day)
        return self._fetch_between(start, end)

    def fetch_by_range(self, start_day: date, end_day: date) -> list[TimeBlock]:
        """Blocks starting from start_day 00:00 through the end of end_day."""
        start, _ = day_bounds(start_day)
        _, end = day_bounds(end_day)
        return self._fetch_between(start, end)

    def _fetch_between(self, start: datetime, end: datetime) -> list[TimeBlock]:
        if not self.owner_id:
            return []
        try:
            rows = self.store.query(
                """
                SELECT * FROM time_blocks
                WHERE user_id = ? AND start_time >= ? AND start_time < ?
                ORDER BY start_time
                """,
                [self.owner_id, to_iso(start), to_iso(end)],
            )
        except PersistenceError as e:
            logger.error("Error fetching time blocks: %s", e)
            return []
        return [row_to_block(row) for row in rows]

    def get(self, block_id: str) -> TimeBlock | None:
        if not self.owner_id:
            return None
        try:
            rows = self.store.query(
                "SELECT * FROM time_blocks WHERE id = ? AND user_id = ?",
                [block_id, self.owner_id],
            )
        except PersistenceError as e:
            logger.error("Error fetching time block %s: %s", block_id, e)
            return None
        return row_to_block(rows[0]) if rows else None

    def query_rows(self, where: str, params: list, order_by: str = "start_time") -> list[TimeBlock]:
        """Owner-scoped query used by the materializer and conflict checker."""
        if not self.owner_id:
            return []
        try:
            rows = self.store.query(
                f"SELECT * FROM time_blocks WHERE user_id = ? AND ({where}) ORDER BY {order_by}",  # noqa: S608
                [self.owner_id, *params],
            )
        except PersistenceError as e:
            logger.error("Error querying time blocks: %s", e)
            return []
        return [row_to_block(row) for row in rows]

    # ==================== Writes ====================

    def create_block(
        self,
        title: str,
        start_time: datetime,
        end_time: datetime,
        block_type: str | BlockType = BlockType.TASK,
        color: str | None = None,
        description: str | None = None,
        todo_id: str | None = None,
        buffer_minutes: int = 0,
        energy_level: str | EnergyLevel | None = None,
        reminder_minutes_before: int = 0,
    ) -> tuple[TimeBlock | None, str]:
        """
        Create a single (non-recurring) block.

        Overlap is not checked here; see conflicts.check_overlap.

        Returns:
            (TimeBlock or None, message)
        """
        try:
            owner = self.require_owner()
            block_type = parse_block_type(block_type)
            now = self.clock()
            block = TimeBlock(
                id=new_block_id(),
                user_id=owner,
                title=title,
                start_time=start_time,
                end_time=end_time,
                block_type=block_type,
                color=color or config.BLOCK_COLORS.get(block_type.value, config.DEFAULT_BLOCK_COLOR),
                description=description,
                todo_id=todo_id,
                buffer_minutes=buffer_minutes,
                energy_level=energy_level,
                reminder_minutes_before=reminder_minutes_before,
                created_at=now,
                updated_at=now,
            )
        except (ValidationError, NotAuthenticatedError) as e:
            return None, str(e)

        try:
            self.store.insert(self.TABLE, block.to_row())
        except PersistenceError as e:
            logger.error("Error creating time block: %s", e)
            return None, "Failed to create time block"

        logger.info("Created block %s (%s) at %s", block.id, block.block_type, block.start_time)
        return block, "Block created"

    def create_from_todo(
        self, todo_id: str, todo_title: str, start_time: datetime, duration_minutes: int = 60
    ) -> tuple[TimeBlock | None, str]:
        """Create a task block linked to a todo."""
        return self.create_block(
            title=todo_title,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=duration_minutes),
            block_type=BlockType.TASK,
            todo_id=todo_id,
        )

    def update_block(self, block_id: str, **updates) -> TimeBlock | None:
        """
        Apply whitelisted field updates. The resulting range must stay valid.

        Returns the updated block, or None on rejection or storage failure.
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            logger.warning("Ignoring non-updatable fields: %s", sorted(unknown))
        changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}

        current = self.get(block_id)
        if current is None:
            return None

        try:
            start = changes.get("start_time", current.start_time)
            end = changes.get("end_time", current.end_time)
            validate_range(start, end)
            if "block_type" in changes:
                changes["block_type"] = parse_block_type(changes["block_type"]).value
            if changes.get("energy_level") is not None:
                changes["energy_level"] = EnergyLevel(changes["energy_level"]).value
        except (ValidationError, ValueError) as e:
            logger.warning("Rejected update of block %s: %s", block_id, e)
            return None

        row = {
            k: to_iso(v) if isinstance(v, datetime) else v for k, v in changes.items()
        }
        row["updated_at"] = to_iso(self.clock())
        try:
            self.store.update(self.TABLE, block_id, row)
        except PersistenceError as e:
            logger.error("Error updating time block %s: %s", block_id, e)
            return None
        return self.get(block_id)

    def reschedule(self, block_id: str, start_time: datetime, end_time: datetime) -> TimeBlock | None:
        return self.update_block(block_id, start_time=start_time, end_time=end_time)

    def complete_block(self, block_id: str) -> TimeBlock | None:
        return self.update_block(block_id, completed_at=self.clock())

    def uncomplete_block(self, block_id: str) -> TimeBlock | None:
        return self.update_block(block_id, completed_at=None)

    def delete_block(self, block_id: str) -> bool:
        if not self.owner_id:
            return False
        try:
            removed = self.store.delete_where(
                self.TABLE, "id = ? AND user_id = ?", [block_id, self.owner_id]
            )
        except PersistenceError as e:
            logger.error("Error deleting time block %s: %s", block_id, e)
            return False
        return removed > 0

    def insert_many(self, blocks: list[TimeBlock]) -> int:
        """Bulk insert. Raises PartialBatchFailure; callers convert it to an outcome."""
        return self.store.insert_many(self.TABLE, [b.to_row() for b in blocks])

    # ==================== Reminders ====================

    def upcoming_for_reminder(
        self, now: datetime | None = None, within_minutes: int = config.REMINDER_LOOKAHEAD_MINUTES
    ) -> list[TimeBlock]:
        """Uncompleted blocks with a pending reminder starting within the window."""
        now = now or self.clock()
        return self.query_rows(
            """
            reminder_sent = 0 AND reminder_minutes_before > 0 AND completed_at IS NULL
            AND start_time >= ? AND start_time <= ?
            """,
            [to_iso(now), to_iso(now + timedelta(minutes=within_minutes))],
        )

    def mark_reminder_sent(self, block_id: str) -> bool:
        if self.get(block_id) is None:
            return False
        try:
            return self.store.update(self.TABLE, block_id, {"reminder_sent": 1})
        except PersistenceError as e:
            logger.error("Error marking reminder sent for %s: %s", block_id, e)
            return False

    # ==================== Summary ====================

    def day_summary(self, day: date) -> DaySummary:
        return summarize(day, self.fetch_by_date(day))
