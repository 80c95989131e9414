"""
Recurrence Materializer - expands a daily recurring block into dated rows.

A family is one root row (the first occurrence, role TEMPLATE) plus the
sibling instances pointing at it through parent_block_id. Instances are
materialized eagerly over a fixed horizon and written in a single bulk
insert.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from focusday import config
from focusday.errors import (
    NotAuthenticatedError,
    PartialBatchFailure,
    PersistenceError,
    ValidationError,
)

from .block_store import BlockStore, new_block_id
from .models import (
    BlockRole,
    BlockType,
    RecurrencePattern,
    TimeBlock,
    parse_block_type,
    validate_range,
)

logger = logging.getLogger(__name__)


@dataclass
class RecurringBlockSpec:
    title: str
    start_time: datetime
    end_time: datetime
    block_type: BlockType | str = BlockType.TASK
    color: str | None = None
    description: str | None = None
    recurrence: RecurrencePattern | dict | None = None
    reminder_minutes_before: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "RecurringBlockSpec":
        return cls(
            title=data["title"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            block_type=data.get("block_type", BlockType.TASK),
            color=data.get("color"),
            description=data.get("description"),
            recurrence=data.get("recurrence"),
            reminder_minutes_before=data.get("reminder_minutes_before", 0),
        )


@dataclass
class RecurringResult:
    success: bool
    instance_count: int = 0
    root_id: str | None = None
    error: str | None = None


@dataclass
class FamilyDeleteResult:
    """Outcome of deleting a family. partial=True when only some steps succeeded."""

    success: bool
    root_id: str | None = None
    instances_deleted: int = 0
    root_deleted: bool = False
    partial: bool = False
    errors: list[str] = field(default_factory=list)


@dataclass
class RecurringStats:
    template_count: int
    today_blocks: int
    completed_today: int
    completion_rate: int  # percent over the last 7 days


class RecurrenceMaterializer:
    """
    Creates, extends and deletes recurring families for one owner.

    Usage:
        materializer = RecurrenceMaterializer(BlockStore(store, owner_id))
        result = materializer.create_recurring(spec)
    """

    def __init__(self, blocks: BlockStore, horizon_days: int = config.RECURRING_HORIZON_DAYS):
        self.blocks = blocks
        self.horizon_days = horizon_days

    def _today(self) -> date:
        return self.blocks.clock().date()

    def _build_occurrences(
        self,
        spec: RecurringBlockSpec,
        pattern: RecurrencePattern,
        days: list[date],
        root_id: str | None,
    ) -> list[TimeBlock]:
        owner = self.blocks.require_owner()
        block_type = parse_block_type(spec.block_type)
        color = spec.color or config.BLOCK_COLORS.get(block_type.value, config.DEFAULT_BLOCK_COLOR)
        at = time(spec.start_time.hour, spec.start_time.minute)
        duration = spec.end_time - spec.start_time
        now = self.blocks.clock()

        occurrences = []
        for day in days:
            start = datetime.combine(day, at)
            block_id = new_block_id()
            occurrences.append(
                TimeBlock(
                    id=block_id,
                    user_id=owner,
                    title=spec.title,
                    description=spec.description,
                    start_time=start,
                    end_time=start + duration,
                    block_type=block_type,
                    color=color,
                    is_recurring=True,
                    recurrence_pattern=pattern,
                    parent_block_id=root_id,
                    instance_date=day,
                    reminder_minutes_before=spec.reminder_minutes_before,
                    created_at=now,
                    updated_at=now,
                )
            )
            if root_id is None:
                root_id = block_id
        return occurrences

    def create_recurring(
        self, spec: RecurringBlockSpec | dict, today: date | None = None
    ) -> RecurringResult:
        """
        Materialize a daily family starting today.

        Only the time of day of spec.start_time is used; the first occurrence
        lands on *today*. Identical specs create independent families.
        """
        if isinstance(spec, dict):
            spec = RecurringBlockSpec.from_dict(spec)
        today = today or self._today()

        try:
            validate_range(spec.start_time, spec.end_time)
            pattern = RecurrencePattern.from_value(spec.recurrence) or RecurrencePattern()
            days = [today + timedelta(days=i) for i in range(self.horizon_days)]
            occurrences = self._build_occurrences(spec, pattern, days, root_id=None)
        except (ValidationError, NotAuthenticatedError) as e:
            return RecurringResult(success=False, error=str(e))

        if not occurrences:
            return RecurringResult(success=False, error="Recurrence horizon is empty")

        try:
            created = self.blocks.insert_many(occurrences)
        except PartialBatchFailure as e:
            logger.error("Error creating recurring family %r: %s", spec.title, e)
            return RecurringResult(success=False, error="Failed to create recurring blocks")

        root_id = occurrences[0].id
        logger.info("Created recurring family %s with %d instances", root_id, created)
        return RecurringResult(success=True, instance_count=created, root_id=root_id)

    def delete_recurring_family(self, member_id: str) -> FamilyDeleteResult:
        """
        Delete a whole family given any member id.

        Instances go first, then the root. Both steps are attempted; if only
        one succeeds the result is marked partial and the leftovers can be
        deleted by id on retry.
        """
        if not self.blocks.owner_id:
            return FamilyDeleteResult(success=False, errors=["No authenticated user"])

        member = self.blocks.get(member_id)
        if member is None:
            return FamilyDeleteResult(success=False, errors=["Block not found"])

        root_id = member.family_root_id
        owner = self.blocks.owner_id
        result = FamilyDeleteResult(success=False, root_id=root_id)
        store = self.blocks.store

        instances_ok = True
        try:
            result.instances_deleted = store.delete_where(
                BlockStore.TABLE, "parent_block_id = ? AND user_id = ?", [root_id, owner]
            )
        except PersistenceError as e:
            instances_ok = False
            logger.error("Error deleting instances of family %s: %s", root_id, e)
            result.errors.append(str(e))

        root_ok = True
        try:
            result.root_deleted = (
                store.delete_where(BlockStore.TABLE, "id = ? AND user_id = ?", [root_id, owner]) > 0
            )
        except PersistenceError as e:
            root_ok = False
            logger.error("Error deleting root of family %s: %s", root_id, e)
            result.errors.append(str(e))

        result.success = instances_ok and root_ok
        result.partial = instances_ok != root_ok
        if result.success:
            logger.info(
                "Deleted recurring family %s (%d instances)", root_id, result.instances_deleted
            )
        return result

    def skip_instance(self, block_id: str) -> bool:
        """Delete exactly one occurrence; the rest of the family is untouched."""
        return self.blocks.delete_block(block_id)

    # ==================== Rolling window ====================

    def list_templates(self) -> list[TimeBlock]:
        return self.blocks.query_rows("is_recurring = 1 AND parent_block_id IS NULL", [])

    def family(self, root_id: str) -> list[TimeBlock]:
        """Root and instances, ordered by start."""
        return self.blocks.query_rows("id = ? OR parent_block_id = ?", [root_id, root_id])

    def extend_family(
        self,
        root_id: str,
        horizon_days: int = config.RECURRING_EXTEND_HORIZON_DAYS,
        today: date | None = None,
    ) -> int:
        """
        Create the instances missing from [today, today + horizon_days).

        Dates already present in the family are never duplicated. Returns the
        number of rows created.
        """
        root = self.blocks.get(root_id)
        if root is None or root.role != BlockRole.TEMPLATE:
            return 0

        today = today or self._today()
        first_day = max(today, root.start_time.date())
        present = {b.instance_date or b.start_time.date() for b in self.family(root_id)}
        missing = [
            day
            for day in (today + timedelta(days=i) for i in range(horizon_days))
            if day >= first_day and day not in present
        ]
        if not missing:
            return 0

        spec = RecurringBlockSpec(
            title=root.title,
            start_time=root.start_time,
            end_time=root.end_time,
            block_type=root.block_type,
            color=root.color,
            description=root.description,
            recurrence=root.recurrence_pattern,
            reminder_minutes_before=root.reminder_minutes_before,
        )
        occurrences = self._build_occurrences(
            spec, root.recurrence_pattern or RecurrencePattern(), missing, root_id=root.id
        )
        try:
            created = self.blocks.insert_many(occurrences)
        except PartialBatchFailure as e:
            logger.error("Error extending family %s: %s", root_id, e)
            return 0
        logger.info("Extended family %s with %d instances", root_id, created)
        return created

    def extend_all(
        self, horizon_days: int = config.RECURRING_EXTEND_HORIZON_DAYS, today: date | None = None
    ) -> int:
        """Top up every family the owner has. Returns total rows created."""
        return sum(
            self.extend_family(t.id, horizon_days=horizon_days, today=today)
            for t in self.list_templates()
        )

    def recurring_stats(self, today: date | None = None) -> RecurringStats:
        today = today or self._today()
        week = [
            b
            for b in self.blocks.fetch_by_range(today - timedelta(days=6), today)
            if b.is_recurring
        ]
        todays = [b for b in week if b.start_time.date() == today]
        completed_week = sum(1 for b in week if b.is_completed)
        return RecurringStats(
            template_count=len(self.list_templates()),
            today_blocks=len(todays),
            completed_today=sum(1 for b in todays if b.is_completed),
            completion_rate=round(completed_week / len(week) * 100) if week else 0,
        )
