"""
Daily plans: the persisted result of the planning ritual.

One row per owner per date. Writes are upserts keyed on (user_id, date),
so saving a reflection never clears the priorities or the completion mark.
"""

import json
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime

from focusday import config
from focusday.errors import PersistenceError
from focusday.state_store import StateStore

logger = logging.getLogger(__name__)

PLAN_FIELDS = ("top_priorities", "intention", "reflection", "is_completed")


@dataclass
class DailyPlan:
    id: str
    user_id: str
    date: date
    top_priorities: list[str] = field(default_factory=list)
    intention: str | None = None
    reflection: str | None = None
    is_completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "top_priorities": list(self.top_priorities),
            "intention": self.intention,
            "reflection": self.reflection,
            "is_completed": self.is_completed,
            "completed_at": self.completed_at.isoformat(timespec="seconds") if self.completed_at else None,
        }


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def row_to_plan(row: dict) -> DailyPlan:
    priorities = row.get("top_priorities") or "[]"
    return DailyPlan(
        id=row["id"],
        user_id=row["user_id"],
        date=date.fromisoformat(row["date"]),
        top_priorities=json.loads(priorities) if isinstance(priorities, str) else list(priorities),
        intention=row.get("intention"),
        reflection=row.get("reflection"),
        is_completed=bool(row.get("is_completed")),
        completed_at=_parse_dt(row.get("completed_at")),
        created_at=_parse_dt(row.get("created_at")),
        updated_at=_parse_dt(row.get("updated_at")),
    )


class DailyPlanStore:
    TABLE = "daily_plans"

    def __init__(
        self,
        store: StateStore,
        owner_id: str | None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.owner_id = owner_id
        self.clock = clock

    def fetch(self, day: date) -> DailyPlan | None:
        if not self.owner_id:
            return None
        try:
            rows = self.store.query(
                "SELECT * FROM daily_plans WHERE user_id = ? AND date = ?",
                [self.owner_id, day.isoformat()],
            )
        except PersistenceError as e:
            logger.error("Error fetching daily plan for %s: %s", day, e)
            return None
        return row_to_plan(rows[0]) if rows else None

    def upsert(self, day: date, **fields) -> DailyPlan | None:
        """
        Create or update the plan for *day*.

        Only the given fields change on an existing row. completed_at is
        stamped whenever is_completed is given as true and cleared when it is
        given as false.
        Returns None on validation or storage failure.
        """
        if not self.owner_id:
            logger.error("No authenticated user")
            return None

        changes = {k: v for k, v in fields.items() if k in PLAN_FIELDS}
        priorities = changes.get("top_priorities")
        if priorities is not None and len(priorities) > config.MAX_PRIORITIES:
            logger.warning(
                "Rejected plan for %s: at most %d priorities allowed", day, config.MAX_PRIORITIES
            )
            return None

        now = self.clock().isoformat(timespec="seconds")
        if "is_completed" in changes:
            changes["completed_at"] = now if changes["is_completed"] else None

        row = {
            "id": f"plan_{uuid.uuid4().hex[:12]}",
            "user_id": self.owner_id,
            "date": day.isoformat(),
            "top_priorities": [],
            "created_at": now,
            **changes,
            "updated_at": now,
        }
        try:
            self.store.upsert(
                self.TABLE,
                row,
                conflict=["user_id", "date"],
                update_columns=[*changes.keys(), "updated_at"],
            )
        except PersistenceError as e:
            logger.error("Error saving daily plan for %s: %s", day, e)
            return None
        return self.fetch(day)

    def record_reflection(self, day: date, text: str) -> DailyPlan | None:
        return self.upsert(day, reflection=text)
