"""
Read-only view over the todos table.

Tasks belong to the task service; the planning ritual only lists them.
"""

import logging
from dataclasses import dataclass

from focusday.errors import PersistenceError
from focusday.state_store import StateStore

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    completed: bool = False
    priority: str | None = None
    due_time: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "priority": self.priority,
            "due_time": self.due_time,
        }


class TaskSource:
    """Lists an owner's tasks. Never writes."""

    def __init__(self, store: StateStore, owner_id: str | None):
        self.store = store
        self.owner_id = owner_id

    def list_tasks(self) -> list[Task]:
        if not self.owner_id:
            return []
        try:
            rows = self.store.query(
                "SELECT * FROM todos WHERE user_id = ? ORDER BY created_at", [self.owner_id]
            )
        except PersistenceError as e:
            logger.error("Error fetching tasks: %s", e)
            return []
        return [
            Task(
                id=row["id"],
                title=row["title"],
                completed=bool(row.get("completed")),
                priority=row.get("priority"),
                due_time=row.get("due_time"),
            )
            for row in rows
        ]

    def incomplete(self) -> list[Task]:
        """Open tasks, high priority first."""
        open_tasks = [t for t in self.list_tasks() if not t.completed]
        return sorted(open_tasks, key=lambda t: PRIORITY_ORDER.get(t.priority or "", 3))
