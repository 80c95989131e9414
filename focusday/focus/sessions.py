"""
Pomodoro session rows: opened when a tracked phase begins, closed when it ends.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from focusday.errors import PersistenceError
from focusday.state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass
class PomodoroSession:
    id: str
    user_id: str
    phase: str
    duration_seconds: int
    started_at: datetime
    time_block_id: str | None = None
    ended_at: datetime | None = None
    was_completed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "time_block_id": self.time_block_id,
            "phase": self.phase,
            "duration_seconds": self.duration_seconds,
            "started_at": self.started_at.isoformat(timespec="seconds"),
            "ended_at": self.ended_at.isoformat(timespec="seconds") if self.ended_at else None,
            "was_completed": self.was_completed,
        }


def row_to_session(row: dict) -> PomodoroSession:
    return PomodoroSession(
        id=row["id"],
        user_id=row["user_id"],
        phase=row["phase"],
        duration_seconds=row["duration_seconds"],
        started_at=datetime.fromisoformat(row["started_at"]),
        time_block_id=row.get("time_block_id"),
        ended_at=datetime.fromisoformat(row["ended_at"]) if row.get("ended_at") else None,
        was_completed=bool(row.get("was_completed")),
    )


class PomodoroSessionStore:
    TABLE = "pomodoro_sessions"

    def __init__(
        self,
        store: StateStore,
        owner_id: str | None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.owner_id = owner_id
        self.clock = clock

    def start(self, phase: str, duration_seconds: int, time_block_id: str | None = None) -> str | None:
        """Insert an open session. Returns its id, or None on failure."""
        if not self.owner_id:
            return None
        now = self.clock().isoformat(timespec="seconds")
        session_id = f"pomo_{uuid.uuid4().hex[:12]}"
        try:
            self.store.insert(
                self.TABLE,
                {
                    "id": session_id,
                    "user_id": self.owner_id,
                    "time_block_id": time_block_id,
                    "phase": phase,
                    "duration_seconds": duration_seconds,
                    "started_at": now,
                    "was_completed": False,
                    "created_at": now,
                },
            )
        except PersistenceError as e:
            logger.error("Error opening pomodoro session: %s", e)
            return None
        return session_id

    def finish(self, session_id: str, was_completed: bool) -> bool:
        """Set the terminal fields. The rest of the row is never rewritten."""
        try:
            return self.store.update(
                self.TABLE,
                session_id,
                {
                    "ended_at": self.clock().isoformat(timespec="seconds"),
                    "was_completed": was_completed,
                },
            )
        except PersistenceError as e:
            logger.error("Error closing pomodoro session %s: %s", session_id, e)
            return False

    def get(self, session_id: str) -> PomodoroSession | None:
        if not self.owner_id:
            return None
        try:
            rows = self.store.query(
                "SELECT * FROM pomodoro_sessions WHERE id = ? AND user_id = ?",
                [session_id, self.owner_id],
            )
        except PersistenceError as e:
            logger.error("Error fetching pomodoro session %s: %s", session_id, e)
            return None
        return row_to_session(rows[0]) if rows else None

    def sessions_for(self, day: date) -> list[PomodoroSession]:
        if not self.owner_id:
            return []
        start = datetime.combine(day, time.min)
        try:
            rows = self.store.query(
                """
                SELECT * FROM pomodoro_sessions
                WHERE user_id = ? AND started_at >= ? AND started_at < ?
                ORDER BY started_at, rowid
                """,
                [
                    self.owner_id,
                    start.isoformat(timespec="seconds"),
                    (start + timedelta(days=1)).isoformat(timespec="seconds"),
                ],
            )
        except PersistenceError as e:
            logger.error("Error fetching pomodoro sessions: %s", e)
            return []
        return [row_to_session(row) for row in rows]

    def todays_sessions(self) -> list[PomodoroSession]:
        return self.sessions_for(self.clock().date())

    def focus_minutes(self, day: date) -> int:
        """Planned minutes of completed work sessions on *day*."""
        return sum(
            s.duration_seconds
            for s in self.sessions_for(day)
            if s.phase == "work" and s.was_completed
        ) // 60
