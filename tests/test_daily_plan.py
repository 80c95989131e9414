"""
Tests for DailyPlanStore and the read-only TaskSource.
"""

from datetime import date, datetime

import pytest

from focusday.planning.daily_plan import DailyPlanStore
from focusday.planning.tasks import TaskSource

DAY = date(2026, 3, 2)
OWNER = "user-1"


@pytest.fixture
def plans(store, clock):
    return DailyPlanStore(store, OWNER, clock=clock)


class TestDailyPlanStore:
    def test_fetch_missing(self, plans):
        assert plans.fetch(DAY) is None

    def test_upsert_creates_then_updates_same_row(self, plans):
        first = plans.upsert(DAY, top_priorities=["todo-1"], intention="Ship it")
        second = plans.upsert(DAY, top_priorities=["todo-2", "todo-1"])

        assert first.id == second.id
        assert second.top_priorities == ["todo-2", "todo-1"]
        assert second.intention == "Ship it"

    def test_completion_stamps_completed_at(self, plans, clock):
        plan = plans.upsert(DAY, top_priorities=["todo-1"], is_completed=True)
        assert plan.is_completed
        assert plan.completed_at == clock()

    def test_reflection_keeps_completion(self, store, plans):
        plans.upsert(DAY, top_priorities=["todo-1"], is_completed=True)
        later = DailyPlanStore(store, OWNER, clock=lambda: datetime(2026, 3, 2, 18, 0))

        plan = later.record_reflection(DAY, "Good focus, too many meetings")

        assert plan.reflection == "Good focus, too many meetings"
        assert plan.is_completed
        assert plan.completed_at == datetime(2026, 3, 2, 9, 0)
        assert plan.top_priorities == ["todo-1"]

    def test_recompletion_restamps_completed_at(self, store, plans):
        plans.upsert(DAY, top_priorities=["todo-1"], is_completed=True)
        later = DailyPlanStore(store, OWNER, clock=lambda: datetime(2026, 3, 2, 14, 0))

        plan = later.upsert(DAY, top_priorities=["todo-2"], is_completed=True)

        assert plan.completed_at == datetime(2026, 3, 2, 14, 0)
        assert plan.top_priorities == ["todo-2"]

    def test_uncomplete_clears_completed_at(self, plans):
        plans.upsert(DAY, is_completed=True)
        plan = plans.upsert(DAY, is_completed=False)
        assert plan.completed_at is None

    def test_more_than_three_priorities_rejected(self, plans):
        assert plans.upsert(DAY, top_priorities=["a", "b", "c", "d"]) is None
        assert plans.fetch(DAY) is None

    def test_one_plan_per_day_per_owner(self, store, plans, clock):
        plans.upsert(DAY, intention="Mine")
        other = DailyPlanStore(store, "user-2", clock=clock)
        other.upsert(DAY, intention="Theirs")

        assert plans.fetch(DAY).intention == "Mine"
        assert other.fetch(DAY).intention == "Theirs"
        assert len(store.query("SELECT id FROM daily_plans")) == 2

    def test_no_owner(self, store):
        plans = DailyPlanStore(store, None)
        assert plans.fetch(DAY) is None
        assert plans.upsert(DAY, intention="x") is None


class TestTaskSource:
    def test_incomplete_sorted_by_priority(self, store):
        tasks = TaskSource(store, OWNER).incomplete()
        assert [t.id for t in tasks] == ["todo-1", "todo-2", "todo-3", "todo-4"]

    def test_list_includes_completed(self, store):
        tasks = TaskSource(store, OWNER).list_tasks()
        assert {t.id for t in tasks if t.completed} == {"todo-5"}

    def test_owner_scoped(self, store):
        assert "todo-9" not in {t.id for t in TaskSource(store, OWNER).list_tasks()}
        assert TaskSource(store, None).list_tasks() == []
