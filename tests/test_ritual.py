"""
Tests for the daily planning ritual reducer and controller.
"""

from datetime import date, datetime

import pytest

from focusday.errors import ValidationError
from focusday.planning.daily_plan import DailyPlan, DailyPlanStore
from focusday.planning.ritual import (
    AddPriority,
    DailyPlanningRitual,
    GoToStep,
    NextStep,
    RemovePriority,
    RitualState,
    RitualStep,
    reduce,
    ritual_due,
)
from focusday.planning.tasks import TaskSource
from focusday.settings import ScheduleSettings

DAY = date(2026, 3, 2)
OWNER = "user-1"


@pytest.fixture
def plans(store, clock):
    return DailyPlanStore(store, OWNER, clock=clock)


@pytest.fixture
def ritual(store, plans, clock):
    r = DailyPlanningRitual(plans, TaskSource(store, OWNER), clock=clock)
    r.open(DAY)
    return r


def advance_to(ritual: DailyPlanningRitual, step: RitualStep):
    while ritual.state.step < step:
        if ritual.state.step == RitualStep.PRIORITIZE and not ritual.state.priorities:
            ritual.add_priority("todo-1")
        assert ritual.next_step().accepted


class TestNavigation:
    def test_opens_at_welcome(self, ritual):
        assert ritual.state.step == RitualStep.WELCOME
        assert ritual.state.step.title == "Welcome"

    def test_cannot_jump_ahead(self, ritual):
        ritual.next_step()
        result = ritual.go_to_step(3)

        assert not result.accepted
        assert ritual.state.step == RitualStep.REVIEW

    def test_can_revisit_earlier_step(self, ritual):
        advance_to(ritual, RitualStep.INTENTION)
        assert ritual.go_to_step(1).accepted
        assert ritual.state.step == RitualStep.REVIEW

    def test_previous_clamped_at_welcome(self, ritual):
        assert not ritual.previous_step().accepted
        assert ritual.state.step == RitualStep.WELCOME

    def test_next_clamped_at_ready(self, ritual):
        advance_to(ritual, RitualStep.READY)
        assert not ritual.next_step().accepted
        assert ritual.state.step == RitualStep.READY

    def test_prioritize_gate(self, ritual):
        advance_to(ritual, RitualStep.PRIORITIZE)

        blocked = ritual.next_step()
        assert not blocked.accepted
        assert isinstance(blocked.error, ValidationError)
        assert ritual.state.step == RitualStep.PRIORITIZE

        ritual.add_priority("todo-2")
        assert ritual.next_step().accepted
        assert ritual.state.step == RitualStep.INTENTION

    def test_going_back_from_prioritize_is_allowed(self, ritual):
        advance_to(ritual, RitualStep.PRIORITIZE)
        assert ritual.previous_step().accepted


class TestPriorities:
    @pytest.fixture
    def prioritizing(self, ritual):
        advance_to(ritual, RitualStep.PRIORITIZE)
        return ritual

    def test_fourth_priority_is_silent_noop(self, prioritizing):
        for task_id in ("todo-1", "todo-2", "todo-3"):
            assert prioritizing.add_priority(task_id).accepted

        fourth = prioritizing.add_priority("todo-4")

        assert not fourth.accepted
        assert fourth.error is None
        assert prioritizing.state.priorities == ("todo-1", "todo-2", "todo-3")

    def test_duplicate_is_noop(self, prioritizing):
        prioritizing.add_priority("todo-1")
        result = prioritizing.add_priority("todo-1")
        assert not result.accepted
        assert result.error is None
        assert prioritizing.state.priorities == ("todo-1",)

    def test_remove_keeps_order(self, prioritizing):
        for task_id in ("todo-3", "todo-1", "todo-2"):
            prioritizing.add_priority(task_id)
        prioritizing.remove_priority("todo-1")
        assert prioritizing.state.priorities == ("todo-3", "todo-2")

    def test_completed_task_not_selectable(self, prioritizing):
        result = prioritizing.add_priority("todo-5")
        assert not result.accepted
        assert prioritizing.state.priorities == ()

    def test_unrestricted_without_task_source(self, plans):
        r = DailyPlanningRitual(plans)
        r.open(DAY)
        r.next_step()
        r.next_step()
        assert r.add_priority("anything").accepted

    @pytest.mark.parametrize("step", [RitualStep.WELCOME, RitualStep.REVIEW])
    def test_add_rejected_before_prioritize(self, ritual, step):
        advance_to(ritual, step)
        result = ritual.add_priority("todo-1")
        assert not result.accepted
        assert ritual.state.priorities == ()

    def test_priorities_frozen_after_prioritize(self, ritual, plans):
        advance_to(ritual, RitualStep.INTENTION)
        assert ritual.state.priorities == ("todo-1",)

        assert not ritual.remove_priority("todo-1").accepted
        assert not ritual.add_priority("todo-2").accepted
        assert ritual.state.priorities == ("todo-1",)

        advance_to(ritual, RitualStep.READY)
        assert ritual.complete_ritual().accepted
        assert plans.fetch(DAY).top_priorities == ["todo-1"]

    def test_editable_again_after_going_back(self, ritual):
        advance_to(ritual, RitualStep.INTENTION)
        ritual.previous_step()
        assert ritual.remove_priority("todo-1").accepted
        assert ritual.state.priorities == ()

    def test_reducer_rejects_edit_on_ready(self):
        state = RitualState(day=DAY, step=RitualStep.READY, priorities=("todo-1",))
        assert reduce(state, RemovePriority("todo-1")).state == state
        assert not reduce(state, AddPriority("todo-2")).accepted


class TestCompletion:
    def test_complete_only_on_ready(self, ritual, plans):
        advance_to(ritual, RitualStep.INTENTION)
        assert not ritual.complete_ritual().accepted
        assert plans.fetch(DAY) is None

    def test_persists_priorities_in_selection_order(self, ritual, plans, clock):
        advance_to(ritual, RitualStep.PRIORITIZE)
        for task_id in ("todo-3", "todo-1", "todo-2"):
            ritual.add_priority(task_id)
        ritual.next_step()
        ritual.set_intention("Protect the mornings")
        ritual.next_step()

        result = ritual.complete_ritual()

        assert result.accepted
        assert ritual.state.is_completed
        plan = plans.fetch(DAY)
        assert plan.top_priorities == ["todo-3", "todo-1", "todo-2"]
        assert plan.intention == "Protect the mornings"
        assert plan.is_completed
        assert plan.completed_at == clock()
        assert ritual.saved_plan == plan

    def test_completed_even_if_write_fails(self, ritual, plans, monkeypatch):
        advance_to(ritual, RitualStep.READY)
        monkeypatch.setattr(plans, "upsert", lambda day, **fields: None)

        result = ritual.complete_ritual()

        assert result.accepted
        assert ritual.state.is_completed
        assert ritual.saved_plan is None

    def test_close_persists_nothing(self, ritual, plans):
        advance_to(ritual, RitualStep.READY)
        ritual.close()

        assert ritual.state is None
        assert plans.fetch(DAY) is None
        assert not ritual.next_step().accepted

    def test_reopen_starts_over(self, ritual):
        advance_to(ritual, RitualStep.INTENTION)
        ritual.close()
        state = ritual.open(DAY)
        assert state.step == RitualStep.WELCOME
        assert state.priorities == ()


class TestReducer:
    def test_reducer_does_not_mutate(self):
        state = RitualState(day=DAY)
        result = reduce(state, NextStep())
        assert state.step == RitualStep.WELCOME
        assert result.state.step == RitualStep.REVIEW

    def test_go_to_negative_rejected(self):
        state = RitualState(day=DAY, step=RitualStep.INTENTION)
        assert not reduce(state, GoToStep(-1)).accepted

    def test_completed_state_rejects_events(self):
        state = RitualState(day=DAY, step=RitualStep.READY, is_completed=True)
        assert not reduce(state, AddPriority("todo-1")).accepted


class TestRitualDue:
    def test_due_after_ritual_time_without_plan(self):
        assert ritual_due(datetime(2026, 3, 2, 8, 5), ScheduleSettings(), None)

    def test_not_due_before_time(self):
        assert not ritual_due(datetime(2026, 3, 2, 7, 59), ScheduleSettings(), None)

    def test_not_due_when_disabled(self):
        settings = ScheduleSettings(planning_ritual_enabled=False)
        assert not ritual_due(datetime(2026, 3, 2, 9), settings, None)

    def test_not_due_when_completed_today(self):
        plan = DailyPlan(id="p", user_id=OWNER, date=DAY, is_completed=True)
        assert not ritual_due(datetime(2026, 3, 2, 9), ScheduleSettings(), plan)

    def test_due_when_plan_incomplete(self):
        plan = DailyPlan(id="p", user_id=OWNER, date=DAY)
        assert ritual_due(datetime(2026, 3, 2, 9), ScheduleSettings(), plan)
