"""
Daily Planning Ritual - five guided steps ending in a saved DailyPlan.

Steps: Welcome -> Review -> Prioritize -> Intention -> Ready.

The step logic is a pure reducer over immutable state. It never raises:
rejected events come back as a Transition with accepted=False and, when
the user broke a rule, the ValidationError describing it. The
DailyPlanningRitual controller holds the current state and writes the plan
when the ritual completes. An unfinished ritual is never persisted.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import IntEnum

from focusday import config
from focusday.errors import ValidationError
from focusday.settings import ScheduleSettings

from .daily_plan import DailyPlan, DailyPlanStore
from .tasks import Task, TaskSource

logger = logging.getLogger(__name__)


class RitualStep(IntEnum):
    WELCOME = 0
    REVIEW = 1
    PRIORITIZE = 2
    INTENTION = 3
    READY = 4

    @property
    def title(self) -> str:
        return self.name.capitalize()


FIRST_STEP = RitualStep.WELCOME
LAST_STEP = RitualStep.READY


@dataclass(frozen=True)
class RitualState:
    day: date
    step: RitualStep = RitualStep.WELCOME
    priorities: tuple[str, ...] = ()
    intention: str = ""
    is_completed: bool = False
    # Ids that may be picked as priorities; None means any id
    selectable: frozenset[str] | None = None

    @property
    def can_proceed(self) -> bool:
        return self.step != RitualStep.PRIORITIZE or bool(self.priorities)

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "step": int(self.step),
            "step_name": self.step.title,
            "priorities": list(self.priorities),
            "intention": self.intention,
            "is_completed": self.is_completed,
        }


# ==================== Events ====================


@dataclass(frozen=True)
class NextStep:
    pass


@dataclass(frozen=True)
class PreviousStep:
    pass


@dataclass(frozen=True)
class GoToStep:
    step: int


@dataclass(frozen=True)
class AddPriority:
    task_id: str


@dataclass(frozen=True)
class RemovePriority:
    task_id: str


@dataclass(frozen=True)
class SetIntention:
    text: str


@dataclass(frozen=True)
class Complete:
    pass


RitualEvent = NextStep | PreviousStep | GoToStep | AddPriority | RemovePriority | SetIntention | Complete


@dataclass(frozen=True)
class Transition:
    state: RitualState | None
    accepted: bool
    error: ValidationError | None = None


def _rejected(state: RitualState, message: str | None = None) -> Transition:
    return Transition(state, False, ValidationError(message) if message else None)


def reduce(state: RitualState, event: RitualEvent) -> Transition:
    """Apply one event to the ritual state."""
    if state.is_completed:
        return _rejected(state, "Ritual already completed")

    match event:
        case NextStep():
            if not state.can_proceed:
                return _rejected(state, "Select at least one priority to continue")
            if state.step == LAST_STEP:
                return _rejected(state)
            return Transition(replace(state, step=RitualStep(state.step + 1)), True)

        case PreviousStep():
            if state.step == FIRST_STEP:
                return _rejected(state)
            return Transition(replace(state, step=RitualStep(state.step - 1)), True)

        case GoToStep(step=target):
            # Only already-visited steps are reachable directly
            if target < FIRST_STEP or target > state.step:
                return _rejected(state)
            return Transition(replace(state, step=RitualStep(target)), True)

        case AddPriority() | RemovePriority() if state.step != RitualStep.PRIORITIZE:
            return _rejected(state)

        case AddPriority(task_id=task_id):
            # duplicates and a fourth priority are no-ops
            if task_id in state.priorities or len(state.priorities) >= config.MAX_PRIORITIES:
                return _rejected(state)
            if state.selectable is not None and task_id not in state.selectable:
                return _rejected(state, f"Task {task_id} is not an open task")
            return Transition(replace(state, priorities=(*state.priorities, task_id)), True)

        case RemovePriority(task_id=task_id):
            if task_id not in state.priorities:
                return _rejected(state)
            kept = tuple(p for p in state.priorities if p != task_id)
            return Transition(replace(state, priorities=kept), True)

        case SetIntention(text=text):
            return Transition(replace(state, intention=text), True)

        case Complete():
            if state.step != LAST_STEP:
                return _rejected(state, "Finish the earlier steps first")
            return Transition(replace(state, is_completed=True), True)

    return _rejected(state)


def ritual_due(now: datetime, settings: ScheduleSettings, plan: DailyPlan | None) -> bool:
    """True once the configured ritual time has passed with no completed plan for today."""
    if not settings.planning_ritual_enabled:
        return False
    if now.time() < settings.ritual_time:
        return False
    return not (plan is not None and plan.date == now.date() and plan.is_completed)


class DailyPlanningRitual:
    """
    Holds one in-progress ritual and saves it on completion.

    Usage:
        ritual = DailyPlanningRitual(DailyPlanStore(store, owner), TaskSource(store, owner))
        ritual.open()
        ritual.next_step()
    """

    def __init__(
        self,
        plans: DailyPlanStore,
        tasks: TaskSource | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.plans = plans
        self.tasks = tasks
        self.clock = clock
        self.state: RitualState | None = None
        self.saved_plan: DailyPlan | None = None

    def open(self, day: date | None = None) -> RitualState:
        """Start from Welcome. Anything from an earlier open is discarded."""
        selectable = None
        if self.tasks is not None:
            selectable = frozenset(t.id for t in self.tasks.incomplete())
        self.state = RitualState(day=day or self.clock().date(), selectable=selectable)
        self.saved_plan = None
        return self.state

    def close(self) -> None:
        self.state = None

    @property
    def is_open(self) -> bool:
        return self.state is not None

    def open_tasks(self) -> list[Task]:
        """Tasks shown on the Review and Prioritize steps."""
        return self.tasks.incomplete() if self.tasks is not None else []

    def dispatch(self, event: RitualEvent) -> Transition:
        if self.state is None:
            return Transition(None, False, ValidationError("Ritual is not open"))
        result = reduce(self.state, event)
        self.state = result.state
        return result

    def next_step(self) -> Transition:
        return self.dispatch(NextStep())

    def previous_step(self) -> Transition:
        return self.dispatch(PreviousStep())

    def go_to_step(self, step: int) -> Transition:
        return self.dispatch(GoToStep(step))

    def add_priority(self, task_id: str) -> Transition:
        return self.dispatch(AddPriority(task_id))

    def remove_priority(self, task_id: str) -> Transition:
        return self.dispatch(RemovePriority(task_id))

    def set_intention(self, text: str) -> Transition:
        return self.dispatch(SetIntention(text))

    def complete_ritual(self) -> Transition:
        """
        Mark the ritual complete and upsert the day's plan.

        The ritual stays completed even if the write fails; the failure is
        logged and saved_plan stays None.
        """
        result = self.dispatch(Complete())
        if not result.accepted:
            return result

        state = result.state
        self.saved_plan = self.plans.upsert(
            state.day,
            top_priorities=list(state.priorities),
            intention=state.intention or None,
            is_completed=True,
        )
        if self.saved_plan is None:
            logger.error("Planning ritual for %s completed but the plan was not saved", state.day)
        else:
            logger.info(
                "Planning ritual for %s completed with %d priorities",
                state.day,
                len(state.priorities),
            )
        return result
