"""
Planning Module

The morning planning ritual and the daily plans it produces.

Objects:
- DailyPlan (top priorities, intention, reflection)
- RitualState (step, selected priorities, intention)
- Task (read-only view of the task service)

Invariants:
- At most three priorities, kept in selection order
- Prioritize cannot be left without a selection
- A plan is written only when the ritual completes
"""

from .daily_plan import DailyPlan, DailyPlanStore
from .ritual import DailyPlanningRitual, RitualState, RitualStep, Transition, reduce, ritual_due
from .tasks import Task, TaskSource

__all__ = [
    "DailyPlan",
    "DailyPlanStore",
    "DailyPlanningRitual",
    "RitualState",
    "RitualStep",
    "Transition",
    "reduce",
    "ritual_due",
    "Task",
    "TaskSource",
]
