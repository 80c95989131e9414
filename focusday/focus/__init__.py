"""
Focus Module

The pomodoro timer, the rows it records and the 1 Hz loop that drives it.

Invariants:
- A long break follows every Nth work session (default 4)
- total_sessions_completed grows only on work -> rest transitions
- Exactly one notification per naturally finished phase
"""

from .notify import CallbackNotifier, LogNotifier, Notifier
from .pomodoro import (
    Phase,
    PomodoroEngine,
    PomodoroSettings,
    PomodoroState,
    engine_for,
    progress,
    transition,
)
from .sessions import PomodoroSession, PomodoroSessionStore
from .ticker import PomodoroTicker

__all__ = [
    "Phase",
    "PomodoroEngine",
    "PomodoroSettings",
    "PomodoroState",
    "PomodoroSession",
    "PomodoroSessionStore",
    "PomodoroTicker",
    "Notifier",
    "LogNotifier",
    "CallbackNotifier",
    "engine_for",
    "progress",
    "transition",
]
