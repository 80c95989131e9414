"""
Notification contract for the focus timer.

The engine only ever calls notify(phase) once per finished phase. Sound,
desktop notifications and push transport live behind this interface.
"""

import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

PHASE_LABELS = {
    "idle": "Ready",
    "work": "Focus Time",
    "break": "Short Break",
    "longBreak": "Long Break",
}


def completion_message(phase: str) -> str:
    return f"{PHASE_LABELS.get(phase, phase)} complete!"


class Notifier(Protocol):
    """Receives the phase that just finished."""

    def notify(self, phase: str) -> None: ...


class LogNotifier:
    """Writes completions to the log. Default when nothing else is wired."""

    def notify(self, phase: str) -> None:
        logger.info("Pomodoro: %s", completion_message(phase))


class CallbackNotifier:
    """Adapts a plain callable, e.g. a CLI bell or a push sender."""

    def __init__(self, callback: Callable[[str], None]):
        self.callback = callback

    def notify(self, phase: str) -> None:
        self.callback(phase)
