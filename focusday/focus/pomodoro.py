"""
Pomodoro Phase Engine.

States: idle, work, break, longBreak. idle is both the initial state and
the target of stop/reset.

transition(state, event) is pure and returns the next state plus a list of
effects (open/close a tracked session, notify). PomodoroEngine holds the
current state, runs the effects and pushes every change to subscribers.
Effect failures are logged; the state already moved on and is not rolled
back.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum

from focusday.settings import ScheduleSettings

from .notify import LogNotifier, Notifier
from .sessions import PomodoroSessionStore

logger = logging.getLogger(__name__)


class Phase(StrEnum):
    IDLE = "idle"
    WORK = "work"
    BREAK = "break"
    LONG_BREAK = "longBreak"


ACTIVE_PHASES = (Phase.WORK, Phase.BREAK, Phase.LONG_BREAK)


@dataclass(frozen=True)
class PomodoroSettings:
    """Phase lengths in seconds."""

    work_seconds: int = 25 * 60
    break_seconds: int = 5 * 60
    long_break_seconds: int = 15 * 60
    sessions_before_long: int = 4

    @classmethod
    def from_schedule(cls, settings: ScheduleSettings) -> "PomodoroSettings":
        return cls(
            work_seconds=settings.pomodoro_work_minutes * 60,
            break_seconds=settings.pomodoro_break_minutes * 60,
            long_break_seconds=settings.pomodoro_long_break_minutes * 60,
            sessions_before_long=settings.pomodoro_sessions_before_long,
        )

    def duration(self, phase: Phase) -> int:
        return {
            Phase.WORK: self.work_seconds,
            Phase.BREAK: self.break_seconds,
            Phase.LONG_BREAK: self.long_break_seconds,
        }.get(phase, 0)


@dataclass(frozen=True)
class PomodoroState:
    phase: Phase = Phase.IDLE
    time_remaining: int = 0
    phase_duration: int = 0
    is_running: bool = False
    is_paused: bool = False
    current_session: int = 1
    total_sessions_completed: int = 0
    linked_block_id: str | None = None
    is_minimized: bool = False
    settings: PomodoroSettings = PomodoroSettings()

    @property
    def is_idle(self) -> bool:
        return self.phase == Phase.IDLE

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "time_remaining": self.time_remaining,
            "phase_duration": self.phase_duration,
            "is_running": self.is_running,
            "is_paused": self.is_paused,
            "current_session": self.current_session,
            "total_sessions_completed": self.total_sessions_completed,
            "linked_block_id": self.linked_block_id,
            "is_minimized": self.is_minimized,
            "progress": progress(self),
        }


def progress(state: PomodoroState) -> float:
    """Fraction of the current phase elapsed, clamped to [0, 1]; 0 when idle."""
    if state.is_idle or state.phase_duration <= 0:
        return 0.0
    value = (state.phase_duration - state.time_remaining) / state.phase_duration
    return min(1.0, max(0.0, value))


def format_remaining(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


# ==================== Events ====================


@dataclass(frozen=True)
class Start:
    block_id: str | None = None


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class Skip:
    pass


@dataclass(frozen=True)
class Stop:
    pass


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class UpdateSettings:
    work_minutes: int | None = None
    break_minutes: int | None = None
    long_break_minutes: int | None = None
    sessions_before_long: int | None = None


@dataclass(frozen=True)
class LinkToBlock:
    block_id: str | None


@dataclass(frozen=True)
class SetMinimized:
    minimized: bool


PomodoroEvent = (
    Start | Tick | Pause | Resume | Skip | Stop | Reset | UpdateSettings | LinkToBlock | SetMinimized
)


# ==================== Effects ====================


@dataclass(frozen=True)
class OpenSession:
    phase: Phase
    duration_seconds: int
    time_block_id: str


@dataclass(frozen=True)
class CloseSession:
    was_completed: bool


@dataclass(frozen=True)
class Notify:
    phase: Phase


Effect = OpenSession | CloseSession | Notify


def _enter(state: PomodoroState, phase: Phase, **changes) -> tuple[PomodoroState, list[Effect]]:
    duration = state.settings.duration(phase)
    new_state = replace(state, phase=phase, time_remaining=duration, phase_duration=duration, **changes)
    effects: list[Effect] = []
    if new_state.linked_block_id:
        effects.append(OpenSession(phase, duration, new_state.linked_block_id))
    return new_state, effects


def _advance(state: PomodoroState, completed: bool) -> tuple[PomodoroState, list[Effect]]:
    """Move to the next phase. Natural completion notifies; a skip does not."""
    effects: list[Effect] = [CloseSession(was_completed=completed)]
    if completed:
        effects.append(Notify(state.phase))

    if state.phase == Phase.WORK:
        long_break = state.current_session >= state.settings.sessions_before_long
        new_state, opened = _enter(
            state,
            Phase.LONG_BREAK if long_break else Phase.BREAK,
            total_sessions_completed=state.total_sessions_completed + 1,
        )
    else:
        next_session = state.current_session % state.settings.sessions_before_long + 1
        new_state, opened = _enter(state, Phase.WORK, current_session=next_session)
    return new_state, effects + opened


def _update_settings(settings: PomodoroSettings, event: UpdateSettings) -> PomodoroSettings:
    changes = {}
    for name, value, scale in (
        ("work_seconds", event.work_minutes, 60),
        ("break_seconds", event.break_minutes, 60),
        ("long_break_seconds", event.long_break_minutes, 60),
        ("sessions_before_long", event.sessions_before_long, 1),
    ):
        if value is None:
            continue
        if value < 1:
            logger.warning("Ignoring pomodoro setting %s=%r", name, value)
            continue
        changes[name] = value * scale
    return replace(settings, **changes)


def transition(state: PomodoroState, event: PomodoroEvent) -> tuple[PomodoroState, list[Effect]]:
    """Apply one event. Never raises; events that do not apply leave the state as is."""
    if isinstance(event, Start):
        if not state.is_idle:
            return state, []
        return _enter(
            state,
            Phase.WORK,
            current_session=1,
            is_running=True,
            is_paused=False,
            linked_block_id=event.block_id or state.linked_block_id,
        )

    if isinstance(event, Tick):
        if state.is_idle or not state.is_running or state.is_paused:
            return state, []
        remaining = state.time_remaining - 1
        if remaining > 0:
            return replace(state, time_remaining=remaining), []
        return _advance(replace(state, time_remaining=0), completed=True)

    if isinstance(event, Pause):
        if state.is_idle or state.is_paused:
            return state, []
        return replace(state, is_paused=True, is_running=False), []

    if isinstance(event, Resume):
        if state.is_idle or not state.is_paused:
            return state, []
        return replace(state, is_paused=False, is_running=True), []

    if isinstance(event, Skip):
        if state.is_idle:
            return state, []
        return _advance(state, completed=False)

    if isinstance(event, Stop):
        if state.is_idle:
            return state, []
        stopped = replace(
            state,
            phase=Phase.IDLE,
            time_remaining=0,
            phase_duration=0,
            is_running=False,
            is_paused=False,
            linked_block_id=None,
        )
        return stopped, [CloseSession(was_completed=False)]

    if isinstance(event, Reset):
        effects: list[Effect] = [] if state.is_idle else [CloseSession(was_completed=False)]
        return PomodoroState(is_minimized=state.is_minimized, settings=state.settings), effects

    if isinstance(event, UpdateSettings):
        return replace(state, settings=_update_settings(state.settings, event)), []

    if isinstance(event, LinkToBlock):
        return replace(state, linked_block_id=event.block_id), []

    if isinstance(event, SetMinimized):
        return replace(state, is_minimized=event.minimized), []

    return state, []


class PomodoroEngine:
    """
    Stateful wrapper around transition().

    Usage:
        engine = PomodoroEngine(PomodoroSettings(), sessions=PomodoroSessionStore(store, owner))
        engine.subscribe(render)
        engine.start(block_id)
        engine.tick()
    """

    def __init__(
        self,
        settings: PomodoroSettings | None = None,
        sessions: PomodoroSessionStore | None = None,
        notifier: Notifier | None = None,
    ):
        self._state = PomodoroState(settings=settings or PomodoroSettings())
        self.sessions = sessions
        self.notifier = notifier or LogNotifier()
        self._subscribers: list[Callable[[PomodoroState], None]] = []
        self._open_session_id: str | None = None
        # Set by the ticker that currently drives this engine
        self.ticker = None

    @property
    def state(self) -> PomodoroState:
        return self._state

    @property
    def open_session_id(self) -> str | None:
        return self._open_session_id

    def subscribe(self, callback: Callable[[PomodoroState], None]) -> Callable[[], None]:
        """Register a view. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def dispatch(self, event: PomodoroEvent) -> PomodoroState:
        previous = self._state
        self._state, effects = transition(previous, event)
        for effect in effects:
            self._run_effect(effect)
        if self._state != previous:
            for callback in list(self._subscribers):
                callback(self._state)
        return self._state

    def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, Notify):
            try:
                self.notifier.notify(effect.phase.value)
            except Exception:
                logger.exception("Notifier failed for phase %s", effect.phase)
            return

        if self.sessions is None:
            return

        if isinstance(effect, CloseSession):
            if self._open_session_id is None:
                return
            if not self.sessions.finish(self._open_session_id, effect.was_completed):
                logger.warning("Pomodoro session %s was not closed", self._open_session_id)
            self._open_session_id = None
        elif isinstance(effect, OpenSession):
            self._open_session_id = self.sessions.start(
                effect.phase.value, effect.duration_seconds, effect.time_block_id
            )
            if self._open_session_id is None:
                logger.warning("Pomodoro session for %s was not recorded", effect.phase)

    # ==================== Commands ====================

    def start(self, block_id: str | None = None) -> PomodoroState:
        return self.dispatch(Start(block_id))

    def tick(self) -> PomodoroState:
        return self.dispatch(Tick())

    def pause(self) -> PomodoroState:
        return self.dispatch(Pause())

    def resume(self) -> PomodoroState:
        return self.dispatch(Resume())

    def skip(self) -> PomodoroState:
        return self.dispatch(Skip())

    def stop(self) -> PomodoroState:
        return self.dispatch(Stop())

    def reset(self) -> PomodoroState:
        return self.dispatch(Reset())

    def update_settings(self, **minutes) -> PomodoroState:
        return self.dispatch(UpdateSettings(**minutes))

    def link_to_block(self, block_id: str | None) -> PomodoroState:
        return self.dispatch(LinkToBlock(block_id))

    def set_minimized(self, minimized: bool) -> PomodoroState:
        return self.dispatch(SetMinimized(minimized))

    def progress(self) -> float:
        return progress(self._state)


def engine_for(
    settings: ScheduleSettings,
    sessions: PomodoroSessionStore | None = None,
    notifier: Notifier | None = None,
) -> PomodoroEngine:
    """Engine configured from an owner's schedule settings."""
    return PomodoroEngine(PomodoroSettings.from_schedule(settings), sessions=sessions, notifier=notifier)


def now_label(state: PomodoroState, now: datetime | None = None) -> str:
    """One-line status for CLI output."""
    stamp = (now or datetime.now()).strftime("%H:%M:%S")
    if state.is_idle:
        return f"[{stamp}] idle, {state.total_sessions_completed} sessions completed"
    paused = " (paused)" if state.is_paused else ""
    return (
        f"[{stamp}] {state.phase.value} #{state.current_session} "
        f"{format_remaining(state.time_remaining)}{paused}"
    )
