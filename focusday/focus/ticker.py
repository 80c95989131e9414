"""
1 Hz driver for a PomodoroEngine.

At most one ticker drives an engine at a time. The loop ends on its own
once the engine returns to idle (stop or reset).
"""

import asyncio
import logging

from .pomodoro import PomodoroEngine

logger = logging.getLogger(__name__)


class PomodoroTicker:
    def __init__(self, engine: PomodoroEngine, interval: float = 1.0):
        self.engine = engine
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Begin ticking on the running event loop."""
        owner = self.engine.ticker
        if owner is not None and owner.running:
            raise RuntimeError("Engine is already driven by another ticker")
        self.engine.ticker = self
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def _run(self) -> None:
        try:
            while not self.engine.state.is_idle:
                await asyncio.sleep(self.interval)
                self.engine.tick()
        finally:
            if self.engine.ticker is self:
                self.engine.ticker = None
            logger.debug("Pomodoro ticker finished")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to unwind."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        # a task cancelled before its first step never reaches the loop cleanup
        if self.engine.ticker is self:
            self.engine.ticker = None

    async def wait(self) -> None:
        """Block until the engine goes idle."""
        if self._task is not None:
            await self._task
