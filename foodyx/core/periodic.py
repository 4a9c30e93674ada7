"""
Cancellable periodic task bound to a view's lifetime.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

# Return False to stop polling; None/True keeps going.
TickCallback = Callable[[], Awaitable["bool | None"]]


class PeriodicTask:
    """Runs ``callback`` every ``interval`` seconds until stopped.

    A failing tick is logged and the loop carries on.
    """

    def __init__(self, callback: TickCallback, interval: float, *, name: str = "periodic") -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self.interval = interval
        self.name = name
        self._task: asyncio.Task | None = None
        self._stop_requested = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stop_requested

    def start(self) -> None:
        if self.running:
            return
        self._stop_requested = False
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        self._stop_requested = True
        task, self._task = self._task, None
        if task is None or task.done() or task is asyncio.current_task():
            # Stopped from inside a tick: the loop sees the flag and exits.
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while not self._stop_requested:
            await asyncio.sleep(self.interval)
            if self._stop_requested:
                break
            try:
                keep_going = await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"{self.name} tick failed: {e}")
                continue
            if keep_going is False:
                logger.debug(f"{self.name} stopped by callback")
                break
