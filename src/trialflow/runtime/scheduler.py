"""Fixed-cadence cooperative scheduler.

One logical flow of control (the session) plus any number of fire-and-forget
background tasks are advanced once per tick. The clock is sampled exactly
once per tick and the same sample is handed to every participant.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from .flourish import BackgroundTask

logger = logging.getLogger(__name__)


class MainFlow(Protocol):
    """The single main flow driven by the scheduler."""

    def start(self, now: float) -> None:
        """Begin the flow at clock sample ``now``."""

    def tick(self, now: float) -> bool:
        """Advance one tick; return ``True`` when finished."""


class TickScheduler:
    """Drive a main flow and its background tasks at a fixed cadence.

    Parameters
    ----------
    clock : Callable[[], float], optional
        Monotonic clock in seconds.
    sleep : Callable[[float], None], optional
        Sleep function used between ticks.
    tick_rate_hz : float, optional
        Ticks per second (conceptually, one per rendered frame).

    Notes
    -----
    Background tasks are ticked before the main flow, so a deferred log entry
    that is due on a tick is recorded before the entries of a phase entered
    on that same tick. Tasks spawned during a tick are first ticked on the
    next one.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        tick_rate_hz: float = 60.0,
    ) -> None:
        if tick_rate_hz <= 0:
            raise ValueError("tick_rate_hz must be > 0")
        self._clock = clock
        self._sleep = sleep
        self.tick_interval_s = 1.0 / float(tick_rate_hz)
        self._tasks: list[BackgroundTask] = []
        self._main_done = False
        self.tick_count = 0

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def spawn(self, task: BackgroundTask) -> None:
        """Start a fire-and-forget task; it is never awaited by the main flow."""

        self._tasks.append(task)

    def start(self, main: MainFlow) -> float:
        now = self._clock()
        self._main_done = False
        main.start(now)
        return now

    def tick(self, main: MainFlow) -> bool:
        """Run one tick.

        Returns
        -------
        bool
            ``True`` once the main flow has finished and no background task
            is left.
        """

        now = self._clock()
        self.tick_count += 1

        running = self._tasks
        self._tasks = []
        for task in running:
            if not task.tick(now):
                self._tasks.append(task)

        if not self._main_done:
            self._main_done = main.tick(now)
        return self._main_done and not self._tasks

    def run(self, main: MainFlow, *, max_ticks: int | None = None) -> int:
        """Start ``main`` and tick until it and all background tasks finish.

        Parameters
        ----------
        main : MainFlow
            Flow to run.
        max_ticks : int | None, optional
            Safety limit on the number of ticks.

        Returns
        -------
        int
            Number of ticks executed.

        Raises
        ------
        RuntimeError
            If ``max_ticks`` is exceeded.
        """

        start_tick = self.tick_count
        deadline = self.start(main) + self.tick_interval_s
        while True:
            delay = deadline - self._clock()
            if delay > 0:
                self._sleep(delay)
            deadline += self.tick_interval_s
            if self.tick(main):
                break
            if max_ticks is not None and self.tick_count - start_tick >= max_ticks:
                raise RuntimeError(f"scheduler exceeded max_ticks={max_ticks}")
        ticks = self.tick_count - start_tick
        logger.debug("scheduler stopped after %d ticks", ticks)
        return ticks


__all__ = ["MainFlow", "TickScheduler"]
