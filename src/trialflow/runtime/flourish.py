"""Fire-and-forget side flows started by the trial sequencer.

The main flow never waits for these tasks; the scheduler ticks them
alongside it. They may outlive the phase that started them and must not touch
session state (trial index, score).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from trialflow.core.contracts import FlashColor, Renderer, StimulusHandle
from trialflow.core.events import EventLabel

from .event_log import EventLogger
from .pause import PausePoint
from .timing import InterruptableTimer


class BackgroundTask(Protocol):
    """A side flow advanced once per scheduler tick."""

    def tick(self, now: float) -> bool:
        """Advance one tick; return ``True`` when finished."""


TaskSpawner = Callable[[BackgroundTask], None]


class FlashFeedbackTask:
    """One color pulse on the chosen stimulus: tint, wait, restore, wait.

    Parameters
    ----------
    renderer : Renderer
        Renderer owning the handle.
    handle : StimulusHandle
        Chosen stimulus.
    color : FlashColor
        Pulse color.
    interval_s : float
        Duration of the tinted and of the restored interval.
    pause_point : PausePoint
        Main-flow pause point; the task uses a non-consuming view of it.
    now : float
        Clock sample of the tick that started the flash.
    """

    def __init__(
        self,
        renderer: Renderer,
        handle: StimulusHandle,
        color: FlashColor,
        *,
        interval_s: float,
        pause_point: PausePoint,
        now: float,
    ) -> None:
        self._renderer = renderer
        self._handle = handle
        observer = pause_point.observer()
        self._on = InterruptableTimer(interval_s, observer)
        self._off = InterruptableTimer(interval_s, observer)
        self._restored = False
        self._done = False

        self._renderer.set_highlight(handle, color)
        self._on.start(now)

    def tick(self, now: float) -> bool:
        if self._done:
            return True
        if not self._restored:
            if self._on.tick(now):
                if self._handle.is_alive():
                    self._renderer.set_highlight(self._handle, None)
                self._restored = True
                self._off.start(now)
            return False
        self._done = self._off.tick(now)
        return self._done


class DeferredLogTask:
    """Record an event after a fixed number of settle ticks.

    Used for phases whose on-screen change needs a rendering pass before the
    timestamp is meaningful. The trial identity is captured when the task is
    created, so the entry is attributed to the trial that requested it.
    The owner calls :meth:`flush` when the phase ends early so the entry is
    never recorded after the following phase's entry.
    """

    def __init__(
        self,
        event_logger: EventLogger,
        trial_id: str,
        label: EventLabel,
        *,
        settle_ticks: int,
    ) -> None:
        if settle_ticks < 1:
            raise ValueError("settle_ticks must be >= 1")
        self._logger = event_logger
        self._trial_id = trial_id
        self._label = label
        self._remaining = int(settle_ticks)

    def tick(self, now: float) -> bool:
        del now
        if self._remaining <= 0:
            return True
        self._remaining -= 1
        if self._remaining == 0:
            self._logger.record(self._trial_id, self._label)
            return True
        return False

    def flush(self) -> bool:
        """Record now if the entry is still pending.

        Returns ``True`` when this call wrote the entry. Later ticks are
        no-ops either way.
        """

        if self._remaining <= 0:
            return False
        self._remaining = 0
        self._logger.record(self._trial_id, self._label)
        return True


__all__ = ["BackgroundTask", "DeferredLogTask", "FlashFeedbackTask", "TaskSpawner"]
