"""Headless collaborators for simulated sessions.

These stand in for the renderer, input device, overlay and reward meter when
a session is run without a display, e.g. to dry-run a trial list or to
produce example log files. Time is virtual: :class:`VirtualClock` only moves
when the scheduler sleeps.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from trialflow.core.contracts import FlashColor, OverlayTag, SelectionAttempt
from trialflow.core.events import PhaseKind
from trialflow.core.trials import Location


class VirtualClock:
    """Monotonic clock that advances only through :meth:`sleep`."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            self._now += float(seconds)

    def advance(self, seconds: float) -> float:
        self.sleep(seconds)
        return self._now


@dataclass(slots=True)
class HeadlessHandle:
    """Spawned stimulus in a :class:`HeadlessRenderer`."""

    index: int
    location: Location
    alive: bool = True
    color: FlashColor | None = None

    def is_alive(self) -> bool:
        return self.alive


class HeadlessRenderer:
    """Renderer that keeps an in-memory scene and a call history."""

    def __init__(self) -> None:
        self.scene: list[HeadlessHandle] = []
        self.history: list[tuple[str, Any]] = []

    def spawn(self, indices: Sequence[int], locations: Sequence[Location]) -> list[HeadlessHandle]:
        handles = [HeadlessHandle(int(index), tuple(location)) for index, location in zip(indices, locations)]
        self.scene.extend(handles)
        self.history.append(("spawn", tuple(handle.index for handle in handles)))
        return handles

    def clear_all(self) -> None:
        for handle in self.scene:
            handle.alive = False
        self.scene.clear()
        self.history.append(("clear", None))

    def set_highlight(self, handle: HeadlessHandle, color: FlashColor | None) -> None:
        handle.color = color
        self.history.append(("highlight", (handle.index, color)))

    def live_indices(self) -> tuple[int, ...]:
        return tuple(handle.index for handle in self.scene if handle.alive)


@dataclass(slots=True)
class TimedOverlayHandle:
    """Overlay handle dismissed once ``duration_s`` of clock time has passed."""

    clock: Callable[[], float]
    opened_at: float
    duration_s: float

    def is_dismissed(self) -> bool:
        return self.clock() - self.opened_at >= self.duration_s


@dataclass(slots=True)
class ScriptedOverlay:
    """Pause overlay that records calls and auto-dismisses after a delay."""

    clock: Callable[[], float]
    duration_s: float = 0.0
    calls: list[tuple[Any, ...]] = field(default_factory=list)

    def show_block(self, block_number: int, total_blocks: int) -> TimedOverlayHandle:
        self.calls.append(("block", block_number, total_blocks))
        return TimedOverlayHandle(self.clock, self.clock(), self.duration_s)

    def show_tag(self, tag: OverlayTag) -> TimedOverlayHandle:
        self.calls.append(("tag", tag))
        return TimedOverlayHandle(self.clock, self.clock(), self.duration_s)


class CountingRewardMeter:
    """Reward meter that empties itself each time it reaches ``capacity``."""

    def __init__(self, capacity: int = 10) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = int(capacity)
        self.units = 0
        self.times_filled = 0
        self._just_filled = False

    def add_reward(self, amount: int, origin: Any = None) -> None:
        del origin
        self.units += int(amount)
        self._just_filled = self.units >= self.capacity
        if self._just_filled:
            self.times_filled += 1
            self.units = 0

    def remove_reward(self, amount: int) -> None:
        self.units = max(0, self.units - int(amount))
        self._just_filled = False

    def just_reached_capacity(self) -> bool:
        return self._just_filled


class SimulatedParticipant:
    """Selection source that answers like a noisy participant.

    Parameters
    ----------
    clock : Callable[[], float]
        Session clock, used to schedule the response.
    renderer : HeadlessRenderer
        Scene the participant looks at.
    correct_for : Callable[[str], frozenset[int]]
        Correct stimulus indices per trial ID.
    rng : numpy.random.Generator
        Random source.
    accuracy : float, optional
        Probability of picking a correct stimulus when one is visible.
    miss_rate : float, optional
        Probability of not answering at all.
    rt_range_s : tuple[float, float], optional
        Uniform response-time range in seconds.

    Notes
    -----
    The participant registers as an event listener and arms itself when the
    ``Choice`` phase is logged.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float],
        renderer: HeadlessRenderer,
        correct_for: Callable[[str], frozenset[int]],
        rng: np.random.Generator,
        accuracy: float = 0.8,
        miss_rate: float = 0.05,
        rt_range_s: tuple[float, float] = (0.3, 1.2),
    ) -> None:
        if not 0.0 <= accuracy <= 1.0:
            raise ValueError("accuracy must be in [0, 1]")
        if not 0.0 <= miss_rate <= 1.0:
            raise ValueError("miss_rate must be in [0, 1]")
        low, high = rt_range_s
        if low < 0 or high < low:
            raise ValueError("rt_range_s must satisfy 0 <= low <= high")
        self._clock = clock
        self._renderer = renderer
        self._correct_for = correct_for
        self._rng = rng
        self._accuracy = float(accuracy)
        self._miss_rate = float(miss_rate)
        self._rt_range_s = (float(low), float(high))
        self._trial_id: str | None = None
        self._respond_at: float | None = None

    def on_log_event(self, trial_id: str, label: str) -> None:
        if label != PhaseKind.CHOICE.value:
            return
        self._trial_id = trial_id
        if self._rng.random() < self._miss_rate:
            self._respond_at = None
            return
        low, high = self._rt_range_s
        self._respond_at = self._clock() + float(self._rng.uniform(low, high))

    def poll_selection(self) -> SelectionAttempt | None:
        if self._respond_at is None or self._trial_id is None or self._clock() < self._respond_at:
            return None
        self._respond_at = None

        visible = self._renderer.live_indices()
        if not visible:
            return SelectionAttempt(target=None)
        correct = self._correct_for(self._trial_id)
        hits = [index for index in visible if index in correct]
        misses = [index for index in visible if index not in correct]
        pool = hits if hits and (self._rng.random() < self._accuracy or not misses) else misses or hits
        return SelectionAttempt(target=int(self._rng.choice(pool)))


__all__ = [
    "CountingRewardMeter",
    "HeadlessHandle",
    "HeadlessRenderer",
    "ScriptedOverlay",
    "SimulatedParticipant",
    "TimedOverlayHandle",
    "VirtualClock",
]
