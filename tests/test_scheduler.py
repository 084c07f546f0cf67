"""Tests for the cooperative tick scheduler."""

from __future__ import annotations

import pytest

from trialflow.runtime.scheduler import TickScheduler
from trialflow.simulation import VirtualClock


class _CountdownFlow:
    """Main flow finishing after ``ticks`` ticks and recording its samples."""

    def __init__(self, ticks: int, journal: list[str]) -> None:
        self.remaining = ticks
        self.journal = journal
        self.samples: list[float] = []

    def start(self, now: float) -> None:
        self.samples.append(now)

    def tick(self, now: float) -> bool:
        self.journal.append("main")
        self.samples.append(now)
        self.remaining -= 1
        return self.remaining <= 0


class _Countdown:
    """Background task finishing after ``ticks`` ticks."""

    def __init__(self, ticks: int, journal: list[str]) -> None:
        self.remaining = ticks
        self.journal = journal

    def tick(self, now: float) -> bool:
        self.journal.append("task")
        self.remaining -= 1
        return self.remaining <= 0


def test_run_samples_clock_once_per_tick_at_fixed_cadence() -> None:
    """Each tick hands the main flow one clock sample, one interval apart."""

    clock = VirtualClock()
    scheduler = TickScheduler(clock=clock, sleep=clock.sleep, tick_rate_hz=4.0)
    flow = _CountdownFlow(3, [])

    ticks = scheduler.run(flow)

    assert ticks == 3
    assert flow.samples == [0.0, 0.25, 0.5, 0.75]
    assert scheduler.tick_count == 3


def test_background_tasks_tick_before_main_and_outlive_it() -> None:
    """Tasks run first each tick and keep the scheduler alive after main ends."""

    journal: list[str] = []
    clock = VirtualClock()
    scheduler = TickScheduler(clock=clock, sleep=clock.sleep, tick_rate_hz=10.0)
    flow = _CountdownFlow(1, journal)
    scheduler.spawn(_Countdown(3, journal))

    ticks = scheduler.run(flow)

    assert ticks == 3
    assert journal == ["task", "main", "task", "task"]
    assert scheduler.pending_tasks == 0


def test_task_spawned_during_tick_starts_next_tick() -> None:
    """A task spawned by the main flow is first ticked on the following tick."""

    journal: list[str] = []
    clock = VirtualClock()
    scheduler = TickScheduler(clock=clock, sleep=clock.sleep)

    class _Spawner(_CountdownFlow):
        def tick(self, now: float) -> bool:
            if not self.samples[1:]:
                scheduler.spawn(_Countdown(1, journal))
            return super().tick(now)

    scheduler.run(_Spawner(2, journal))

    assert journal == ["main", "task", "main"]


def test_max_ticks_guards_runaway_flows() -> None:
    """Exceeding the tick limit raises ``RuntimeError``."""

    clock = VirtualClock()
    scheduler = TickScheduler(clock=clock, sleep=clock.sleep)

    with pytest.raises(RuntimeError, match="max_ticks=5"):
        scheduler.run(_CountdownFlow(100, []), max_ticks=5)


def test_tick_rate_must_be_positive() -> None:
    """A zero tick rate is rejected."""

    with pytest.raises(ValueError, match="tick_rate_hz must be > 0"):
        TickScheduler(tick_rate_hz=0.0)
