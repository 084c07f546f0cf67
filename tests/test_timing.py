"""Tests for the pause-aware stopwatch and the interruptable timer."""

from __future__ import annotations

import logging

import pytest

from trialflow.core.contracts import OverlayTag
from trialflow.runtime.pause import ActiveStopwatch, PausePoint, PauseState
from trialflow.runtime.timing import InterruptableTimer


class _ManualHandle:
    """Overlay handle dismissed by the test."""

    def __init__(self) -> None:
        self.dismissed = False

    def is_dismissed(self) -> bool:
        return self.dismissed


class _ManualOverlay:
    """Pause overlay returning one manually dismissed handle per call."""

    def __init__(self) -> None:
        self.tags: list[OverlayTag] = []
        self.handles: list[_ManualHandle] = []

    def show_block(self, block_number: int, total_blocks: int) -> _ManualHandle:
        raise AssertionError("waits must not open block overlays")

    def show_tag(self, tag: OverlayTag) -> _ManualHandle:
        self.tags.append(tag)
        handle = _ManualHandle()
        self.handles.append(handle)
        return handle


def test_timer_completes_after_duration_of_ticks() -> None:
    """The timer completes on the first tick at or past its duration."""

    timer = InterruptableTimer(1.0, PausePoint(PauseState()))
    timer.start(0.0)

    assert not timer.tick(0.25)
    assert not timer.tick(0.75)
    assert timer.remaining_s == pytest.approx(0.25)
    assert timer.tick(1.0)
    assert timer.done
    assert timer.tick(1.25)


def test_zero_duration_completes_on_first_tick() -> None:
    """A zero-length wait still yields for one tick."""

    timer = InterruptableTimer(0.0, PausePoint(PauseState()))
    timer.start(3.0)

    assert not timer.done
    assert timer.tick(3.0)


def test_negative_duration_is_rejected() -> None:
    """Negative durations are invalid."""

    with pytest.raises(ValueError, match="duration_s must be >= 0"):
        InterruptableTimer(-0.5, PausePoint(PauseState()))


def test_pause_preserves_remaining_active_time() -> None:
    """After a pause at active time t, exactly D - t remains to wait."""

    state = PauseState()
    overlay = _ManualOverlay()
    timer = InterruptableTimer(2.0, PausePoint(state, overlay))
    timer.start(0.0)

    assert not timer.tick(0.5)
    assert not timer.tick(1.0)
    assert state.request()
    # The tick that observes the request still counts the time before it.
    assert not timer.tick(1.5)
    assert overlay.tags == [OverlayTag.PAUSED]
    assert state.in_pause
    assert not state.requested

    assert not timer.tick(10.0)
    assert not timer.tick(40.0)
    assert timer.elapsed_s == pytest.approx(1.5)

    overlay.handles[0].dismissed = True
    assert not timer.tick(41.0)
    assert not state.in_pause
    assert timer.remaining_s == pytest.approx(0.5)

    assert not timer.tick(41.25)
    assert timer.tick(41.5)


def test_pause_request_is_ignored_while_paused() -> None:
    """A second request during the overlay is dropped."""

    state = PauseState()
    overlay = _ManualOverlay()
    timer = InterruptableTimer(5.0, PausePoint(state, overlay))
    timer.start(0.0)
    state.request()
    timer.tick(0.5)

    assert not state.request()
    overlay.handles[0].dismissed = True
    timer.tick(1.0)
    timer.tick(1.5)
    assert overlay.tags == [OverlayTag.PAUSED]


def test_pause_without_overlay_is_dropped_with_warning(caplog) -> None:
    """Without an overlay the request is consumed and time keeps running."""

    state = PauseState()
    timer = InterruptableTimer(1.0, PausePoint(state))
    timer.start(0.0)
    state.request()

    with caplog.at_level(logging.WARNING, logger="trialflow.runtime.pause"):
        assert not timer.tick(0.5)
    assert timer.tick(1.0)
    assert not state.requested
    assert "no pause overlay" in caplog.text


def test_observer_point_freezes_without_consuming() -> None:
    """Observer waits leave requests alone and stop while a pause is shown."""

    state = PauseState()
    observer = PausePoint(state, _ManualOverlay()).observer()
    watch = ActiveStopwatch(observer)
    watch.start(0.0)
    state.request()

    assert watch.advance(0.5)
    assert state.requested

    state.in_pause = True
    assert not watch.advance(3.0)
    state.in_pause = False
    assert watch.advance(3.5)
    assert watch.elapsed_s == pytest.approx(1.0)


def test_stopwatch_requires_start() -> None:
    """Advancing before start is a programming error."""

    with pytest.raises(RuntimeError, match="started"):
        ActiveStopwatch(PausePoint(PauseState())).advance(1.0)
