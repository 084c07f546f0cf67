"""Tests for the flash feedback flourish."""

from __future__ import annotations

from trialflow.core.contracts import FlashColor
from trialflow.runtime.flourish import FlashFeedbackTask
from trialflow.runtime.pause import PausePoint, PauseState
from trialflow.simulation import HeadlessRenderer


def _spawn_one(renderer: HeadlessRenderer):
    return renderer.spawn((3,), ((0.0, 0.0, 0.0),))[0]


def test_flash_tints_then_restores() -> None:
    """The pulse highlights, waits, restores and waits again."""

    renderer = HeadlessRenderer()
    handle = _spawn_one(renderer)
    task = FlashFeedbackTask(
        renderer,
        handle,
        FlashColor.GREEN,
        interval_s=0.25,
        pause_point=PausePoint(PauseState()),
        now=0.0,
    )

    assert handle.color is FlashColor.GREEN
    assert not task.tick(0.25)
    assert handle.color is None
    assert task.tick(0.5)
    assert renderer.history[1:] == [("highlight", (3, FlashColor.GREEN)), ("highlight", (3, None))]


def test_flash_skips_restore_for_destroyed_stimulus() -> None:
    """A stimulus cleared mid-flash is left alone."""

    renderer = HeadlessRenderer()
    handle = _spawn_one(renderer)
    task = FlashFeedbackTask(
        renderer,
        handle,
        FlashColor.RED,
        interval_s=0.25,
        pause_point=PausePoint(PauseState()),
        now=0.0,
    )
    renderer.clear_all()

    assert not task.tick(0.25)
    assert task.tick(0.5)
    assert ("highlight", (3, None)) not in renderer.history


def test_flash_freezes_while_paused_without_consuming_requests() -> None:
    """The flourish observes the pause but never opens the overlay."""

    state = PauseState()
    renderer = HeadlessRenderer()
    handle = _spawn_one(renderer)
    task = FlashFeedbackTask(
        renderer,
        handle,
        FlashColor.GREEN,
        interval_s=0.5,
        pause_point=PausePoint(state),
        now=0.0,
    )
    state.request()
    state.in_pause = True

    assert not task.tick(0.25)
    assert not task.tick(5.0)
    assert handle.color is FlashColor.GREEN
    assert state.requested

    state.in_pause = False
    assert not task.tick(5.25)
    assert handle.color is FlashColor.GREEN
    assert not task.tick(5.5)
    assert handle.color is None
