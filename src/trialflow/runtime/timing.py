"""Interruptable, pause-aware phase timer."""

from __future__ import annotations

from .pause import ActiveStopwatch, PausePoint


class InterruptableTimer:
    """Wait for ``duration_s`` seconds of active (un-paused) time.

    Parameters
    ----------
    duration_s : float
        Active duration to wait. Zero completes on the first tick after start.
    pause_point : PausePoint
        Shared suspension point.

    Raises
    ------
    ValueError
        If ``duration_s`` is negative.

    Notes
    -----
    Pausing after ``t`` seconds of active time leaves exactly
    ``duration_s - t`` seconds to wait once the overlay is dismissed,
    however long the overlay stayed open.
    """

    def __init__(self, duration_s: float, pause_point: PausePoint) -> None:
        if duration_s < 0:
            raise ValueError("duration_s must be >= 0")
        self.duration_s = float(duration_s)
        self._stopwatch = ActiveStopwatch(pause_point)
        self._done = False

    @property
    def elapsed_s(self) -> float:
        return self._stopwatch.elapsed_s

    @property
    def remaining_s(self) -> float:
        return max(0.0, self.duration_s - self._stopwatch.elapsed_s)

    @property
    def done(self) -> bool:
        return self._done

    def start(self, now: float) -> None:
        self._stopwatch.start(now)
        self._done = False

    def tick(self, now: float) -> bool:
        """Advance by one scheduler tick; return ``True`` once complete."""

        if self._done:
            return True
        if self._stopwatch.advance(now) and self._stopwatch.elapsed_s >= self.duration_s:
            self._done = True
        return self._done


__all__ = ["InterruptableTimer"]
