"""Bounded wait for a participant selection."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from trialflow.core.contracts import SelectionAttempt, SelectionSource

from .pause import ActiveStopwatch, PausePoint

logger = logging.getLogger(__name__)

NO_SELECTION = -1


@dataclass(frozen=True, slots=True)
class ChoiceResult:
    """Selection outcome of one choice window.

    Parameters
    ----------
    index : int
        Selected stimulus index, or ``NO_SELECTION`` on timeout.
    reaction_time_ms : float
        Active time from capture start to selection; the timeout on timeout.
    origin : Any, optional
        Origin hint of the selecting input.
    """

    index: int
    reaction_time_ms: float
    origin: Any = None

    @property
    def answered(self) -> bool:
        return self.index != NO_SELECTION


class ChoiceCapture:
    """Poll a selection source until a valid selection or the timeout.

    Parameters
    ----------
    timeout_s : float
        Maximum active time to wait.
    source : SelectionSource
        Polled once per active tick.
    pause_point : PausePoint
        Shared suspension point; pausing stops the reaction-time clock.
    on_attempt : Callable[[SelectionAttempt], None] | None, optional
        Called for every raw attempt, resolved or not.

    Raises
    ------
    ValueError
        If ``timeout_s`` is not positive.
    """

    def __init__(
        self,
        timeout_s: float,
        source: SelectionSource,
        pause_point: PausePoint,
        *,
        on_attempt: Callable[[SelectionAttempt], None] | None = None,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        self.timeout_s = float(timeout_s)
        self._source = source
        self._on_attempt = on_attempt
        self._stopwatch = ActiveStopwatch(pause_point)
        self._result: ChoiceResult | None = None

    @property
    def result(self) -> ChoiceResult | None:
        return self._result

    def start(self, now: float) -> None:
        self._stopwatch.start(now)
        self._result = None

    def tick(self, now: float) -> ChoiceResult | None:
        """Advance one tick; return the result once the window closes."""

        if self._result is not None:
            return self._result
        if not self._stopwatch.advance(now):
            return None

        elapsed_s = self._stopwatch.elapsed_s
        if elapsed_s >= self.timeout_s:
            self._result = ChoiceResult(NO_SELECTION, self.timeout_s * 1000.0)
            logger.debug("choice window timed out after %.3f s", self.timeout_s)
            return self._result

        attempt = self._source.poll_selection()
        if attempt is None:
            return None
        if self._on_attempt is not None:
            self._on_attempt(attempt)
        if attempt.target is None:
            return None

        self._result = ChoiceResult(int(attempt.target), elapsed_s * 1000.0, attempt.origin)
        logger.debug("selected stimulus %d after %.1f ms", self._result.index, self._result.reaction_time_ms)
        return self._result


__all__ = ["NO_SELECTION", "ChoiceCapture", "ChoiceResult"]
