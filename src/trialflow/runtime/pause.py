"""Shared pause handling for every timed wait.

All waits measure *active* time: wall-clock time minus any time a pause
overlay was on screen. :class:`ActiveStopwatch` is the single suspension
point used by :class:`~trialflow.runtime.timing.InterruptableTimer` and
:class:`~trialflow.runtime.choice.ChoiceCapture`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from trialflow.core.contracts import OverlayHandle, OverlayTag, PauseOverlay

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PauseState:
    """Pause flags shared by the main flow and its flourishes.

    Attributes
    ----------
    requested : bool
        Set by :meth:`request`; cleared by the first wait that consumes it.
    in_pause : bool
        True while a pause overlay opened by a wait is on screen.
    """

    requested: bool = False
    in_pause: bool = False

    def request(self) -> bool:
        """Ask the running wait to pause at its next tick.

        Returns
        -------
        bool
            ``False`` if a pause overlay is already showing (request ignored).
        """

        if self.in_pause:
            return False
        self.requested = True
        return True


class PausePoint:
    """Binds the shared :class:`PauseState` to the overlay collaborator.

    Parameters
    ----------
    state : PauseState
        Shared pause flags.
    overlay : PauseOverlay | None, optional
        Overlay shown while paused. Without one, requests are dropped.
    consume_requests : bool, optional
        Main-flow waits consume requests and open the overlay. Flourish waits
        are observers: they never consume a request and simply freeze while
        ``state.in_pause`` is set.
    """

    def __init__(
        self,
        state: PauseState,
        overlay: PauseOverlay | None = None,
        *,
        consume_requests: bool = True,
    ) -> None:
        self.state = state
        self._overlay = overlay
        self.consume_requests = consume_requests

    def observer(self) -> PausePoint:
        """Return a non-consuming view over the same state."""

        return PausePoint(self.state, None, consume_requests=False)

    def enter(self) -> OverlayHandle | None:
        """Consume a pending request and open the paused overlay.

        Returns
        -------
        OverlayHandle | None
            Open overlay, or ``None`` if nothing was requested (or no overlay
            is wired, in which case the request is dropped).
        """

        if not self.consume_requests or not self.state.requested:
            return None
        self.state.requested = False
        if self._overlay is None:
            logger.warning("pause requested but no pause overlay is wired; ignoring request")
            return None
        self.state.in_pause = True
        logger.info("pause overlay opened")
        return self._overlay.show_tag(OverlayTag.PAUSED)

    def leave(self) -> None:
        self.state.in_pause = False
        logger.info("pause overlay dismissed")


class ActiveStopwatch:
    """Accumulates active time across scheduler ticks.

    Parameters
    ----------
    pause_point : PausePoint
        Suspension point consulted once per tick.

    Notes
    -----
    Time between the previous tick and the tick on which a pause request is
    observed counts as active. Time between that tick and the tick on which
    the overlay is seen dismissed does not.
    """

    def __init__(self, pause_point: PausePoint) -> None:
        self._point = pause_point
        self._elapsed = 0.0
        self._last: float | None = None
        self._overlay: OverlayHandle | None = None

    @property
    def elapsed_s(self) -> float:
        return self._elapsed

    @property
    def suspended(self) -> bool:
        return self._overlay is not None

    def start(self, now: float) -> None:
        self._elapsed = 0.0
        self._last = now
        self._overlay = None

    def advance(self, now: float) -> bool:
        """Account for the time since the previous tick.

        Parameters
        ----------
        now : float
            Monotonic clock sample of the current tick, in seconds.

        Returns
        -------
        bool
            ``True`` if the wait is active on this tick, ``False`` while
            suspended behind a pause overlay.

        Raises
        ------
        RuntimeError
            If called before :meth:`start`.
        """

        if self._last is None:
            raise RuntimeError("stopwatch must be started before advancing")

        if self._overlay is not None:
            self._last = now
            if not self._overlay.is_dismissed():
                return False
            self._overlay = None
            self._point.leave()
            return True

        if not self._point.consume_requests and self._point.state.in_pause:
            self._last = now
            return False

        self._elapsed += now - self._last
        self._last = now

        handle = self._point.enter()
        if handle is not None:
            self._overlay = handle
            return False
        return True


__all__ = ["ActiveStopwatch", "PausePoint", "PauseState"]
