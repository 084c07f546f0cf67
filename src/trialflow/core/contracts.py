"""Protocol contracts for the engine's external collaborators.

The engine never renders, hit-tests, plays audio or writes files itself. It
talks to those concerns through the narrow interfaces below. Every
collaborator except the renderer, the selection source and the log sink is
optional; the runtime skips the corresponding step when one is not wired.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from .trials import Location

END_OF_SESSION_BLOCK = -1


class OverlayTag(str, Enum):
    """Non-numbered pause overlays."""

    PRACTICE = "PRACTICE"
    PAUSED = "PAUSED"


class FlashColor(str, Enum):
    """Color pulse shown on the chosen stimulus."""

    GREEN = "green"
    RED = "red"


class FeedbackCue(str, Enum):
    """Audio cues requested from the cue player."""

    SUCCESS = "success"
    ERROR = "error"
    CAPACITY_REACHED = "capacity_reached"


@dataclass(frozen=True, slots=True)
class SelectionAttempt:
    """One raw selection surfaced by the input/hit-test collaborator.

    Parameters
    ----------
    target : int | None
        Stimulus index resolved by hit-testing, or ``None`` when the input did
        not land on a recognized target.
    origin : Any, optional
        Opaque origin hint (e.g. a screen position) forwarded to the reward
        meter.
    """

    target: int | None
    origin: Any = None


@runtime_checkable
class StimulusHandle(Protocol):
    """Renderer-side handle of one spawned stimulus."""

    @property
    def index(self) -> int:
        """Stimulus identity this handle was spawned for."""

    def is_alive(self) -> bool:
        """Whether the underlying object still exists."""


@runtime_checkable
class Renderer(Protocol):
    """Stimulus spawning and clearing."""

    def spawn(
        self,
        indices: Sequence[int],
        locations: Sequence[Location],
    ) -> Sequence[StimulusHandle]:
        """Spawn stimuli and return one handle per spawned object."""

    def clear_all(self) -> None:
        """Remove every spawned stimulus. Must tolerate an empty scene."""

    def set_highlight(self, handle: StimulusHandle, color: FlashColor | None) -> None:
        """Tint ``handle`` with ``color``; ``None`` restores its original look."""


@runtime_checkable
class SelectionSource(Protocol):
    """Input/hit-test collaborator polled once per tick during a choice."""

    def poll_selection(self) -> SelectionAttempt | None:
        """Return this tick's selection attempt, if any."""


@runtime_checkable
class OverlayHandle(Protocol):
    """An open pause overlay."""

    def is_dismissed(self) -> bool:
        """Whether the participant or experimenter closed the overlay."""


@runtime_checkable
class PauseOverlay(Protocol):
    """Full-screen pause/intermission display."""

    def show_block(self, block_number: int, total_blocks: int) -> OverlayHandle:
        """Show a numbered block overlay (``END_OF_SESSION_BLOCK`` ends the session)."""

    def show_tag(self, tag: OverlayTag) -> OverlayHandle:
        """Show the practice or paused overlay."""


@runtime_checkable
class RewardMeter(Protocol):
    """Reward meter that fills up with correct answers."""

    def add_reward(self, amount: int, origin: Any = None) -> None:
        """Grant ``amount`` units, optionally animated from ``origin``."""

    def remove_reward(self, amount: int) -> None:
        """Take away ``amount`` units."""

    def just_reached_capacity(self) -> bool:
        """Whether the last grant filled the meter."""


@runtime_checkable
class CuePlayer(Protocol):
    """Audio cue playback."""

    def play(self, cue: FeedbackCue) -> None:
        """Start playing ``cue`` without blocking."""


@runtime_checkable
class FeedbackDisplay(Protocol):
    """On-screen score and feedback text."""

    def show_score(self, score: int) -> None:
        """Render the cumulative score."""

    def show_feedback(self, text: str) -> None:
        """Render the per-trial feedback text."""

    def hide_feedback(self) -> None:
        """Fade the feedback text out."""


@runtime_checkable
class LogSink(Protocol):
    """Durable, order-preserving log streams."""

    def log_all(self, trial_id: str, label: str, detail: str) -> None:
        """Append to the unconditional stream."""

    def log_ttl(self, trial_id: str, label: str, code: int) -> None:
        """Append to the coded (hardware-trigger) stream."""


@runtime_checkable
class EventListener(Protocol):
    """Explicitly registered observer of every logged event."""

    def on_log_event(self, trial_id: str, label: str) -> None:
        """React to an event (e.g. drive a photodiode patch)."""


__all__ = [
    "END_OF_SESSION_BLOCK",
    "CuePlayer",
    "EventListener",
    "FeedbackCue",
    "FeedbackDisplay",
    "FlashColor",
    "LogSink",
    "OverlayHandle",
    "OverlayTag",
    "PauseOverlay",
    "Renderer",
    "RewardMeter",
    "SelectionAttempt",
    "SelectionSource",
    "StimulusHandle",
]
