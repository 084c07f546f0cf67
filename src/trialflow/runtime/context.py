"""Collaborator bundle and shared per-session state."""

from __future__ import annotations

from dataclasses import dataclass

from trialflow.core.contracts import (
    CuePlayer,
    EventListener,
    FeedbackDisplay,
    LogSink,
    PauseOverlay,
    Renderer,
    RewardMeter,
    SelectionSource,
)

from .config import EngineConfig
from .event_log import EventLogger
from .flourish import TaskSpawner
from .pause import PausePoint
from .scoring import Evaluation


@dataclass(slots=True)
class Collaborators:
    """External collaborators wired into one session.

    Only ``renderer``, ``selection_source`` and ``log_sink`` are required.
    """

    renderer: Renderer
    selection_source: SelectionSource
    log_sink: LogSink
    pause_overlay: PauseOverlay | None = None
    reward_meter: RewardMeter | None = None
    cue_player: CuePlayer | None = None
    feedback_display: FeedbackDisplay | None = None
    listeners: tuple[EventListener, ...] = ()


class Scoreboard:
    """Cumulative session score, mirrored to the feedback display."""

    def __init__(self, display: FeedbackDisplay | None = None) -> None:
        self._display = display
        self.score = 0
        if display is not None:
            display.show_score(self.score)

    def apply(self, evaluation: Evaluation) -> int:
        self.score += evaluation.score_delta
        if self._display is not None:
            self._display.show_score(self.score)
        return self.score


@dataclass(slots=True)
class RunContext:
    """Everything a trial sequencer needs from its session."""

    collaborators: Collaborators
    config: EngineConfig
    pause_point: PausePoint
    event_logger: EventLogger
    scoreboard: Scoreboard
    spawn: TaskSpawner


__all__ = ["Collaborators", "RunContext", "Scoreboard"]
