"""Trial orchestration runtime: waits, scoring, sequencing and scheduling."""

from .choice import NO_SELECTION, ChoiceCapture, ChoiceResult
from .config import EngineConfig, engine_config_from_mapping, load_engine_config
from .context import Collaborators, RunContext, Scoreboard
from .engine import SessionOutcome, build_session, run_session
from .event_log import EventLogger, InMemoryLogSink
from .flourish import BackgroundTask, DeferredLogTask, FlashFeedbackTask, TaskSpawner
from .pause import ActiveStopwatch, PausePoint, PauseState
from .scheduler import MainFlow, TickScheduler
from .scoring import (
    Evaluation,
    FeedbackKind,
    ScoringRule,
    apply_reward,
    evaluate,
    success_cue_allowed,
)
from .sequencer import TrialSequencer
from .session import SessionRunner, SessionStage
from .timing import InterruptableTimer

__all__ = [
    "ActiveStopwatch",
    "BackgroundTask",
    "ChoiceCapture",
    "ChoiceResult",
    "Collaborators",
    "DeferredLogTask",
    "EngineConfig",
    "Evaluation",
    "EventLogger",
    "FeedbackKind",
    "FlashFeedbackTask",
    "InMemoryLogSink",
    "InterruptableTimer",
    "MainFlow",
    "NO_SELECTION",
    "PausePoint",
    "PauseState",
    "RunContext",
    "Scoreboard",
    "ScoringRule",
    "SessionOutcome",
    "SessionRunner",
    "SessionStage",
    "TaskSpawner",
    "TickScheduler",
    "TrialSequencer",
    "apply_reward",
    "build_session",
    "engine_config_from_mapping",
    "evaluate",
    "load_engine_config",
    "run_session",
    "success_cue_allowed",
]
