"""Top-level package for ``trialflow``.

The package runs cognitive-task sessions as a tick-driven flow:

1. a :class:`~trialflow.runtime.session.SessionRunner` walks the trial list
   and handles block boundaries,
2. a :class:`~trialflow.runtime.sequencer.TrialSequencer` runs one trial's
   phases, waits and choice capture,
3. an :class:`~trialflow.runtime.event_log.EventLogger` writes every event to
   the unconditional stream and coded events to the TTL stream,
4. a :class:`~trialflow.runtime.scheduler.TickScheduler` drives the session
   and its background flourishes.

Task variants (DMS, MNM, TST) are plain phase tables registered in
:mod:`trialflow.tasks`. Use :func:`~trialflow.runtime.engine.run_session` to
run a full session against your own collaborators.
"""

from .analysis import SessionSummary, summarize_results
from .core.trials import StimulusSet, Trial, TrialResult
from .runtime.config import EngineConfig, load_engine_config
from .runtime.context import Collaborators
from .runtime.engine import SessionOutcome, run_session
from .tasks import build_default_registry

__all__ = [
    "Collaborators",
    "EngineConfig",
    "SessionOutcome",
    "SessionSummary",
    "StimulusSet",
    "Trial",
    "TrialResult",
    "build_default_registry",
    "load_engine_config",
    "run_session",
    "summarize_results",
]
