"""Session entry point.

:func:`run_session` wires a task variant, a trial list and the external
collaborators into a :class:`SessionRunner` and drives it with a
:class:`TickScheduler` until the session and every flourish are done.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from trialflow.analysis.summary import SessionSummary, TrialDetail
from trialflow.core.trials import Trial, TrialResult
from trialflow.tasks.registry import TaskRegistry
from trialflow.tasks.variant import TaskVariant

from .config import EngineConfig
from .context import Collaborators
from .scheduler import TickScheduler
from .session import SessionRunner


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    """Everything a finished session produced besides its logs."""

    results: tuple[TrialResult, ...]
    score: int
    summary: SessionSummary
    details: tuple[TrialDetail, ...]
    ticks: int


def build_session(
    trials: Sequence[Trial],
    collaborators: Collaborators,
    *,
    config: EngineConfig | None = None,
    variant: TaskVariant | None = None,
    registry: TaskRegistry | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> tuple[SessionRunner, TickScheduler]:
    """Create a session runner and the scheduler that will drive it.

    ``variant`` overrides the task named in ``config``.
    """

    cfg = config if config is not None else EngineConfig()
    task = variant if variant is not None else cfg.build_task(registry)
    scheduler = TickScheduler(clock=clock, sleep=sleep, tick_rate_hz=cfg.tick_rate_hz)
    runner = SessionRunner(task, trials, collaborators, spawn=scheduler.spawn, config=cfg)
    return runner, scheduler


def run_session(
    trials: Sequence[Trial],
    collaborators: Collaborators,
    *,
    config: EngineConfig | None = None,
    variant: TaskVariant | None = None,
    registry: TaskRegistry | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    max_ticks: int | None = None,
) -> SessionOutcome:
    """Run a full session and return its outcome.

    Parameters
    ----------
    trials : Sequence[Trial]
        Materialized trial list.
    collaborators : Collaborators
        External collaborators.
    config : EngineConfig | None, optional
        Engine options; defaults to :class:`EngineConfig`.
    variant : TaskVariant | None, optional
        Pre-built variant overriding ``config.task``.
    registry : TaskRegistry | None, optional
        Registry used to resolve ``config.task``.
    clock, sleep : callables, optional
        Time source and sleep; pass a virtual clock for headless runs.
    max_ticks : int | None, optional
        Scheduler safety limit.

    Returns
    -------
    SessionOutcome
        Results, final score, summary and per-trial details.
    """

    runner, scheduler = build_session(
        trials,
        collaborators,
        config=config,
        variant=variant,
        registry=registry,
        clock=clock,
        sleep=sleep,
    )
    ticks = scheduler.run(runner, max_ticks=max_ticks)
    return SessionOutcome(
        results=runner.results,
        score=runner.score,
        summary=runner.summary(),
        details=runner.trial_details(),
        ticks=ticks,
    )


__all__ = ["SessionOutcome", "build_session", "run_session"]
