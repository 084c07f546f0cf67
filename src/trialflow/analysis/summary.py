"""Session-level accuracy and reaction-time summaries."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from trialflow.core.trials import TrialResult


@dataclass(frozen=True, slots=True)
class SessionSummary:
    """Aggregate performance of a session.

    Parameters
    ----------
    trials_total : int
        Number of completed trials.
    accuracy : float
        Fraction of correct trials; ``nan`` when no trial was completed.
    mean_reaction_time_ms : float
        Mean reaction time (timeouts count as the timeout); ``nan`` when no
        trial was completed.
    """

    trials_total: int
    accuracy: float
    mean_reaction_time_ms: float

    def to_dict(self) -> dict[str, float | int | None]:
        """JSON-friendly mapping; ``nan`` becomes ``None``."""

        return {
            "trials_total": self.trials_total,
            "accuracy": None if np.isnan(self.accuracy) else self.accuracy,
            "mean_reaction_time_ms": None if np.isnan(self.mean_reaction_time_ms) else self.mean_reaction_time_ms,
        }


@dataclass(frozen=True, slots=True)
class TrialDetail:
    """Per-trial row with a one-based trial index."""

    trial_index: int
    correct: bool
    reaction_time_ms: float


def summarize_results(results: Sequence[TrialResult]) -> SessionSummary:
    """Compute accuracy and mean reaction time.

    Parameters
    ----------
    results : Sequence[TrialResult]
        Completed trial results in order.

    Returns
    -------
    SessionSummary
        Summary; accuracy and mean are ``nan`` for an empty sequence.
    """

    if len(results) == 0:
        return SessionSummary(trials_total=0, accuracy=float("nan"), mean_reaction_time_ms=float("nan"))

    correct = np.fromiter((result.correct for result in results), dtype=float, count=len(results))
    reaction = np.fromiter((result.reaction_time_ms for result in results), dtype=float, count=len(results))
    return SessionSummary(
        trials_total=len(results),
        accuracy=float(np.mean(correct)),
        mean_reaction_time_ms=float(np.mean(reaction)),
    )


def trial_details(results: Sequence[TrialResult]) -> tuple[TrialDetail, ...]:
    return tuple(
        TrialDetail(trial_index=position + 1, correct=result.correct, reaction_time_ms=result.reaction_time_ms)
        for position, result in enumerate(results)
    )


__all__ = ["SessionSummary", "TrialDetail", "summarize_results", "trial_details"]
