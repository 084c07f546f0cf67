"""Tests for session summaries."""

from __future__ import annotations

import math

import pytest

from trialflow.analysis import summarize_results, trial_details
from trialflow.core.trials import TrialResult


def test_summary_accuracy_and_mean_reaction_time() -> None:
    """Three trials summarize to 2/3 accuracy and a 200 ms mean."""

    results = [TrialResult(True, 100.0), TrialResult(False, 300.0), TrialResult(True, 200.0)]

    summary = summarize_results(results)

    assert summary.trials_total == 3
    assert summary.accuracy == pytest.approx(0.667, abs=1e-3)
    assert summary.mean_reaction_time_ms == pytest.approx(200.0)


def test_summary_of_zero_trials_is_undefined() -> None:
    """No trials give NaN metrics, serialized as ``None``."""

    summary = summarize_results([])

    assert summary.trials_total == 0
    assert math.isnan(summary.accuracy)
    assert math.isnan(summary.mean_reaction_time_ms)
    assert summary.to_dict() == {"trials_total": 0, "accuracy": None, "mean_reaction_time_ms": None}


def test_trial_details_are_one_based() -> None:
    """Per-trial rows are numbered from one."""

    details = trial_details([TrialResult(True, 120.0), TrialResult(False, 10000.0)])

    assert [(row.trial_index, row.correct, row.reaction_time_ms) for row in details] == [
        (1, True, 120.0),
        (2, False, 10000.0),
    ]
