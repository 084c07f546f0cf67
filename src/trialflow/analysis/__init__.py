"""Session summaries computed from trial results."""

from .summary import SessionSummary, TrialDetail, summarize_results, trial_details

__all__ = ["SessionSummary", "TrialDetail", "summarize_results", "trial_details"]
