"""Correctness, score and reward computation for one choice."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum
from typing import Any

from trialflow.core.contracts import FlashColor, RewardMeter

from .choice import ChoiceResult


class FeedbackKind(str, Enum):
    CORRECT = "correct"
    WRONG = "wrong"
    TOO_SLOW = "too_slow"


@dataclass(frozen=True, slots=True)
class ScoringRule:
    """Point and reward constants.

    Parameters
    ----------
    points_per_correct : int, optional
        Score added on a correct choice. Must be positive.
    points_per_wrong : int, optional
        Score added otherwise. Must be zero or negative.
    reward_per_correct : int, optional
        Reward-meter units granted on a correct choice.
    penalty_units : int, optional
        Reward-meter units removed otherwise.

    Raises
    ------
    ValueError
        If a constant has the wrong sign.
    """

    points_per_correct: int = 2
    points_per_wrong: int = -1
    reward_per_correct: int = 2
    penalty_units: int = 1

    def __post_init__(self) -> None:
        if self.points_per_correct <= 0:
            raise ValueError("points_per_correct must be > 0")
        if self.points_per_wrong > 0:
            raise ValueError("points_per_wrong must be <= 0")
        if self.reward_per_correct < 0:
            raise ValueError("reward_per_correct must be >= 0")
        if self.penalty_units < 0:
            raise ValueError("penalty_units must be >= 0")


@dataclass(frozen=True, slots=True)
class Evaluation:
    """Scored outcome of one trial's choice.

    ``reward_delta`` is signed: positive units are granted, negative removed.
    """

    correct: bool
    score_delta: int
    feedback_kind: FeedbackKind
    reward_delta: int
    feedback_text: str
    flash_color: FlashColor


def evaluate(
    correct_indices: Collection[int],
    choice: ChoiceResult,
    rule: ScoringRule | None = None,
) -> Evaluation:
    """Score one selection against the expected-correct stimulus set.

    Parameters
    ----------
    correct_indices : Collection[int]
        Stimulus indices that count as correct for this trial.
    choice : ChoiceResult
        Outcome of the choice window.
    rule : ScoringRule | None, optional
        Point constants. Defaults to :class:`ScoringRule`.

    Returns
    -------
    Evaluation
        Correctness, score delta, feedback kind and reward delta.
    """

    scoring = rule if rule is not None else ScoringRule()
    correct = choice.answered and choice.index in correct_indices

    if correct:
        return Evaluation(
            correct=True,
            score_delta=scoring.points_per_correct,
            feedback_kind=FeedbackKind.CORRECT,
            reward_delta=scoring.reward_per_correct,
            feedback_text=f"+{scoring.points_per_correct}",
            flash_color=FlashColor.GREEN,
        )

    kind = FeedbackKind.WRONG if choice.answered else FeedbackKind.TOO_SLOW
    return Evaluation(
        correct=False,
        score_delta=scoring.points_per_wrong,
        feedback_kind=kind,
        reward_delta=-scoring.penalty_units,
        feedback_text="Wrong!" if choice.answered else "Too Slow!",
        flash_color=FlashColor.RED,
    )


def apply_reward(evaluation: Evaluation, meter: RewardMeter, *, origin: Any = None) -> None:
    """Forward the evaluation's reward delta to the reward meter."""

    if evaluation.reward_delta > 0:
        meter.add_reward(evaluation.reward_delta, origin)
    elif evaluation.reward_delta < 0:
        meter.remove_reward(-evaluation.reward_delta)


def success_cue_allowed(evaluation: Evaluation, meter: RewardMeter | None) -> bool:
    """Whether the regular success cue should play for ``evaluation``.

    When the grant just filled the meter, the meter's capacity cue replaces
    the success cue so the participant does not hear two success sounds.
    """

    if not evaluation.correct:
        return False
    return meter is None or not meter.just_reached_capacity()


__all__ = [
    "Evaluation",
    "FeedbackKind",
    "ScoringRule",
    "apply_reward",
    "evaluate",
    "success_cue_allowed",
]
