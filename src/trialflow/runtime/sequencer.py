"""Trial state machine.

The states are a task variant's ordered phase descriptors. Each phase is
entered in four steps (log, spawn, clear, wait) and left when its wait
completes. ``Choice`` waits on :class:`ChoiceCapture` instead of a plain
timer, and ``Feedback`` scores the choice before its timed wait.
"""

from __future__ import annotations

import logging

from trialflow.core.contracts import FeedbackCue, RewardMeter, SelectionAttempt, StimulusHandle
from trialflow.core.events import MarkerEvent, PhaseKind
from trialflow.core.trials import Trial, TrialResult
from trialflow.tasks.variant import PhaseDescriptor, TaskVariant

from .choice import NO_SELECTION, ChoiceCapture, ChoiceResult
from .context import RunContext
from .flourish import DeferredLogTask, FlashFeedbackTask
from .scoring import Evaluation, apply_reward, evaluate, success_cue_allowed
from .timing import InterruptableTimer

logger = logging.getLogger(__name__)


class TrialSequencer:
    """Drive one trial through its variant's phase table.

    Parameters
    ----------
    variant : TaskVariant
        Phase table, TTL table and correctness rule.
    trial : Trial
        Trial being run.
    context : RunContext
        Session-owned collaborators and shared state.

    Notes
    -----
    Call :meth:`start` once, then :meth:`tick` once per scheduler tick until
    it returns ``True``; :attr:`result` then holds the trial's result.
    """

    def __init__(self, variant: TaskVariant, trial: Trial, context: RunContext) -> None:
        self._variant = variant
        self._trial = trial
        self._ctx = context
        self._position = -1
        self._wait: InterruptableTimer | ChoiceCapture | None = None
        self._handles: list[StimulusHandle] = []
        self._pending_log: DeferredLogTask | None = None
        self._choice: ChoiceResult | None = None
        self._evaluation: Evaluation | None = None
        self._result: TrialResult | None = None

    @property
    def trial(self) -> Trial:
        return self._trial

    @property
    def current_phase(self) -> PhaseDescriptor | None:
        if 0 <= self._position < len(self._variant.phases):
            return self._variant.phases[self._position]
        return None

    @property
    def choice(self) -> ChoiceResult | None:
        return self._choice

    @property
    def evaluation(self) -> Evaluation | None:
        return self._evaluation

    @property
    def result(self) -> TrialResult | None:
        return self._result

    @property
    def finished(self) -> bool:
        return self._result is not None

    def start(self, now: float) -> None:
        if self._position != -1:
            raise RuntimeError(f"trial {self._trial.trial_id} already started")
        self._enter(0, now)

    def tick(self, now: float) -> bool:
        """Advance one tick; return ``True`` once the last phase completed."""

        if self._result is not None:
            return True
        if self._position < 0:
            raise RuntimeError("sequencer must be started before ticking")
        if not self._wait_completed(now):
            return False

        self._leave(self._variant.phases[self._position])
        next_position = self._position + 1
        if next_position >= len(self._variant.phases):
            self._finish()
            return True
        self._enter(next_position, now)
        return False

    def _wait_completed(self, now: float) -> bool:
        wait = self._wait
        if wait is None:
            return True
        if isinstance(wait, ChoiceCapture):
            choice = wait.tick(now)
            if choice is None:
                return False
            self._choice = choice
            return True
        return wait.tick(now)

    def _enter(self, position: int, now: float) -> None:
        self._position = position
        phase = self._variant.phases[position]
        ctx = self._ctx
        logger.debug("trial %s: entering %s", self._trial.trial_id, phase.kind.value)

        if phase.settle_log and ctx.config.settle_ticks > 0:
            ctx.event_logger.notify(self._trial.trial_id, phase.kind)
            self._pending_log = DeferredLogTask(
                ctx.event_logger,
                self._trial.trial_id,
                phase.kind,
                settle_ticks=ctx.config.settle_ticks,
            )
            ctx.spawn(self._pending_log)
        else:
            ctx.event_logger.log_event(self._trial.trial_id, phase.kind)

        if phase.spawns:
            stimuli = phase.stimuli_for(self._trial)
            if not stimuli.is_empty:
                handles = ctx.collaborators.renderer.spawn(stimuli.indices, stimuli.locations)
                self._handles.extend(handles)

        if phase.clears:
            ctx.collaborators.renderer.clear_all()

        if phase.kind is PhaseKind.FEEDBACK:
            self._give_feedback(now)

        if phase.kind is PhaseKind.CHOICE:
            self._wait = ChoiceCapture(
                phase.duration_s,
                ctx.collaborators.selection_source,
                ctx.pause_point,
                on_attempt=self._on_attempt,
            )
        else:
            self._wait = InterruptableTimer(phase.duration_s, ctx.pause_point)
        self._wait.start(now)

    def _leave(self, phase: PhaseDescriptor) -> None:
        # A settle entry must not land after the next phase's entry.
        if self._pending_log is not None:
            self._pending_log.flush()
            self._pending_log = None
        display = self._ctx.collaborators.feedback_display
        if phase.kind is PhaseKind.FEEDBACK and display is not None:
            display.hide_feedback()

    def _on_attempt(self, attempt: SelectionAttempt) -> None:
        del attempt
        self._ctx.event_logger.log_event(self._trial.trial_id, MarkerEvent.CLICKED)

    def _give_feedback(self, now: float) -> None:
        ctx = self._ctx
        collab = ctx.collaborators
        trial_id = self._trial.trial_id
        choice = self._choice
        if choice is None:
            choice = ChoiceResult(NO_SELECTION, self._variant.choice_timeout_s * 1000.0)
            self._choice = choice

        live = [handle for handle in self._handles if handle.is_alive()]
        if len(live) != len(self._handles):
            logger.debug("trial %s: dropped %d stale handles", trial_id, len(self._handles) - len(live))
        self._handles = live

        evaluation = evaluate(self._variant.correct_indices(self._trial), choice, ctx.config.scoring)
        self._evaluation = evaluation

        target = None
        if choice.answered:
            target = next((handle for handle in live if handle.index == choice.index), None)
            if target is None:
                logger.warning("trial %s: selection %d matches no spawned stimulus", trial_id, choice.index)
        if target is not None:
            ctx.spawn(
                FlashFeedbackTask(
                    collab.renderer,
                    target,
                    evaluation.flash_color,
                    interval_s=ctx.config.flash_interval_s,
                    pause_point=ctx.pause_point,
                    now=now,
                )
            )

        meter = collab.reward_meter if ctx.config.use_reward_meter else None
        if meter is not None and (choice.answered or self._variant.penalize_timeout):
            apply_reward(evaluation, meter, origin=choice.origin)

        markers = self._variant.outcome_markers.for_outcome(correct=evaluation.correct, answered=choice.answered)
        for marker in markers:
            if marker is MarkerEvent.AUDIO_PLAYING:
                self._play_outcome_cues(evaluation, meter)
            ctx.event_logger.log_event(trial_id, marker)

        ctx.scoreboard.apply(evaluation)
        if collab.feedback_display is not None:
            collab.feedback_display.show_feedback(evaluation.feedback_text)

    def _play_outcome_cues(self, evaluation: Evaluation, meter: RewardMeter | None) -> None:
        if not evaluation.correct:
            self._play(FeedbackCue.ERROR)
            return
        if meter is not None and meter.just_reached_capacity():
            self._play(FeedbackCue.CAPACITY_REACHED)
        if not self._variant.gate_success_cue or success_cue_allowed(evaluation, meter):
            self._play(FeedbackCue.SUCCESS)

    def _play(self, cue: FeedbackCue) -> None:
        player = self._ctx.collaborators.cue_player
        if player is not None:
            player.play(cue)

    def _finish(self) -> None:
        self._wait = None
        choice = self._choice
        evaluation = self._evaluation
        if choice is None or evaluation is None:
            raise RuntimeError(f"trial {self._trial.trial_id} finished without a scored choice")
        self._result = TrialResult(correct=evaluation.correct, reaction_time_ms=choice.reaction_time_ms)
        logger.debug(
            "trial %s complete: correct=%s rt=%.1f ms",
            self._trial.trial_id,
            evaluation.correct,
            choice.reaction_time_ms,
        )


__all__ = ["TrialSequencer"]
