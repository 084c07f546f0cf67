"""Block and session progression.

The session runner walks the trial list one trial at a time, interposes the
block overlay at block boundaries and closes the session with the
end-of-session overlay.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from trialflow.analysis.summary import SessionSummary, TrialDetail, summarize_results, trial_details
from trialflow.core.contracts import END_OF_SESSION_BLOCK, OverlayHandle, OverlayTag
from trialflow.core.events import MarkerEvent
from trialflow.core.trials import Location, Trial, TrialResult, total_blocks, validate_trial_list
from trialflow.tasks.variant import TaskVariant

from .config import EngineConfig
from .context import Collaborators, RunContext, Scoreboard
from .event_log import EventLogger
from .flourish import TaskSpawner
from .pause import PausePoint, PauseState
from .sequencer import TrialSequencer
from .timing import InterruptableTimer

logger = logging.getLogger(__name__)

WARM_UP_HOLD_S = 0.05
WARM_UP_REST_S = 0.1


class SessionStage(str, Enum):
    NOT_STARTED = "not_started"
    WARM_UP = "warm_up"
    LEAD_IN = "lead_in"
    TRIAL = "trial"
    BLOCK_BREAK = "block_break"
    END_OVERLAY = "end_overlay"
    FINISHED = "finished"


class SessionRunner:
    """Run every trial of a session in order.

    Parameters
    ----------
    variant : TaskVariant
        Task variant shared by all trials.
    trials : Sequence[Trial]
        Fully materialized trial list.
    collaborators : Collaborators
        External collaborators.
    spawn : TaskSpawner
        Starts fire-and-forget background tasks (normally
        :meth:`TickScheduler.spawn`).
    config : EngineConfig | None, optional
        Engine options. Defaults to :class:`EngineConfig`.

    Raises
    ------
    ValueError
        If the trial list is empty or its block numbers decrease.

    Notes
    -----
    Block-boundary markers are attributed explicitly: the first one to the
    trial that just finished, the second (after the overlay) to the trial
    that is about to start.

    Variants with ``warm_up`` set pre-render every stimulus of the session
    off-screen before the lead-in. ``WarmupFlash`` is sent to listeners only
    and never reaches the log sink.
    """

    def __init__(
        self,
        variant: TaskVariant,
        trials: Sequence[Trial],
        collaborators: Collaborators,
        *,
        spawn: TaskSpawner,
        config: EngineConfig | None = None,
    ) -> None:
        validate_trial_list(trials)
        self._variant = variant
        self._trials = tuple(trials)
        self._total_blocks = total_blocks(self._trials)
        self._collab = collaborators
        self._config = config if config is not None else EngineConfig(task=variant.task_id)

        self.pause_state = PauseState()
        self.event_logger = EventLogger(collaborators.log_sink, variant.ttl_codes, collaborators.listeners)
        self.scoreboard = Scoreboard(collaborators.feedback_display)
        self._context = RunContext(
            collaborators=collaborators,
            config=self._config,
            pause_point=PausePoint(self.pause_state, collaborators.pause_overlay),
            event_logger=self.event_logger,
            scoreboard=self.scoreboard,
            spawn=spawn,
        )

        self._stage = SessionStage.NOT_STARTED
        self._index = 0
        self._overlay: OverlayHandle | None = None
        self._sequencer: TrialSequencer | None = None
        self._results: list[TrialResult] = []
        self._warm_up_ticks = 0
        self._warm_up_timer: InterruptableTimer | None = None
        self._warm_up_cleared = False

    @property
    def stage(self) -> SessionStage:
        return self._stage

    @property
    def finished(self) -> bool:
        return self._stage is SessionStage.FINISHED

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_trial(self) -> Trial:
        return self._trials[self._index]

    @property
    def sequencer(self) -> TrialSequencer | None:
        return self._sequencer

    @property
    def total_blocks(self) -> int:
        return self._total_blocks

    @property
    def score(self) -> int:
        return self.scoreboard.score

    @property
    def results(self) -> tuple[TrialResult, ...]:
        return tuple(self._results)

    def request_pause(self) -> bool:
        """Ask the running wait to pause at its next tick."""

        return self.pause_state.request()

    def summary(self) -> SessionSummary:
        return summarize_results(self._results)

    def trial_details(self) -> tuple[TrialDetail, ...]:
        return trial_details(self._results)

    def start(self, now: float) -> None:
        """Warm up the renderer if the variant asks for it, then open the lead-in."""

        if self._stage is not SessionStage.NOT_STARTED:
            raise RuntimeError("session already started")
        logger.info(
            "session start: task=%s trials=%d blocks=%d",
            self._variant.task_id,
            len(self._trials),
            self._total_blocks,
        )
        indices = self.warm_up_indices() if self._variant.warm_up else ()
        if not indices:
            self._open_lead_in(now)
            return

        locations: list[Location] = [(position * 1000.0, 1000.0, 0.0) for position in range(len(indices))]
        self._collab.renderer.spawn(indices, locations)
        self._warm_up_ticks = max(1, self._config.settle_ticks)
        self._stage = SessionStage.WARM_UP
        logger.debug("warm-up: pre-rendering %d stimuli off-screen", len(indices))

    def warm_up_indices(self) -> tuple[int, ...]:
        """Sorted union of every stimulus index the session can spawn."""

        used: set[int] = set()
        for trial in self._trials:
            for stimuli in trial.stimuli.values():
                used.update(stimuli.indices)
        for phase in self._variant.phases:
            if phase.fixed_stimuli is not None:
                used.update(phase.fixed_stimuli.indices)
        return tuple(sorted(used))

    def _open_lead_in(self, now: float) -> None:
        overlay = self._collab.pause_overlay
        if overlay is None:
            self._begin_trials(now)
            return

        first = self._trials[0]
        if first.is_practice:
            self._overlay = overlay.show_tag(OverlayTag.PRACTICE)
        else:
            self._overlay = overlay.show_block(first.block_count, self._total_blocks)
        self._stage = SessionStage.LEAD_IN

    def tick(self, now: float) -> bool:
        """Advance one tick; return ``True`` once the session is over."""

        stage = self._stage
        if stage is SessionStage.NOT_STARTED:
            raise RuntimeError("session must be started before ticking")
        if stage is SessionStage.FINISHED:
            return True

        if stage is SessionStage.TRIAL:
            assert self._sequencer is not None
            if self._sequencer.tick(now):
                self._complete_trial(now)
            return self.finished

        if stage is SessionStage.WARM_UP:
            self._tick_warm_up(now)
            return False

        if not self._overlay_dismissed():
            return False
        if stage is SessionStage.LEAD_IN:
            self._begin_trials(now)
        elif stage is SessionStage.BLOCK_BREAK:
            self._log(self._index + 1, MarkerEvent.START_END_BLOCK)
            self._advance(now)
        else:
            self._stage = SessionStage.FINISHED
            logger.info("session finished: score=%d", self.score)
        return self.finished

    def _tick_warm_up(self, now: float) -> None:
        # Render for settle ticks, flash, hold, clear, rest.
        if self._warm_up_timer is None:
            self._warm_up_ticks -= 1
            if self._warm_up_ticks > 0:
                return
            self.event_logger.notify(self._trials[0].trial_id, MarkerEvent.WARMUP_FLASH)
            self._start_warm_up_timer(WARM_UP_HOLD_S, now)
            return
        if not self._warm_up_timer.tick(now):
            return
        if not self._warm_up_cleared:
            self._collab.renderer.clear_all()
            self._warm_up_cleared = True
            self._start_warm_up_timer(WARM_UP_REST_S, now)
            return
        self._warm_up_timer = None
        self._open_lead_in(now)

    def _start_warm_up_timer(self, duration_s: float, now: float) -> None:
        self._warm_up_timer = InterruptableTimer(duration_s, self._context.pause_point.observer())
        self._warm_up_timer.start(now)

    def _overlay_dismissed(self) -> bool:
        if self._overlay is not None and not self._overlay.is_dismissed():
            return False
        self._overlay = None
        return True

    def _log(self, index: int, label: MarkerEvent) -> None:
        self.event_logger.log_event(self._trials[index].trial_id, label)

    def _begin_trials(self, now: float) -> None:
        self._log(0, MarkerEvent.START_END_BLOCK)
        self._start_trial(0, now)

    def _start_trial(self, index: int, now: float) -> None:
        self._index = index
        self._stage = SessionStage.TRIAL
        self._sequencer = TrialSequencer(self._variant, self._trials[index], self._context)
        self._sequencer.start(now)

    def _advance(self, now: float) -> None:
        self._start_trial(self._index + 1, now)

    def _complete_trial(self, now: float) -> None:
        assert self._sequencer is not None and self._sequencer.result is not None
        self._results.append(self._sequencer.result)

        trial = self._trials[self._index]
        next_index = self._index + 1
        if next_index >= len(self._trials):
            self._finish_session()
            return

        upcoming = self._trials[next_index]
        if self._config.pause_between_blocks and upcoming.block_count != trial.block_count:
            self._log(self._index, MarkerEvent.START_END_BLOCK)
            logger.info(
                "block %d complete; next block %d of %d",
                trial.block_count,
                upcoming.block_count,
                self._total_blocks,
            )
            overlay = self._collab.pause_overlay
            if overlay is not None:
                self._overlay = overlay.show_block(upcoming.block_count, self._total_blocks)
                self._stage = SessionStage.BLOCK_BREAK
                return
            self._log(next_index, MarkerEvent.START_END_BLOCK)
        self._advance(now)

    def _finish_session(self) -> None:
        self._log(self._index, MarkerEvent.START_END_BLOCK)
        self._log(self._index, MarkerEvent.ALL_TRIALS_COMPLETE)
        logger.info("all %d trials complete", len(self._trials))
        overlay = self._collab.pause_overlay
        if overlay is None:
            self._stage = SessionStage.FINISHED
            logger.info("session finished: score=%d", self.score)
            return
        self._overlay = overlay.show_block(END_OF_SESSION_BLOCK, self._total_blocks)
        self._stage = SessionStage.END_OVERLAY


__all__ = ["SessionRunner", "SessionStage"]
