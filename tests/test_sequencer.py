"""Tests for the trial state machine."""

from __future__ import annotations

import logging

import pytest

from trialflow.core.contracts import FeedbackCue, FlashColor, SelectionAttempt
from trialflow.core.events import PhaseKind
from trialflow.core.trials import StimulusSet, Trial
from trialflow.runtime.config import EngineConfig
from trialflow.runtime.context import Collaborators, RunContext, Scoreboard
from trialflow.runtime.event_log import EventLogger, InMemoryLogSink
from trialflow.runtime.flourish import DeferredLogTask, FlashFeedbackTask
from trialflow.runtime.pause import PausePoint, PauseState
from trialflow.runtime.scheduler import TickScheduler
from trialflow.runtime.sequencer import TrialSequencer
from trialflow.simulation import CountingRewardMeter, HeadlessRenderer, VirtualClock
from trialflow.tasks import DMS_TTL_CODES, TaskSettings, create_dms_task, create_mnm_task
from trialflow.tasks.mnm import MATCH_OPTION, NON_MATCH_OPTION

_ORIGIN = (0.0, 0.0, 0.0)


class _ChoiceAt:
    """Selection source answering ``target`` on every poll (``None`` = never)."""

    def __init__(self, target: int | None) -> None:
        self.target = target

    def poll_selection(self) -> SelectionAttempt | None:
        if self.target is None:
            return None
        return SelectionAttempt(target=self.target)


class _Cues:
    def __init__(self) -> None:
        self.played: list[FeedbackCue] = []

    def play(self, cue: FeedbackCue) -> None:
        self.played.append(cue)


class _Heard:
    """Listener collecting notified labels."""

    def __init__(self) -> None:
        self.labels: list[str] = []

    def on_log_event(self, trial_id: str, label: str) -> None:
        self.labels.append(label)


class _Display:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def show_score(self, score: int) -> None:
        self.calls.append(("score", score))

    def show_feedback(self, text: str) -> None:
        self.calls.append(("feedback", text))

    def hide_feedback(self) -> None:
        self.calls.append(("hide", None))


def _dms_trial() -> Trial:
    return Trial(
        "T1",
        1,
        {
            PhaseKind.SAMPLE_ON: StimulusSet((3,), (_ORIGIN,)),
            PhaseKind.DISTRACTOR_ON: StimulusSet((7,), (_ORIGIN,)),
            PhaseKind.TARGET_ON: StimulusSet((3, 5), (_ORIGIN, (1.0, 0.0, 0.0))),
        },
    )


def _context(collaborators: Collaborators, spawned: list, **config_kwargs) -> RunContext:
    config = EngineConfig(**{"settle_ticks": 0, **config_kwargs})
    return RunContext(
        collaborators=collaborators,
        config=config,
        pause_point=PausePoint(PauseState(), collaborators.pause_overlay),
        event_logger=EventLogger(collaborators.log_sink, {}, collaborators.listeners),
        scoreboard=Scoreboard(collaborators.feedback_display),
        spawn=spawned.append,
    )


def _drive(sequencer: TrialSequencer, step: float = 0.25, limit: int = 10000) -> float:
    now = 0.0
    sequencer.start(now)
    for _ in range(limit):
        now += step
        if sequencer.tick(now):
            return now
    raise AssertionError("trial did not finish")


def test_correct_dms_trial_logs_phases_and_markers_in_order() -> None:
    """A correct choice logs every phase plus the success markers."""

    sink = InMemoryLogSink()
    cues, display = _Cues(), _Display()
    collaborators = Collaborators(
        renderer=HeadlessRenderer(),
        selection_source=_ChoiceAt(3),
        log_sink=sink,
        cue_player=cues,
        feedback_display=display,
        reward_meter=CountingRewardMeter(capacity=10),
    )
    spawned: list = []
    sequencer = TrialSequencer(create_dms_task(), _dms_trial(), _context(collaborators, spawned))

    _drive(sequencer)

    assert sink.labels() == [
        "TrialOn",
        "SampleOn",
        "SampleOff",
        "DistractorOn",
        "DistractorOff",
        "TargetOn",
        "Choice",
        "Clicked",
        "Feedback",
        "TargetSelected",
        "AudioPlaying",
        "Success",
        "Reset",
    ]
    assert sequencer.result is not None
    assert sequencer.result.correct
    assert sequencer.result.reaction_time_ms == pytest.approx(250.0)
    assert cues.played == [FeedbackCue.SUCCESS]
    assert display.calls == [("score", 0), ("score", 2), ("feedback", "+2"), ("hide", None)]
    assert [type(task) for task in spawned] == [FlashFeedbackTask]
    assert collaborators.reward_meter.units == 2


def test_wrong_and_timeout_marker_orders() -> None:
    """Wrong and timed-out choices log AudioPlaying before their outcome."""

    variant = create_dms_task(TaskSettings(choice_timeout_s=1.0))

    wrong_sink = InMemoryLogSink()
    wrong = TrialSequencer(
        variant,
        _dms_trial(),
        _context(Collaborators(HeadlessRenderer(), _ChoiceAt(5), wrong_sink), []),
    )
    _drive(wrong)

    slow_sink = InMemoryLogSink()
    slow = TrialSequencer(
        variant,
        _dms_trial(),
        _context(Collaborators(HeadlessRenderer(), _ChoiceAt(None), slow_sink), []),
    )
    _drive(slow)

    assert wrong_sink.labels()[-5:] == ["Feedback", "AudioPlaying", "TargetSelected", "Fail", "Reset"]
    assert slow_sink.labels()[-5:] == ["Feedback", "AudioPlaying", "Timeout", "Fail", "Reset"]
    assert "Clicked" not in slow_sink.labels()
    assert slow.result is not None
    assert (slow.result.correct, slow.result.reaction_time_ms) == (False, 1000.0)
    assert wrong.evaluation is not None and wrong.evaluation.feedback_text == "Wrong!"


def test_capacity_cue_replaces_success_cue() -> None:
    """A grant that fills the meter plays only the capacity cue."""

    cues = _Cues()
    meter = CountingRewardMeter(capacity=2)
    collaborators = Collaborators(
        HeadlessRenderer(),
        _ChoiceAt(3),
        InMemoryLogSink(),
        reward_meter=meter,
        cue_player=cues,
    )

    _drive(TrialSequencer(create_dms_task(), _dms_trial(), _context(collaborators, [])))

    assert cues.played == [FeedbackCue.CAPACITY_REACHED]
    assert meter.times_filled == 1


def test_reward_meter_can_be_disabled() -> None:
    """With the meter disabled the success cue plays and no units move."""

    cues = _Cues()
    meter = CountingRewardMeter(capacity=2)
    collaborators = Collaborators(
        HeadlessRenderer(),
        _ChoiceAt(3),
        InMemoryLogSink(),
        reward_meter=meter,
        cue_player=cues,
    )

    _drive(TrialSequencer(create_dms_task(), _dms_trial(), _context(collaborators, [], use_reward_meter=False)))

    assert cues.played == [FeedbackCue.SUCCESS]
    assert meter.units == 0


def test_selection_of_cleared_stimulus_is_scored_without_flash(caplog) -> None:
    """A selection without a live handle is still scored by index."""

    spawned: list = []
    collaborators = Collaborators(HeadlessRenderer(), _ChoiceAt(7), InMemoryLogSink())
    sequencer = TrialSequencer(create_dms_task(), _dms_trial(), _context(collaborators, spawned))

    with caplog.at_level(logging.WARNING, logger="trialflow.runtime.sequencer"):
        _drive(sequencer)

    assert sequencer.evaluation is not None
    assert not sequencer.evaluation.correct
    assert spawned == []
    assert "matches no spawned stimulus" in caplog.text


def test_renderer_spawns_and_clears_per_phase_flags() -> None:
    """Spawn-flagged phases spawn their stimuli and clear-flagged ones clear."""

    renderer = HeadlessRenderer()
    spawned: list = []
    collaborators = Collaborators(renderer, _ChoiceAt(3), InMemoryLogSink())

    _drive(TrialSequencer(create_dms_task(), _dms_trial(), _context(collaborators, spawned)))

    calls = [call for call in renderer.history if call[0] != "highlight"]
    assert calls == [
        ("spawn", (3,)),
        ("clear", None),
        ("spawn", (7,)),
        ("clear", None),
        ("spawn", (3, 5)),
        ("clear", None),
    ]
    assert ("highlight", (3, FlashColor.GREEN)) in renderer.history


def test_settle_phases_defer_their_log_entry() -> None:
    """Settle-flagged phases notify listeners now and record after the settle ticks."""

    sink = InMemoryLogSink()
    heard = _Heard()
    spawned: list = []
    collaborators = Collaborators(HeadlessRenderer(), _ChoiceAt(3), sink, listeners=(heard,))
    sequencer = TrialSequencer(
        create_dms_task(),
        _dms_trial(),
        _context(collaborators, spawned, settle_ticks=2),
    )

    sequencer.start(0.0)
    sequencer.tick(2.0)

    assert heard.labels == ["TrialOn", "SampleOn"]
    assert sink.labels() == ["TrialOn"]
    (task,) = spawned
    assert isinstance(task, DeferredLogTask)
    assert not task.tick(2.25)
    assert sink.labels() == ["TrialOn"]
    assert task.tick(2.5)
    assert sink.labels() == ["TrialOn", "SampleOn"]


def test_pending_settle_entry_is_recorded_when_its_phase_ends() -> None:
    """A zero-length settle phase still records its entry before the next phase's."""

    clock = VirtualClock()
    scheduler = TickScheduler(clock=clock, sleep=clock.sleep, tick_rate_hz=4.0)
    sink = InMemoryLogSink()
    collaborators = Collaborators(HeadlessRenderer(), _ChoiceAt(3), sink)
    context = RunContext(
        collaborators=collaborators,
        config=EngineConfig(settle_ticks=2),
        pause_point=PausePoint(PauseState()),
        event_logger=EventLogger(sink, DMS_TTL_CODES),
        scoreboard=Scoreboard(),
        spawn=scheduler.spawn,
    )
    variant = create_dms_task(TaskSettings(durations={PhaseKind.TARGET_ON: 0.0}))

    scheduler.run(TrialSequencer(variant, _dms_trial(), context), max_ticks=1000)

    labels = sink.labels()
    assert labels.index("TargetOn") < labels.index("Choice")
    assert [labels.count(label) for label in ("SampleOn", "DistractorOn", "TargetOn")] == [1, 1, 1]
    ttl_labels = [entry.label for entry in sink.ttl_entries]
    assert ttl_labels.index("TargetOn") == ttl_labels.index("Choice") - 1


def test_mnm_trial_spawns_fixed_response_options() -> None:
    """MNM shows match/non-match buttons and scores the button index."""

    renderer = HeadlessRenderer()
    trial = Trial(
        "M1",
        1,
        {
            PhaseKind.CUE_ON: StimulusSet((4,), (_ORIGIN,)),
            PhaseKind.SAMPLE_ON: StimulusSet((4,), (_ORIGIN,)),
        },
    )
    collaborators = Collaborators(renderer, _ChoiceAt(MATCH_OPTION), InMemoryLogSink())
    sequencer = TrialSequencer(create_mnm_task(), trial, _context(collaborators, []))

    _drive(sequencer)

    assert ("spawn", (MATCH_OPTION, NON_MATCH_OPTION)) in renderer.history
    assert sequencer.result is not None and sequencer.result.correct


def _mnm_trial() -> Trial:
    return Trial(
        "M1",
        1,
        {
            PhaseKind.CUE_ON: StimulusSet((4,), (_ORIGIN,)),
            PhaseKind.SAMPLE_ON: StimulusSet((4,), (_ORIGIN,)),
        },
    )


def _mnm_run(target: int | None, meter: CountingRewardMeter) -> tuple[InMemoryLogSink, _Cues]:
    sink, cues = InMemoryLogSink(), _Cues()
    collaborators = Collaborators(
        HeadlessRenderer(),
        _ChoiceAt(target),
        sink,
        reward_meter=meter,
        cue_player=cues,
    )
    variant = create_mnm_task(TaskSettings(choice_timeout_s=1.0))
    _drive(TrialSequencer(variant, _mnm_trial(), _context(collaborators, [])))
    return sink, cues


def test_mnm_logs_outcome_before_audio_marker() -> None:
    """MNM logs Success/Fail/Timeout first and AudioPlaying after the cue."""

    correct_sink, _ = _mnm_run(MATCH_OPTION, CountingRewardMeter(capacity=10))
    wrong_sink, wrong_cues = _mnm_run(NON_MATCH_OPTION, CountingRewardMeter(capacity=10))
    slow_sink, slow_cues = _mnm_run(None, CountingRewardMeter(capacity=10))

    assert correct_sink.labels()[-4:] == ["Feedback", "Success", "AudioPlaying", "Reset"]
    assert wrong_sink.labels()[-4:] == ["Feedback", "Fail", "AudioPlaying", "Reset"]
    assert slow_sink.labels()[-4:] == ["Feedback", "Timeout", "AudioPlaying", "Reset"]
    assert "TargetSelected" not in correct_sink.labels() + wrong_sink.labels()
    assert wrong_cues.played == slow_cues.played == [FeedbackCue.ERROR]


def test_mnm_timeout_leaves_reward_meter_untouched() -> None:
    """Only answered MNM trials move the reward meter."""

    timed_out = CountingRewardMeter(capacity=10)
    timed_out.add_reward(4)
    answered_wrong = CountingRewardMeter(capacity=10)
    answered_wrong.add_reward(4)

    _mnm_run(None, timed_out)
    _mnm_run(NON_MATCH_OPTION, answered_wrong)

    assert timed_out.units == 4
    assert answered_wrong.units == 3


def test_dms_timeout_removes_reward_units() -> None:
    """DMS penalises a timeout like a wrong answer."""

    meter = CountingRewardMeter(capacity=10)
    meter.add_reward(4)
    collaborators = Collaborators(HeadlessRenderer(), _ChoiceAt(None), InMemoryLogSink(), reward_meter=meter)
    variant = create_dms_task(TaskSettings(choice_timeout_s=1.0))

    _drive(TrialSequencer(variant, _dms_trial(), _context(collaborators, [])))

    assert meter.units == 3


def test_mnm_success_cue_plays_even_when_meter_fills() -> None:
    """MNM plays the capacity cue and still plays the success cue."""

    meter = CountingRewardMeter(capacity=2)

    _, cues = _mnm_run(MATCH_OPTION, meter)

    assert cues.played == [FeedbackCue.CAPACITY_REACHED, FeedbackCue.SUCCESS]
    assert meter.times_filled == 1


def test_sequencer_must_be_started_once() -> None:
    """Ticking before start and starting twice are errors."""

    collaborators = Collaborators(HeadlessRenderer(), _ChoiceAt(3), InMemoryLogSink())
    sequencer = TrialSequencer(create_dms_task(), _dms_trial(), _context(collaborators, []))

    with pytest.raises(RuntimeError, match="started before ticking"):
        sequencer.tick(0.0)
    sequencer.start(0.0)
    with pytest.raises(RuntimeError, match="already started"):
        sequencer.start(0.0)
