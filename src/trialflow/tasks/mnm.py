"""Match / non-match (MNM).

A cue and a sample are shown in turn; the participant then answers with one
of two fixed response buttons: "match" (index 0) or "non-match" (index 1).
"""

from __future__ import annotations

from trialflow.core.events import MarkerEvent, PhaseKind
from trialflow.core.trials import StimulusSet, Trial

from .registry import TaskManifest
from .variant import OutcomeMarkers, PhaseDescriptor, TaskSettings, TaskVariant

MATCH_OPTION = 0
NON_MATCH_OPTION = 1

MNM_TTL_CODES = {
    PhaseKind.FIXATION: 1,
    PhaseKind.CUE_ON: 2,
    PhaseKind.SAMPLE_ON: 3,
    PhaseKind.CHOICE: 4,
    PhaseKind.FEEDBACK: 5,
    MarkerEvent.START_END_BLOCK: 8,
}

# Outcome first, then the cue.
MNM_OUTCOME_MARKERS = OutcomeMarkers(
    correct=(MarkerEvent.SUCCESS, MarkerEvent.AUDIO_PLAYING),
    wrong=(MarkerEvent.FAIL, MarkerEvent.AUDIO_PLAYING),
    timeout=(MarkerEvent.TIMEOUT, MarkerEvent.AUDIO_PLAYING),
)


def mnm_correct_indices(trial: Trial) -> frozenset[int]:
    """``{MATCH_OPTION}`` if the first cue and sample stimuli agree.

    Returns an empty set when the trial lacks a cue or a sample, so no
    answer can be correct.
    """

    cue = trial.stimuli_for(PhaseKind.CUE_ON).indices
    sample = trial.stimuli_for(PhaseKind.SAMPLE_ON).indices
    if not cue or not sample:
        return frozenset()
    return frozenset({MATCH_OPTION if cue[0] == sample[0] else NON_MATCH_OPTION})


def response_options(choice_y: float) -> StimulusSet:
    return StimulusSet(
        indices=(MATCH_OPTION, NON_MATCH_OPTION),
        locations=((0.0, float(choice_y), 0.0), (0.0, -float(choice_y), 0.0)),
    )


def create_mnm_task(settings: TaskSettings | None = None) -> TaskVariant:
    """Build the MNM variant.

    Phases: ``Idle -> Fixation -> CueOn -> CueOff -> Delay1 -> SampleOn ->
    SampleOff -> Delay2 -> Choice -> Feedback -> Reset``. The choice phase
    spawns the two response buttons.

    Unlike DMS and TST, the outcome marker precedes ``AudioPlaying``, a
    timeout leaves the reward meter untouched and the success cue plays even
    when the grant fills the meter.
    """

    s = settings if settings is not None else TaskSettings()
    phases = (
        PhaseDescriptor(PhaseKind.IDLE, s.duration(PhaseKind.IDLE, 2.0)),
        PhaseDescriptor(PhaseKind.FIXATION, s.duration(PhaseKind.FIXATION, 1.0)),
        PhaseDescriptor(PhaseKind.CUE_ON, s.duration(PhaseKind.CUE_ON, 0.5), spawns=True),
        PhaseDescriptor(PhaseKind.CUE_OFF, s.duration(PhaseKind.CUE_OFF, 0.0), clears=True),
        PhaseDescriptor(PhaseKind.DELAY1, s.duration(PhaseKind.DELAY1, 0.25)),
        PhaseDescriptor(PhaseKind.SAMPLE_ON, s.duration(PhaseKind.SAMPLE_ON, 0.5), spawns=True),
        PhaseDescriptor(PhaseKind.SAMPLE_OFF, s.duration(PhaseKind.SAMPLE_OFF, 0.0), clears=True),
        PhaseDescriptor(PhaseKind.DELAY2, s.duration(PhaseKind.DELAY2, 0.25)),
        PhaseDescriptor(
            PhaseKind.CHOICE,
            s.choice_timeout_s,
            spawns=True,
            fixed_stimuli=response_options(s.choice_y),
        ),
        PhaseDescriptor(PhaseKind.FEEDBACK, s.feedback_s),
        PhaseDescriptor(PhaseKind.RESET, s.duration(PhaseKind.RESET, 0.0), clears=True),
    )
    return TaskVariant(
        task_id="mnm",
        phases=phases,
        ttl_codes=MNM_TTL_CODES,
        correct_indices=mnm_correct_indices,
        outcome_markers=MNM_OUTCOME_MARKERS,
        penalize_timeout=False,
        gate_success_cue=False,
    )


TASK_MANIFESTS = (
    TaskManifest(
        task_id="mnm",
        factory=create_mnm_task,
        description="Match / non-match judgement with two response buttons",
    ),
)

__all__ = [
    "MATCH_OPTION",
    "MNM_OUTCOME_MARKERS",
    "MNM_TTL_CODES",
    "NON_MATCH_OPTION",
    "create_mnm_task",
    "mnm_correct_indices",
    "response_options",
]
