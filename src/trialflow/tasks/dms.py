"""Delayed match-to-sample (DMS).

A sample is shown, then a distractor, then a target array. Selecting any
stimulus that appeared as the sample is correct.
"""

from __future__ import annotations

from trialflow.core.events import MarkerEvent, PhaseKind
from trialflow.core.trials import Trial

from .registry import TaskManifest
from .variant import PhaseDescriptor, TaskSettings, TaskVariant

DMS_TTL_CODES = {
    PhaseKind.TRIAL_ON: 1,
    PhaseKind.SAMPLE_ON: 2,
    PhaseKind.SAMPLE_OFF: 3,
    PhaseKind.DISTRACTOR_ON: 4,
    PhaseKind.DISTRACTOR_OFF: 5,
    PhaseKind.TARGET_ON: 6,
    PhaseKind.CHOICE: 7,
    MarkerEvent.START_END_BLOCK: 8,
}


def dms_correct_indices(trial: Trial) -> frozenset[int]:
    return frozenset(trial.stimuli_for(PhaseKind.SAMPLE_ON).indices)


def create_dms_task(settings: TaskSettings | None = None) -> TaskVariant:
    """Build the DMS variant.

    Parameters
    ----------
    settings : TaskSettings | None, optional
        Duration overrides and choice/feedback timing.

    Returns
    -------
    TaskVariant
        Variant with phases ``TrialOn -> SampleOn -> SampleOff ->
        DistractorOn -> DistractorOff -> TargetOn -> Choice -> Feedback ->
        Reset``.
    """

    s = settings if settings is not None else TaskSettings()
    phases = (
        PhaseDescriptor(PhaseKind.TRIAL_ON, s.duration(PhaseKind.TRIAL_ON, 2.0)),
        PhaseDescriptor(PhaseKind.SAMPLE_ON, s.duration(PhaseKind.SAMPLE_ON, 0.5), spawns=True, settle_log=True),
        PhaseDescriptor(PhaseKind.SAMPLE_OFF, s.duration(PhaseKind.SAMPLE_OFF, 0.5), clears=True),
        PhaseDescriptor(
            PhaseKind.DISTRACTOR_ON,
            s.duration(PhaseKind.DISTRACTOR_ON, 0.5),
            spawns=True,
            settle_log=True,
        ),
        PhaseDescriptor(PhaseKind.DISTRACTOR_OFF, s.duration(PhaseKind.DISTRACTOR_OFF, 2.0), clears=True),
        PhaseDescriptor(PhaseKind.TARGET_ON, s.duration(PhaseKind.TARGET_ON, 0.1), spawns=True, settle_log=True),
        PhaseDescriptor(PhaseKind.CHOICE, s.choice_timeout_s),
        PhaseDescriptor(PhaseKind.FEEDBACK, s.feedback_s),
        PhaseDescriptor(PhaseKind.RESET, s.duration(PhaseKind.RESET, 0.0), clears=True),
    )
    return TaskVariant(
        task_id="dms",
        phases=phases,
        ttl_codes=DMS_TTL_CODES,
        correct_indices=dms_correct_indices,
        warm_up=True,
    )


TASK_MANIFESTS = (
    TaskManifest(
        task_id="dms",
        factory=create_dms_task,
        description="Delayed match-to-sample with a distractor interval",
    ),
)

__all__ = ["DMS_TTL_CODES", "create_dms_task", "dms_correct_indices"]
