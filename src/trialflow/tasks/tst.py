"""Target selection (TST).

Sample and distractor arrays appear back to back; the participant picks a
target from the distractor array.
"""

from __future__ import annotations

from trialflow.core.events import MarkerEvent, PhaseKind
from trialflow.core.trials import Trial

from .registry import TaskManifest
from .variant import PhaseDescriptor, TaskSettings, TaskVariant

TST_TTL_CODES = {MarkerEvent.START_END_BLOCK: 8}


def tst_correct_indices(trial: Trial) -> frozenset[int]:
    return frozenset(trial.stimuli_for(PhaseKind.DISTRACTOR_ON).indices)


def create_tst_task(settings: TaskSettings | None = None) -> TaskVariant:
    """Build the TST variant: ``SampleOn -> DistractorOn -> Choice -> Feedback``."""

    s = settings if settings is not None else TaskSettings()
    phases = (
        PhaseDescriptor(PhaseKind.SAMPLE_ON, s.duration(PhaseKind.SAMPLE_ON, 1.0), spawns=True),
        PhaseDescriptor(PhaseKind.DISTRACTOR_ON, s.duration(PhaseKind.DISTRACTOR_ON, 0.0), spawns=True),
        PhaseDescriptor(PhaseKind.CHOICE, s.choice_timeout_s),
        PhaseDescriptor(PhaseKind.FEEDBACK, s.feedback_s),
    )
    return TaskVariant(
        task_id="tst",
        phases=phases,
        ttl_codes=TST_TTL_CODES,
        correct_indices=tst_correct_indices,
    )


TASK_MANIFESTS = (
    TaskManifest(
        task_id="tst",
        factory=create_tst_task,
        description="Target selection from a distractor array",
    ),
)

__all__ = ["TST_TTL_CODES", "create_tst_task", "tst_correct_indices"]
