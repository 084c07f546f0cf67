"""Phase descriptors and the task-variant definition.

A task variant is data: an ordered phase table, a TTL table and a rule that
names the correct stimuli of a trial. One engine runs every variant.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from trialflow.core.events import EventLabel, MarkerEvent, PhaseKind
from trialflow.core.trials import StimulusSet, Trial

DEFAULT_CHOICE_TIMEOUT_S = 10.0
DEFAULT_FEEDBACK_S = 1.0


@dataclass(frozen=True, slots=True)
class PhaseDescriptor:
    """One state of the trial state machine.

    Parameters
    ----------
    kind : PhaseKind
        Phase identity, also its log label.
    duration_s : float
        Nominal duration. For ``CHOICE`` this is the response timeout.
    spawns : bool, optional
        Spawn the phase's stimuli on entry.
    clears : bool, optional
        Clear every stimulus on entry.
    settle_log : bool, optional
        Defer the phase's log entry by the settle delay.
    fixed_stimuli : StimulusSet | None, optional
        Stimuli spawned regardless of the trial (e.g. response buttons).
    """

    kind: PhaseKind
    duration_s: float
    spawns: bool = False
    clears: bool = False
    settle_log: bool = False
    fixed_stimuli: StimulusSet | None = None

    def __post_init__(self) -> None:
        if self.duration_s < 0:
            raise ValueError(f"{self.kind.value} duration_s must be >= 0")
        if self.kind is PhaseKind.CHOICE and self.duration_s <= 0:
            raise ValueError("Choice duration_s (response timeout) must be > 0")

    def stimuli_for(self, trial: Trial) -> StimulusSet:
        if self.fixed_stimuli is not None:
            return self.fixed_stimuli
        return trial.stimuli_for(self.kind)


@dataclass(frozen=True, slots=True)
class TaskSettings:
    """Timing options shared by all variant factories.

    Parameters
    ----------
    durations : Mapping[PhaseKind, float], optional
        Per-phase duration overrides in seconds.
    choice_timeout_s : float, optional
        Maximum response time.
    feedback_s : float, optional
        Duration of the feedback phase.
    choice_y : float, optional
        Vertical offset of fixed response options (match/non-match).
    """

    durations: Mapping[PhaseKind, float] = field(default_factory=dict)
    choice_timeout_s: float = DEFAULT_CHOICE_TIMEOUT_S
    feedback_s: float = DEFAULT_FEEDBACK_S
    choice_y: float = 1.5

    def duration(self, kind: PhaseKind, default: float) -> float:
        return float(self.durations.get(kind, default))


CorrectRule = Callable[[Trial], frozenset[int]]


@dataclass(frozen=True, slots=True)
class OutcomeMarkers:
    """Markers logged after a choice is scored, in logging order.

    The feedback cue is played immediately before ``AudioPlaying`` is
    logged, so each sequence must contain that marker exactly once.

    Parameters
    ----------
    correct : tuple[MarkerEvent, ...], optional
        Markers of a correct choice.
    wrong : tuple[MarkerEvent, ...], optional
        Markers of an incorrect choice.
    timeout : tuple[MarkerEvent, ...], optional
        Markers of a choice window that timed out.
    """

    correct: tuple[MarkerEvent, ...] = (
        MarkerEvent.TARGET_SELECTED,
        MarkerEvent.AUDIO_PLAYING,
        MarkerEvent.SUCCESS,
    )
    wrong: tuple[MarkerEvent, ...] = (
        MarkerEvent.AUDIO_PLAYING,
        MarkerEvent.TARGET_SELECTED,
        MarkerEvent.FAIL,
    )
    timeout: tuple[MarkerEvent, ...] = (
        MarkerEvent.AUDIO_PLAYING,
        MarkerEvent.TIMEOUT,
        MarkerEvent.FAIL,
    )

    def __post_init__(self) -> None:
        for name in ("correct", "wrong", "timeout"):
            markers = tuple(getattr(self, name))
            if markers.count(MarkerEvent.AUDIO_PLAYING) != 1:
                raise ValueError(f"outcome markers {name!r} must contain AudioPlaying exactly once")
            object.__setattr__(self, name, markers)

    def for_outcome(self, *, correct: bool, answered: bool) -> tuple[MarkerEvent, ...]:
        if correct:
            return self.correct
        return self.wrong if answered else self.timeout


@dataclass(frozen=True, slots=True)
class TaskVariant:
    """A complete task definition.

    Parameters
    ----------
    task_id : str
        Registry identifier.
    phases : tuple[PhaseDescriptor, ...]
        Ordered phase table.
    ttl_codes : Mapping[EventLabel, int]
        Label-to-trigger-code table.
    correct_indices : Callable[[Trial], frozenset[int]]
        Expected-correct stimulus indices of a trial.
    outcome_markers : OutcomeMarkers, optional
        Marker order logged during feedback.
    penalize_timeout : bool, optional
        Remove reward units when the choice window times out. When ``False``
        the reward meter only moves for answered trials.
    gate_success_cue : bool, optional
        Suppress the success cue when the grant just filled the reward meter.
    warm_up : bool, optional
        Pre-render every stimulus of the session off-screen before the
        lead-in.

    Raises
    ------
    ValueError
        If the table does not contain exactly one ``CHOICE`` followed later by
        exactly one ``FEEDBACK``, or a phase kind repeats.
    """

    task_id: str
    phases: tuple[PhaseDescriptor, ...]
    ttl_codes: Mapping[EventLabel, int]
    correct_indices: CorrectRule
    outcome_markers: OutcomeMarkers = field(default_factory=OutcomeMarkers)
    penalize_timeout: bool = True
    gate_success_cue: bool = True
    warm_up: bool = False

    def __post_init__(self) -> None:
        kinds = [phase.kind for phase in self.phases]
        if len(set(kinds)) != len(kinds):
            raise ValueError(f"{self.task_id}: phase kinds must be unique")
        if kinds.count(PhaseKind.CHOICE) != 1 or kinds.count(PhaseKind.FEEDBACK) != 1:
            raise ValueError(f"{self.task_id}: exactly one Choice and one Feedback phase are required")
        if kinds.index(PhaseKind.CHOICE) > kinds.index(PhaseKind.FEEDBACK):
            raise ValueError(f"{self.task_id}: Choice must precede Feedback")
        object.__setattr__(self, "ttl_codes", MappingProxyType(dict(self.ttl_codes)))

    def phase(self, kind: PhaseKind) -> PhaseDescriptor:
        for descriptor in self.phases:
            if descriptor.kind is kind:
                return descriptor
        raise KeyError(kind)

    @property
    def choice_timeout_s(self) -> float:
        return self.phase(PhaseKind.CHOICE).duration_s


__all__ = [
    "DEFAULT_CHOICE_TIMEOUT_S",
    "DEFAULT_FEEDBACK_S",
    "CorrectRule",
    "OutcomeMarkers",
    "PhaseDescriptor",
    "TaskSettings",
    "TaskVariant",
]
