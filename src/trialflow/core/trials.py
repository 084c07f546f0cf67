"""Trial records and per-trial results.

Trials are materialized before a session starts and never change afterwards.
Results are appended once per completed trial by the session runner.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .events import PhaseKind, phase_kind_from_name

PRACTICE_TRIAL_ID = "PRACTICE"

Location = tuple[float, ...]


@dataclass(frozen=True, slots=True)
class StimulusSet:
    """Stimulus indices paired with spawn locations for one phase.

    Parameters
    ----------
    indices : tuple[int, ...]
        Stimulus identities to spawn.
    locations : tuple[tuple[float, ...], ...]
        One location per index.

    Raises
    ------
    ValueError
        If both sides are non-empty but differ in length.
    """

    indices: tuple[int, ...] = ()
    locations: tuple[Location, ...] = ()

    def __post_init__(self) -> None:
        if self.indices and self.locations and len(self.indices) != len(self.locations):
            raise ValueError(
                f"stimulus indices ({len(self.indices)}) and locations "
                f"({len(self.locations)}) must have equal length"
            )

    @property
    def is_empty(self) -> bool:
        """Whether this phase spawns nothing."""

        return len(self.indices) == 0 or len(self.locations) == 0


EMPTY_STIMULI = StimulusSet()


@dataclass(frozen=True, slots=True)
class Trial:
    """One trial of a session.

    Parameters
    ----------
    trial_id : str
        Identity written on every log entry of the trial.
    block_count : int
        Block number; non-decreasing along the trial list.
    stimuli : Mapping[PhaseKind, StimulusSet], optional
        Stimulus sets keyed by phase. Missing phases spawn nothing.
    """

    trial_id: str
    block_count: int
    stimuli: Mapping[PhaseKind, StimulusSet] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "stimuli", MappingProxyType(dict(self.stimuli)))

    def stimuli_for(self, kind: PhaseKind) -> StimulusSet:
        """Return the stimulus set for ``kind`` (empty when absent)."""

        return self.stimuli.get(kind, EMPTY_STIMULI)

    @property
    def is_practice(self) -> bool:
        return self.trial_id == PRACTICE_TRIAL_ID


@dataclass(frozen=True, slots=True)
class TrialResult:
    """Outcome of one completed trial.

    ``reaction_time_ms`` equals the choice timeout when no response was given.
    """

    correct: bool
    reaction_time_ms: float


def validate_trial_list(trials: Sequence[Trial]) -> None:
    """Check the ordering contract of a materialized trial list.

    Raises
    ------
    ValueError
        If the list is empty or block numbers decrease.
    """

    if len(trials) == 0:
        raise ValueError("trials must contain at least one trial")
    previous = trials[0].block_count
    for position, trial in enumerate(trials):
        if trial.block_count < previous:
            raise ValueError(
                f"trials[{position}].block_count={trial.block_count} is lower than "
                f"the preceding block {previous}; block numbers must be non-decreasing"
            )
        previous = trial.block_count


def total_blocks(trials: Sequence[Trial]) -> int:
    """Total block count, taken from the last trial (1 for an empty list)."""

    return trials[-1].block_count if trials else 1


def trial_from_mapping(raw: Mapping[str, Any], *, field_name: str = "trial") -> Trial:
    """Build a :class:`Trial` from a plain mapping.

    Expected shape::

        {"trial_id": "T1", "block": 1,
         "stimuli": {"SampleOn": {"indices": [3], "locations": [[0, 0, 0]]}}}
    """

    if not isinstance(raw, Mapping):
        raise ValueError(f"{field_name} must be an object")
    if "trial_id" not in raw:
        raise ValueError(f"{field_name}.trial_id is required")

    stimuli: dict[PhaseKind, StimulusSet] = {}
    raw_stimuli = raw.get("stimuli", {})
    if not isinstance(raw_stimuli, Mapping):
        raise ValueError(f"{field_name}.stimuli must be an object")
    for phase_name, payload in raw_stimuli.items():
        label = f"{field_name}.stimuli.{phase_name}"
        if not isinstance(payload, Mapping):
            raise ValueError(f"{label} must be an object")
        indices = tuple(int(value) for value in payload.get("indices", ()))
        locations = tuple(
            tuple(float(component) for component in location)
            for location in payload.get("locations", ())
        )
        stimuli[phase_kind_from_name(str(phase_name))] = StimulusSet(indices, locations)

    return Trial(
        trial_id=str(raw["trial_id"]),
        block_count=int(raw.get("block", raw.get("block_count", 1))),
        stimuli=stimuli,
    )


__all__ = [
    "EMPTY_STIMULI",
    "Location",
    "PRACTICE_TRIAL_ID",
    "StimulusSet",
    "Trial",
    "TrialResult",
    "total_blocks",
    "trial_from_mapping",
    "validate_trial_list",
]
