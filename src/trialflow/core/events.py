"""Closed event vocabulary and log-entry records.

Phase names and ancillary markers are enumerations rather than free-form
strings. Their ``value`` is the label written to the log streams, so TTL
tables can be keyed by enum members while sinks still receive stable text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class PhaseKind(str, Enum):
    """Union of all trial phases used by the built-in task variants."""

    TRIAL_ON = "TrialOn"
    IDLE = "Idle"
    FIXATION = "Fixation"
    CUE_ON = "CueOn"
    CUE_OFF = "CueOff"
    DELAY1 = "Delay1"
    SAMPLE_ON = "SampleOn"
    SAMPLE_OFF = "SampleOff"
    DELAY2 = "Delay2"
    DISTRACTOR_ON = "DistractorOn"
    DISTRACTOR_OFF = "DistractorOff"
    TARGET_ON = "TargetOn"
    CHOICE = "Choice"
    FEEDBACK = "Feedback"
    RESET = "Reset"


class MarkerEvent(str, Enum):
    """Ancillary events logged outside the phase table."""

    START_END_BLOCK = "StartEndBlock"
    ALL_TRIALS_COMPLETE = "AllTrialsComplete"
    CLICKED = "Clicked"
    TARGET_SELECTED = "TargetSelected"
    AUDIO_PLAYING = "AudioPlaying"
    SUCCESS = "Success"
    FAIL = "Fail"
    TIMEOUT = "Timeout"
    WARMUP_FLASH = "WarmupFlash"


EventLabel = Union[PhaseKind, MarkerEvent]


def phase_kind_from_name(name: str) -> PhaseKind:
    """Resolve a phase from its log label (``"SampleOn"``) or member name.

    Raises
    ------
    ValueError
        If ``name`` does not name a known phase.
    """

    for kind in PhaseKind:
        if name == kind.value or name.upper() == kind.name:
            return kind
    known = sorted(kind.value for kind in PhaseKind)
    raise ValueError(f"unknown phase {name!r}; expected one of {known}")


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One row of the unconditional log stream."""

    trial_id: str
    label: str
    detail: str = ""


@dataclass(frozen=True, slots=True)
class TtlEntry:
    """One row of the coded (hardware-trigger) log stream."""

    trial_id: str
    label: str
    code: int


__all__ = [
    "EventLabel",
    "LogEntry",
    "MarkerEvent",
    "PhaseKind",
    "TtlEntry",
    "phase_kind_from_name",
]
