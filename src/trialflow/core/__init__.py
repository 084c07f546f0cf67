"""Core data model, event vocabulary and collaborator contracts."""

from .config_loading import SUPPORTED_CONFIG_SUFFIXES, check_keys, load_config_mapping, require_mapping
from .contracts import (
    END_OF_SESSION_BLOCK,
    CuePlayer,
    EventListener,
    FeedbackCue,
    FeedbackDisplay,
    FlashColor,
    LogSink,
    OverlayHandle,
    OverlayTag,
    PauseOverlay,
    Renderer,
    RewardMeter,
    SelectionAttempt,
    SelectionSource,
    StimulusHandle,
)
from .events import EventLabel, LogEntry, MarkerEvent, PhaseKind, TtlEntry, phase_kind_from_name
from .trials import (
    EMPTY_STIMULI,
    PRACTICE_TRIAL_ID,
    StimulusSet,
    Trial,
    TrialResult,
    total_blocks,
    trial_from_mapping,
    validate_trial_list,
)

__all__ = [
    "CuePlayer",
    "EMPTY_STIMULI",
    "END_OF_SESSION_BLOCK",
    "EventLabel",
    "EventListener",
    "FeedbackCue",
    "FeedbackDisplay",
    "FlashColor",
    "LogEntry",
    "LogSink",
    "MarkerEvent",
    "OverlayHandle",
    "OverlayTag",
    "PRACTICE_TRIAL_ID",
    "PauseOverlay",
    "PhaseKind",
    "Renderer",
    "RewardMeter",
    "SUPPORTED_CONFIG_SUFFIXES",
    "SelectionAttempt",
    "SelectionSource",
    "StimulusHandle",
    "StimulusSet",
    "Trial",
    "TrialResult",
    "TtlEntry",
    "check_keys",
    "load_config_mapping",
    "phase_kind_from_name",
    "require_mapping",
    "total_blocks",
    "trial_from_mapping",
    "validate_trial_list",
]
