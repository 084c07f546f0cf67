"""Tests for trial records, stimulus sets and the event vocabulary."""

from __future__ import annotations

import pytest

from trialflow.core.events import MarkerEvent, PhaseKind, phase_kind_from_name
from trialflow.core.trials import (
    PRACTICE_TRIAL_ID,
    StimulusSet,
    Trial,
    total_blocks,
    trial_from_mapping,
    validate_trial_list,
)


def test_stimulus_set_rejects_mismatched_lengths() -> None:
    """Indices and locations must pair up when both are given."""

    with pytest.raises(ValueError, match="equal length"):
        StimulusSet(indices=(1, 2), locations=((0.0, 0.0, 0.0),))


def test_stimulus_set_is_empty_when_either_side_is_empty() -> None:
    """A set without locations spawns nothing."""

    assert StimulusSet().is_empty
    assert StimulusSet(indices=(1,), locations=()).is_empty
    assert not StimulusSet(indices=(1,), locations=((0.0, 0.0, 0.0),)).is_empty


def test_trial_returns_empty_stimuli_for_missing_phase() -> None:
    """Phases without an entry fall back to the empty set."""

    trial = Trial("T1", 1, {PhaseKind.SAMPLE_ON: StimulusSet((3,), ((0.0, 0.0, 0.0),))})

    assert trial.stimuli_for(PhaseKind.SAMPLE_ON).indices == (3,)
    assert trial.stimuli_for(PhaseKind.TARGET_ON).is_empty
    with pytest.raises(TypeError):
        trial.stimuli[PhaseKind.TARGET_ON] = StimulusSet()  # type: ignore[index]


def test_practice_trials_are_detected_by_id() -> None:
    """The reserved practice ID marks practice trials."""

    assert Trial(PRACTICE_TRIAL_ID, 1).is_practice
    assert not Trial("T1", 1).is_practice


def test_validate_trial_list_rejects_empty_and_decreasing_blocks() -> None:
    """Trial lists must be non-empty with non-decreasing blocks."""

    with pytest.raises(ValueError, match="at least one trial"):
        validate_trial_list([])
    with pytest.raises(ValueError, match=r"trials\[2\]"):
        validate_trial_list([Trial("a", 1), Trial("b", 2), Trial("c", 1)])

    validate_trial_list([Trial("a", 1), Trial("b", 1), Trial("c", 2)])


def test_total_blocks_uses_last_trial() -> None:
    """Total block count is the last trial's block number."""

    assert total_blocks([Trial("a", 1), Trial("b", 3)]) == 3
    assert total_blocks([]) == 1


def test_trial_from_mapping_parses_stimuli_by_phase_label_or_name() -> None:
    """Stimulus keys accept log labels and enum member names."""

    trial = trial_from_mapping(
        {
            "trial_id": "T7",
            "block": 2,
            "stimuli": {
                "SampleOn": {"indices": [3], "locations": [[0, 1, 2]]},
                "TARGET_ON": {"indices": [3, 5], "locations": [[0, 0, 0], [1, 0, 0]]},
            },
        }
    )

    assert trial.trial_id == "T7"
    assert trial.block_count == 2
    assert trial.stimuli_for(PhaseKind.SAMPLE_ON).locations == ((0.0, 1.0, 2.0),)
    assert trial.stimuli_for(PhaseKind.TARGET_ON).indices == (3, 5)


def test_trial_from_mapping_reports_field_path() -> None:
    """Parse errors name the offending field."""

    with pytest.raises(ValueError, match=r"trials\[0\]\.trial_id is required"):
        trial_from_mapping({"block": 1}, field_name="trials[0]")
    with pytest.raises(ValueError, match="unknown phase"):
        trial_from_mapping({"trial_id": "x", "stimuli": {"Nope": {}}})


def test_enum_values_are_log_labels() -> None:
    """Enum values are the labels written to the log streams."""

    assert PhaseKind.SAMPLE_ON.value == "SampleOn"
    assert MarkerEvent.START_END_BLOCK.value == "StartEndBlock"
    assert phase_kind_from_name("Choice") is PhaseKind.CHOICE
    assert phase_kind_from_name("DELAY1") is PhaseKind.DELAY1
