"""Built-in task variants.

Each module defines a factory returning a
:class:`~trialflow.tasks.variant.TaskVariant` and a ``TASK_MANIFESTS``
constant picked up by :func:`~trialflow.tasks.registry.build_default_registry`.
"""

from .dms import DMS_TTL_CODES, create_dms_task, dms_correct_indices
from .mnm import (
    MATCH_OPTION,
    MNM_TTL_CODES,
    NON_MATCH_OPTION,
    create_mnm_task,
    mnm_correct_indices,
    response_options,
)
from .registry import TaskManifest, TaskRegistry, build_default_registry
from .tst import TST_TTL_CODES, create_tst_task, tst_correct_indices
from .variant import (
    DEFAULT_CHOICE_TIMEOUT_S,
    DEFAULT_FEEDBACK_S,
    OutcomeMarkers,
    PhaseDescriptor,
    TaskSettings,
    TaskVariant,
)

__all__ = [
    "DEFAULT_CHOICE_TIMEOUT_S",
    "DEFAULT_FEEDBACK_S",
    "DMS_TTL_CODES",
    "MATCH_OPTION",
    "MNM_TTL_CODES",
    "NON_MATCH_OPTION",
    "OutcomeMarkers",
    "PhaseDescriptor",
    "TST_TTL_CODES",
    "TaskManifest",
    "TaskRegistry",
    "TaskSettings",
    "TaskVariant",
    "build_default_registry",
    "create_dms_task",
    "create_mnm_task",
    "create_tst_task",
    "dms_correct_indices",
    "mnm_correct_indices",
    "response_options",
    "tst_correct_indices",
]
