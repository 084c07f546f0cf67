"""Engine configuration and its declarative parser."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from trialflow.core.config_loading import check_keys, load_config_mapping, require_mapping
from trialflow.core.events import PhaseKind, phase_kind_from_name
from trialflow.tasks.registry import TaskRegistry, build_default_registry
from trialflow.tasks.variant import TaskSettings, TaskVariant

from .scoring import ScoringRule

_ENGINE_KEYS = (
    "task",
    "choice_timeout_s",
    "feedback_s",
    "flash_interval_s",
    "settle_ticks",
    "tick_rate_hz",
    "pause_between_blocks",
    "use_reward_meter",
    "scoring",
    "timing",
    "choice_y",
)
_SCORING_KEYS = ("points_per_correct", "points_per_wrong", "reward_per_correct", "penalty_units")
_PHASE_OPTIONS = {PhaseKind.CHOICE: "choice_timeout_s", PhaseKind.FEEDBACK: "feedback_s"}


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Runtime options for one session.

    Parameters
    ----------
    task : str, optional
        Task-variant ID in the task registry.
    choice_timeout_s : float, optional
        Maximum response time of the choice phase.
    feedback_s : float, optional
        Duration of the feedback phase.
    flash_interval_s : float, optional
        Duration of each half of the flash pulse.
    settle_ticks : int, optional
        Ticks a settle-flagged phase waits before its entry is recorded.
        ``0`` records immediately.
    tick_rate_hz : float, optional
        Scheduler cadence.
    pause_between_blocks : bool, optional
        Show the block overlay at block boundaries.
    use_reward_meter : bool, optional
        Forward rewards and penalties to the reward meter.
    scoring : ScoringRule, optional
        Point and reward constants.
    durations : Mapping[PhaseKind, float], optional
        Per-phase duration overrides.
    choice_y : float, optional
        Vertical offset of fixed response buttons.

    Raises
    ------
    ValueError
        If a numeric option is out of range.
    """

    task: str = "dms"
    choice_timeout_s: float = 10.0
    feedback_s: float = 1.0
    flash_interval_s: float = 0.3
    settle_ticks: int = 2
    tick_rate_hz: float = 60.0
    pause_between_blocks: bool = True
    use_reward_meter: bool = True
    scoring: ScoringRule = field(default_factory=ScoringRule)
    durations: Mapping[PhaseKind, float] = field(default_factory=dict)
    choice_y: float = 1.5

    def __post_init__(self) -> None:
        if self.choice_timeout_s <= 0:
            raise ValueError("choice_timeout_s must be > 0")
        if self.feedback_s < 0:
            raise ValueError("feedback_s must be >= 0")
        if self.flash_interval_s < 0:
            raise ValueError("flash_interval_s must be >= 0")
        if self.settle_ticks < 0:
            raise ValueError("settle_ticks must be >= 0")
        if self.tick_rate_hz <= 0:
            raise ValueError("tick_rate_hz must be > 0")
        for kind, value in self.durations.items():
            if kind in _PHASE_OPTIONS:
                raise ValueError(f"durations cannot set {kind.value}; use {_PHASE_OPTIONS[kind]}")
            if value < 0:
                raise ValueError(f"timing.{kind.value} must be >= 0")
        object.__setattr__(self, "durations", MappingProxyType(dict(self.durations)))

    @property
    def tick_interval_s(self) -> float:
        return 1.0 / self.tick_rate_hz

    def task_settings(self) -> TaskSettings:
        return TaskSettings(
            durations=dict(self.durations),
            choice_timeout_s=self.choice_timeout_s,
            feedback_s=self.feedback_s,
            choice_y=self.choice_y,
        )

    def build_task(self, registry: TaskRegistry | None = None) -> TaskVariant:
        """Instantiate the configured task variant."""

        reg = registry if registry is not None else build_default_registry()
        return reg.create(self.task, settings=self.task_settings())


def engine_config_from_mapping(config: Mapping[str, Any]) -> EngineConfig:
    """Parse an :class:`EngineConfig` from a declarative mapping.

    Parameters
    ----------
    config : Mapping[str, Any]
        Engine section, e.g.::

            {"task": "dms", "choice_timeout_s": 8,
             "scoring": {"points_per_correct": 3},
             "timing": {"SampleOn": 0.75}}

    Returns
    -------
    EngineConfig
        Parsed configuration; omitted keys keep their defaults.

    Raises
    ------
    ValueError
        On unknown keys, unknown phase names, non-boolean flags, timing
        entries for ``Choice`` or ``Feedback`` (set via ``choice_timeout_s``
        and ``feedback_s``) or out-of-range values.
    """

    section = require_mapping(config, field_name="engine")
    check_keys(section, field_name="engine", allowed=_ENGINE_KEYS)

    scoring_cfg = require_mapping(section.get("scoring", {}), field_name="engine.scoring")
    check_keys(scoring_cfg, field_name="engine.scoring", allowed=_SCORING_KEYS)
    scoring = ScoringRule(**{key: int(value) for key, value in scoring_cfg.items()})

    timing_cfg = require_mapping(section.get("timing", {}), field_name="engine.timing")
    durations = _parse_timing(timing_cfg)

    defaults = EngineConfig()
    return EngineConfig(
        task=str(section.get("task", defaults.task)),
        choice_timeout_s=float(section.get("choice_timeout_s", defaults.choice_timeout_s)),
        feedback_s=float(section.get("feedback_s", defaults.feedback_s)),
        flash_interval_s=float(section.get("flash_interval_s", defaults.flash_interval_s)),
        settle_ticks=int(section.get("settle_ticks", defaults.settle_ticks)),
        tick_rate_hz=float(section.get("tick_rate_hz", defaults.tick_rate_hz)),
        pause_between_blocks=_bool_option(section, "pause_between_blocks", defaults.pause_between_blocks),
        use_reward_meter=_bool_option(section, "use_reward_meter", defaults.use_reward_meter),
        scoring=scoring,
        durations=durations,
        choice_y=float(section.get("choice_y", defaults.choice_y)),
    )


def _parse_timing(timing_cfg: Mapping[str, Any]) -> dict[PhaseKind, float]:
    durations: dict[PhaseKind, float] = {}
    for name, value in timing_cfg.items():
        kind = phase_kind_from_name(str(name))
        if kind in _PHASE_OPTIONS:
            raise ValueError(
                f"engine.timing.{name} is not allowed; set engine.{_PHASE_OPTIONS[kind]} instead"
            )
        durations[kind] = float(value)
    return durations


def _bool_option(section: Mapping[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"engine.{key} must be a boolean, got {value!r}")
    return value


def load_engine_config(path: str | Path) -> EngineConfig:
    """Load an engine config file (`.json`, `.yaml`, or `.yml`)."""

    return engine_config_from_mapping(load_config_mapping(path))


__all__ = ["EngineConfig", "engine_config_from_mapping", "load_engine_config"]
