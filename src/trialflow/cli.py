"""CLI for headless simulated sessions."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from trialflow.core.config_loading import check_keys, load_config_mapping, require_mapping
from trialflow.core.trials import Trial, trial_from_mapping, validate_trial_list
from trialflow.io.tabular import write_log_entries_csv, write_trial_details_csv, write_ttl_entries_csv
from trialflow.runtime.config import engine_config_from_mapping
from trialflow.runtime.context import Collaborators
from trialflow.runtime.engine import run_session
from trialflow.runtime.event_log import InMemoryLogSink
from trialflow.simulation import (
    CountingRewardMeter,
    HeadlessRenderer,
    ScriptedOverlay,
    SimulatedParticipant,
    VirtualClock,
)

logger = logging.getLogger(__name__)

_ROOT_KEYS = ("engine", "trials", "simulation")
_SIMULATION_KEYS = ("accuracy", "miss_rate", "rt_range_s", "overlay_s", "reward_capacity")


def run_simulation_cli(argv: Sequence[str] | None = None) -> int:
    """Simulate one session from a JSON or YAML config path.

    Parameters
    ----------
    argv : Sequence[str] | None, optional
        CLI argument list. When ``None``, process arguments are used.

    Returns
    -------
    int
        Exit code (`0` on success).
    """

    parser = argparse.ArgumentParser(description="Run a simulated trialflow session from JSON or YAML config.")
    parser.add_argument("--config", required=True, help="Path to session JSON or YAML config.")
    parser.add_argument("--seed", type=int, default=0, help="Seed of the simulated participant.")
    parser.add_argument("--output-dir", default=".", help="Directory for CSV and JSON outputs.")
    parser.add_argument("--prefix", default="session", help="Output filename prefix.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=getattr(logging, str(args.log_level)), format="%(levelname)s %(name)s: %(message)s")

    config = load_config_mapping(args.config)
    check_keys(config, field_name="config", allowed=_ROOT_KEYS, required=("trials",))
    engine_config = engine_config_from_mapping(config.get("engine", {}))
    trials = _parse_trials(config["trials"])
    simulation = require_mapping(config.get("simulation", {}), field_name="config.simulation")
    check_keys(simulation, field_name="config.simulation", allowed=_SIMULATION_KEYS)

    variant = engine_config.build_task()
    trials_by_id = {trial.trial_id: trial for trial in trials}

    clock = VirtualClock()
    renderer = HeadlessRenderer()
    participant = SimulatedParticipant(
        clock=clock,
        renderer=renderer,
        correct_for=lambda trial_id: variant.correct_indices(trials_by_id[trial_id]),
        rng=np.random.default_rng(int(args.seed)),
        accuracy=float(simulation.get("accuracy", 0.8)),
        miss_rate=float(simulation.get("miss_rate", 0.05)),
        rt_range_s=_parse_range(simulation.get("rt_range_s", (0.3, 1.2))),
    )
    sink = InMemoryLogSink()
    collaborators = Collaborators(
        renderer=renderer,
        selection_source=participant,
        log_sink=sink,
        pause_overlay=ScriptedOverlay(clock, duration_s=float(simulation.get("overlay_s", 1.0))),
        reward_meter=CountingRewardMeter(int(simulation.get("reward_capacity", 10))),
        listeners=(participant,),
    )

    logger.info("simulating %d trials of task %s", len(trials), variant.task_id)
    outcome = run_session(
        trials,
        collaborators,
        config=engine_config,
        variant=variant,
        clock=clock,
        sleep=clock.sleep,
    )

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    prefix = str(args.prefix)
    all_path = write_log_entries_csv(sink.all_entries, output_dir / f"{prefix}_all_logs.csv")
    ttl_path = write_ttl_entries_csv(sink.ttl_entries, output_dir / f"{prefix}_ttl_logs.csv")
    trials_path = write_trial_details_csv(outcome.details, output_dir / f"{prefix}_trials.csv")
    payload = {
        "task": variant.task_id,
        "seed": int(args.seed),
        "score": outcome.score,
        "ticks": outcome.ticks,
        "simulated_duration_s": clock(),
        **outcome.summary.to_dict(),
    }
    summary_path = _write_json_summary(output_dir / f"{prefix}_summary.json", payload)

    accuracy = payload["accuracy"]
    mean_rt = payload["mean_reaction_time_ms"]
    print(
        "Session complete: "
        f"n_trials={outcome.summary.trials_total}, score={outcome.score}, "
        f"accuracy={_format_optional(accuracy)}, mean_rt_ms={_format_optional(mean_rt)}"
    )
    print(f"All logs CSV: {all_path}")
    print(f"TTL logs CSV: {ttl_path}")
    print(f"Trials CSV: {trials_path}")
    print(f"Summary JSON: {summary_path}")
    return 0


def _parse_trials(raw: Any) -> list[Trial]:
    if not isinstance(raw, list):
        raise ValueError("config.trials must be a list")
    trials = [trial_from_mapping(item, field_name=f"config.trials[{index}]") for index, item in enumerate(raw)]
    validate_trial_list(trials)
    return trials


def _parse_range(raw: Any) -> tuple[float, float]:
    if isinstance(raw, Mapping) or not hasattr(raw, "__len__") or len(raw) != 2:
        raise ValueError("config.simulation.rt_range_s must be a two-element list")
    return float(raw[0]), float(raw[1])


def _format_optional(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.3f}"


def _write_json_summary(path: Path, payload: dict[str, Any]) -> Path:
    """Write summary JSON payload to disk."""

    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    return path


def main() -> None:
    """Execute the simulation CLI and exit with returned code."""

    raise SystemExit(run_simulation_cli())


if __name__ == "__main__":
    main()


__all__ = ["main", "run_simulation_cli"]
