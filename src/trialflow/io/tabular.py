"""CSV export of session logs and trial results.

These helpers are the boundary between in-memory session output and files
handed to analysis code. Column sets are fixed so downstream readers can rely
on them.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from pathlib import Path

from trialflow.analysis.summary import TrialDetail
from trialflow.core.events import LogEntry, TtlEntry

_ALL_LOG_COLUMNS = ("trial_id", "label", "detail")
_TTL_LOG_COLUMNS = ("trial_id", "label", "ttl_code")
_TRIAL_COLUMNS = ("trial_index", "correct", "reaction_time_ms")


def write_log_entries_csv(entries: Iterable[LogEntry], path: str | Path) -> Path:
    """Write the unconditional log stream to CSV.

    Parameters
    ----------
    entries : Iterable[LogEntry]
        Entries in emission order.
    path : str | pathlib.Path
        Destination CSV path.

    Returns
    -------
    pathlib.Path
        Output path.
    """

    return _write_rows(
        path,
        _ALL_LOG_COLUMNS,
        ({"trial_id": e.trial_id, "label": e.label, "detail": e.detail} for e in entries),
    )


def write_ttl_entries_csv(entries: Iterable[TtlEntry], path: str | Path) -> Path:
    """Write the coded log stream to CSV."""

    return _write_rows(
        path,
        _TTL_LOG_COLUMNS,
        ({"trial_id": e.trial_id, "label": e.label, "ttl_code": e.code} for e in entries),
    )


def write_trial_details_csv(details: Sequence[TrialDetail], path: str | Path) -> Path:
    """Write per-trial details to CSV.

    Raises
    ------
    ValueError
        If ``details`` is empty.
    """

    if len(details) == 0:
        raise ValueError("details must not be empty")
    return _write_rows(
        path,
        _TRIAL_COLUMNS,
        (
            {
                "trial_index": detail.trial_index,
                "correct": int(detail.correct),
                "reaction_time_ms": repr(float(detail.reaction_time_ms)),
            }
            for detail in details
        ),
    )


def read_trial_details_csv(path: str | Path) -> tuple[TrialDetail, ...]:
    """Read per-trial details written by :func:`write_trial_details_csv`.

    Raises
    ------
    ValueError
        If required columns are missing or a row cannot be parsed.
    """

    input_path = Path(path)
    with input_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        fieldnames = tuple(reader.fieldnames or ())
        missing = sorted(set(_TRIAL_COLUMNS) - set(fieldnames))
        if missing:
            raise ValueError(f"CSV is missing required columns: {missing}")
        rows: list[TrialDetail] = []
        for row_index, raw in enumerate(reader):
            try:
                rows.append(
                    TrialDetail(
                        trial_index=int(raw["trial_index"]),
                        correct=bool(int(raw["correct"])),
                        reaction_time_ms=float(raw["reaction_time_ms"]),
                    )
                )
            except (TypeError, ValueError) as exc:
                raise ValueError(f"row {row_index}: invalid trial detail") from exc
    return tuple(rows)


def _write_rows(path: str | Path, columns: Sequence[str], rows: Iterable[dict[str, object]]) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(columns))
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return output_path


__all__ = [
    "read_trial_details_csv",
    "write_log_entries_csv",
    "write_trial_details_csv",
    "write_ttl_entries_csv",
]
