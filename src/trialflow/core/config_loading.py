"""Read session files and check their sections.

A session file holds an ``engine`` section (task, timing, scoring), a
``trials`` list and, for headless runs, a ``simulation`` section. This
module only reads the file and offers the key checks; the engine and trial
parsers decide what each section may contain, so a misspelt phase or
scoring key is rejected before the first trial starts.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

SUPPORTED_CONFIG_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")


def load_config_mapping(path: str | Path) -> dict[str, Any]:
    """Read a session file into its top-level sections.

    Parameters
    ----------
    path : str | pathlib.Path
        Session or engine file. JSON is read with :mod:`json`; YAML
        (``.yaml`` / ``.yml``) with PyYAML's safe loader.

    Returns
    -------
    dict[str, Any]
        Section name to raw section content, unvalidated.

    Raises
    ------
    ValueError
        If the file type is not JSON or YAML, or the document is not a
        mapping of sections (e.g. a bare trial list).
    ImportError
        If a YAML file is given and PyYAML is not installed.
    """

    config_path = Path(path)
    suffix = config_path.suffix.lower()

    if suffix == ".json":
        with config_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    elif suffix in {".yaml", ".yml"}:
        try:
            import yaml
        except ImportError as exc:  # pragma: no cover - only without pyyaml
            raise ImportError(
                "YAML session configs require PyYAML. Install with `pip install pyyaml`."
            ) from exc
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    else:
        supported = ", ".join(SUPPORTED_CONFIG_SUFFIXES)
        raise ValueError(
            f"unsupported config file extension {suffix!r}; expected one of {supported}"
        )

    if not isinstance(raw, dict):
        raise ValueError(f"config root must be a mapping of sections, got {type(raw).__name__}")
    return raw


def check_keys(
    mapping: Mapping[str, Any],
    *,
    field_name: str,
    allowed: Iterable[str],
    required: Iterable[str] = (),
) -> None:
    """Fail on misspelt or missing keys of one session-file section.

    Parameters
    ----------
    mapping : Mapping[str, Any]
        Section content, e.g. the ``engine`` or ``engine.scoring`` mapping.
    field_name : str
        Section path shown in the error (``"engine.scoring"``).
    allowed : Iterable[str]
        Keys the section understands.
    required : Iterable[str], optional
        Keys the section cannot run without (``trials`` at the root).

    Raises
    ------
    ValueError
        On unknown or missing keys.
    """

    allowed_keys = {str(key) for key in allowed}
    unknown = sorted(str(key) for key in mapping if str(key) not in allowed_keys)
    if unknown:
        raise ValueError(f"{field_name} has unknown keys: {unknown}")

    missing = sorted(str(key) for key in required if key not in mapping)
    if missing:
        raise ValueError(f"{field_name} is missing required keys: {missing}")


def require_mapping(raw: Any, *, field_name: str) -> Mapping[str, Any]:
    """Return ``raw`` if the section is a mapping, else name the section in a ``ValueError``."""

    if not isinstance(raw, Mapping):
        raise ValueError(f"{field_name} must be an object")
    return raw


__all__ = [
    "SUPPORTED_CONFIG_SUFFIXES",
    "check_keys",
    "load_config_mapping",
    "require_mapping",
]
