"""Task manifests and auto-discovery registry.

Discovery scans a package for module-level ``TASK_MANIFESTS`` constants.
"""

from __future__ import annotations

import importlib
import pkgutil
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .variant import TaskVariant


@dataclass(frozen=True, slots=True)
class TaskManifest:
    """Manifest for a discoverable task variant.

    Parameters
    ----------
    task_id : str
        Stable identifier used in session configs.
    factory : Callable[..., TaskVariant]
        Builds the variant; accepts an optional ``settings`` keyword.
    description : str, optional
        Human-readable summary.
    """

    task_id: str
    factory: Callable[..., TaskVariant]
    description: str = ""


class TaskRegistry:
    """Registry of task manifests keyed by ``task_id``."""

    def __init__(self) -> None:
        self._manifests: dict[str, TaskManifest] = {}

    def register(self, manifest: TaskManifest) -> None:
        """Register one manifest.

        Raises
        ------
        ValueError
            If a different manifest already uses the same ``task_id``.
        """

        existing = self._manifests.get(manifest.task_id)
        if existing is None:
            self._manifests[manifest.task_id] = manifest
            return
        if existing != manifest:
            raise ValueError(f"task manifest conflict for {manifest.task_id!r}; already registered")

    def get(self, task_id: str) -> TaskManifest:
        """Return a manifest by ID.

        Raises
        ------
        ValueError
            If ``task_id`` is unknown; the message lists known IDs.
        """

        try:
            return self._manifests[task_id]
        except KeyError:
            known = sorted(self._manifests)
            raise ValueError(f"unknown task {task_id!r}; expected one of {known}") from None

    def list(self) -> tuple[TaskManifest, ...]:
        return tuple(sorted(self._manifests.values(), key=lambda item: item.task_id))

    def create(self, task_id: str, **kwargs: Any) -> TaskVariant:
        return self.get(task_id).factory(**kwargs)

    def discover(self, package_name: str) -> tuple[TaskManifest, ...]:
        """Discover and register manifests in a package tree.

        Raises
        ------
        TypeError
            If a module's ``TASK_MANIFESTS`` holds something else than
            :class:`TaskManifest` objects.
        """

        discovered: list[TaskManifest] = []
        package = importlib.import_module(package_name)

        modules = [package]
        if hasattr(package, "__path__"):
            for module_info in pkgutil.walk_packages(package.__path__, prefix=package.__name__ + "."):
                modules.append(importlib.import_module(module_info.name))

        for module in modules:
            for manifest in getattr(module, "TASK_MANIFESTS", ()):
                if not isinstance(manifest, TaskManifest):
                    raise TypeError(f"{module.__name__}.TASK_MANIFESTS must contain TaskManifest objects")
                self.register(manifest)
                discovered.append(manifest)

        return tuple(discovered)


def build_default_registry() -> TaskRegistry:
    """Build a registry with the built-in task variants discovered."""

    registry = TaskRegistry()
    registry.discover("trialflow.tasks")
    return registry


__all__ = ["TaskManifest", "TaskRegistry", "build_default_registry"]
