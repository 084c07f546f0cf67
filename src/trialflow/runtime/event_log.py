"""Event/TTL logger adapter.

Every event goes to the unconditional stream. Events whose label has a
trigger code in the task's TTL table also go to the coded stream, which an
acquisition system uses to align hardware recordings with the task.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from trialflow.core.contracts import EventListener, LogSink
from trialflow.core.events import EventLabel, LogEntry, TtlEntry

logger = logging.getLogger(__name__)


class EventLogger:
    """Route labelled events to a log sink and to registered listeners.

    Parameters
    ----------
    sink : LogSink
        Destination of both streams.
    ttl_codes : Mapping[EventLabel, int]
        Task-specific label-to-trigger-code table.
    listeners : Iterable[EventListener], optional
        Observers notified of every event.
    """

    def __init__(
        self,
        sink: LogSink,
        ttl_codes: Mapping[EventLabel, int],
        listeners: Iterable[EventListener] = (),
    ) -> None:
        self._sink = sink
        self._ttl_codes = dict(ttl_codes)
        self._listeners: list[EventListener] = list(listeners)

    @property
    def ttl_codes(self) -> Mapping[EventLabel, int]:
        return dict(self._ttl_codes)

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def log_event(self, trial_id: str, label: EventLabel, detail: str = "") -> None:
        """Notify listeners and record the event under ``trial_id``."""

        self.notify(trial_id, label)
        self.record(trial_id, label, detail)

    def notify(self, trial_id: str, label: EventLabel) -> None:
        for listener in self._listeners:
            listener.on_log_event(trial_id, label.value)

    def record(self, trial_id: str, label: EventLabel, detail: str = "") -> None:
        """Write the unconditional entry and, if coded, the TTL entry."""

        self._sink.log_all(trial_id, label.value, detail)
        code = self._ttl_codes.get(label)
        if code is not None:
            self._sink.log_ttl(trial_id, label.value, code)
            logger.debug("[%s] %s (ttl=%d)", trial_id, label.value, code)
        else:
            logger.debug("[%s] %s", trial_id, label.value)


class InMemoryLogSink:
    """Order-preserving in-memory implementation of :class:`LogSink`."""

    def __init__(self) -> None:
        self.all_entries: list[LogEntry] = []
        self.ttl_entries: list[TtlEntry] = []

    def log_all(self, trial_id: str, label: str, detail: str) -> None:
        self.all_entries.append(LogEntry(trial_id=trial_id, label=label, detail=detail))

    def log_ttl(self, trial_id: str, label: str, code: int) -> None:
        self.ttl_entries.append(TtlEntry(trial_id=trial_id, label=label, code=int(code)))

    def labels(self, trial_id: str | None = None) -> list[str]:
        """Unconditional-stream labels in order, optionally for one trial."""

        return [
            entry.label
            for entry in self.all_entries
            if trial_id is None or entry.trial_id == trial_id
        ]


__all__ = ["EventLogger", "InMemoryLogSink"]
