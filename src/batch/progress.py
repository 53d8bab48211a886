# src/batch/progress.py — v1
"""Thread-safe progress counters for one batch job."""

from __future__ import annotations

import logging
import threading

from textflow.batch.delivery import DeliveryContext, InlineDelivery
from textflow.batch.models import FileOutcome, ProgressObserver, ProgressSnapshot

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Count resolved units and push a snapshot after each one.

    Counter updates and the hand-off to the delivery context happen inside
    the same lock, so observers see snapshots in the order the critical
    section was entered: ``completed`` never goes backwards.
    """

    def __init__(
        self,
        total: int,
        observer: ProgressObserver | None = None,
        delivery: DeliveryContext | None = None,
    ) -> None:
        self._total = total
        self._observer = observer
        self._delivery = delivery or InlineDelivery()
        self._lock = threading.Lock()
        self._completed = 0
        self._errors = 0
        self._events = 0

    @property
    def total(self) -> int:
        return self._total

    @property
    def events_posted(self) -> int:
        with self._lock:
            return self._events

    def observe(self, outcome: FileOutcome) -> ProgressSnapshot:
        """Record one resolved unit of work."""
        name = outcome.input_path.name
        if outcome.success:
            message = name
        else:
            message = f"Error processing {name}: {outcome.error}"

        with self._lock:
            self._completed += 1
            if not outcome.success:
                self._errors += 1
            snapshot = self._snapshot_locked(message)
            self._post_locked(snapshot)
        return snapshot

    def notify(self, message: str) -> ProgressSnapshot:
        """Post an informational snapshot without touching the counters."""
        with self._lock:
            snapshot = self._snapshot_locked(message)
            self._post_locked(snapshot)
        return snapshot

    def snapshot(self, message: str = "") -> ProgressSnapshot:
        with self._lock:
            return self._snapshot_locked(message)

    def _snapshot_locked(self, message: str) -> ProgressSnapshot:
        return ProgressSnapshot(
            completed=self._completed,
            total=self._total,
            errors=self._errors,
            message=message,
        )

    def _post_locked(self, snapshot: ProgressSnapshot) -> None:
        logger.debug(
            "Progress %d/%d (%d errors): %s",
            snapshot.completed, snapshot.total, snapshot.errors, snapshot.message,
        )
        if self._observer is None:
            return
        # Counting never depends on delivery: a closed or broken context only loses the event.
        try:
            self._delivery.post(self._observer, snapshot)
        except Exception:
            logger.exception(
                "Progress delivery failed for %d/%d: %s",
                snapshot.completed, snapshot.total, snapshot.message,
            )
            return
        self._events += 1
