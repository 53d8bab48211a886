# src/batch/delivery.py — v1
"""Delivery contexts: where progress observers actually run.

The reporter posts ``(observer, snapshot)`` pairs from worker threads. A
delivery context decides which thread executes the observer:

- InlineDelivery: the posting worker thread, immediately.
- QueueDelivery: whichever thread calls ``drain()`` (e.g. a UI loop).
- AsyncioDelivery: an asyncio event loop, via ``call_soon_threadsafe``.
- BackgroundDelivery: one dedicated thread, FIFO.

Contexts must preserve posting order.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from textflow.batch.models import ProgressSnapshot

logger = logging.getLogger(__name__)

Callback = Callable[[ProgressSnapshot], None]


@runtime_checkable
class DeliveryContext(Protocol):
    """Anything that can run a progress callback somewhere."""

    def post(self, callback: Callback, snapshot: ProgressSnapshot) -> None:
        """Schedule ``callback(snapshot)``; must not block on the callback's work."""
        ...


def _invoke(callback: Callback, snapshot: ProgressSnapshot) -> None:
    # An observer bug must not turn into a file error or kill a worker.
    try:
        callback(snapshot)
    except Exception:
        logger.exception("Progress observer raised on %r", snapshot.message)


class InlineDelivery:
    """Run the observer on the posting thread."""

    def post(self, callback: Callback, snapshot: ProgressSnapshot) -> None:
        _invoke(callback, snapshot)


class QueueDelivery:
    """Buffer snapshots until the hosting thread drains them."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[tuple[Callback, ProgressSnapshot]] = queue.SimpleQueue()

    def post(self, callback: Callback, snapshot: ProgressSnapshot) -> None:
        self._queue.put((callback, snapshot))

    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> int:
        """Run every queued callback on the calling thread. Returns how many ran."""
        count = 0
        while True:
            try:
                callback, snapshot = self._queue.get_nowait()
            except queue.Empty:
                return count
            _invoke(callback, snapshot)
            count += 1


class AsyncioDelivery:
    """Hand callbacks to an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    def post(self, callback: Callback, snapshot: ProgressSnapshot) -> None:
        if self._loop.is_closed():
            logger.warning("Event loop closed, dropping progress %r", snapshot.message)
            return
        self._loop.call_soon_threadsafe(_invoke, callback, snapshot)


class BackgroundDelivery:
    """Run callbacks on a single dedicated thread, in posting order.

    Use as a context manager, or call ``close()`` to flush and stop.
    """

    _STOP = object()

    def __init__(self, name: str = "textflow-progress") -> None:
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._closed = False
        self._thread.start()

    def post(self, callback: Callback, snapshot: ProgressSnapshot) -> None:
        if self._closed:
            raise RuntimeError("BackgroundDelivery is closed")
        self._queue.put((callback, snapshot))

    def close(self, timeout: float | None = None) -> None:
        """Deliver everything already posted, then stop the thread."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(self._STOP)
        self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is self._STOP:
                return
            callback, snapshot = item
            _invoke(callback, snapshot)

    def __enter__(self) -> BackgroundDelivery:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
