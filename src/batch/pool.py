# src/batch/pool.py — v1
"""Bounded worker pool with a scoped lifetime.

Usage:
    with WorkerPool(max_workers=4) as pool:
        futures = [pool.submit(fn, item) for item in items]
        outcomes = [f.result() for f in futures]

The executor is shut down (and joined) on every exit path of the block.
"""

from __future__ import annotations

import contextvars
import logging
import os
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, TypeVar

from textflow.batch.errors import JobConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resolve_worker_count(max_workers: int | None = None) -> int:
    """Worker count to use: the explicit value, else the CPU count.

    Raises:
        JobConfigurationError: If ``max_workers`` is below 1.
    """
    if max_workers is None:
        return os.cpu_count() or 1
    if max_workers < 1:
        raise JobConfigurationError(f"Worker count must be >= 1, got {max_workers}")
    return max_workers


class WorkerPool:
    """At most ``max_workers`` units of work run concurrently."""

    def __init__(
        self,
        max_workers: int | None = None,
        thread_name_prefix: str = "textflow-worker",
    ) -> None:
        self._max_workers = resolve_worker_count(max_workers)
        self._prefix = thread_name_prefix
        self._executor: ThreadPoolExecutor | None = None

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def __enter__(self) -> WorkerPool:
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix=self._prefix,
        )
        logger.debug("Worker pool started (%d workers)", self._max_workers)
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future[T]:
        """Queue ``fn`` without blocking; the caller's context vars travel with it."""
        if self._executor is None:
            raise RuntimeError("WorkerPool is not running; use it as a context manager")
        ctx = contextvars.copy_context()
        return self._executor.submit(ctx.run, fn, *args, **kwargs)

    def shutdown(self) -> None:
        """Wait for queued work and release the threads. Safe to call twice."""
        if self._executor is None:
            return
        self._executor.shutdown(wait=True)
        self._executor = None
        logger.debug("Worker pool stopped")
