# src/api/facade.py — v2
"""Public API facade: the single entry point for batch jobs.

Usage:
    from textflow.api.facade import submit_batch
    result = submit_batch("find_replace", files, out_dir,
                          {"pattern": "foo", "replacement": "bar"})

    # from a coroutine; the observer runs on the event loop
    result = await submit_batch_async("extract", files, out_dir, {"pattern": r"\\d+"})
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from textflow.batch.coordinator import BatchCoordinator
from textflow.batch.delivery import AsyncioDelivery, DeliveryContext
from textflow.batch.models import (
    BatchJob,
    BatchResult,
    OperationKind,
    OperationParams,
    ProgressObserver,
)
from textflow.config.settings import Settings
from textflow.storage.base_file_store import BaseFileStore

logger = logging.getLogger(__name__)


def build_job(
    operation: OperationKind | str,
    input_files: Iterable[str | Path],
    output_target: str | Path,
    params: OperationParams | Mapping[str, Any] | None = None,
    on_progress: ProgressObserver | None = None,
) -> BatchJob:
    """Normalise loose arguments into an immutable BatchJob."""
    if params is None:
        params = OperationParams()
    elif not isinstance(params, OperationParams):
        params = OperationParams(**params)
    return BatchJob(
        operation=OperationKind(operation),
        input_files=tuple(Path(p) for p in input_files),
        output_target=Path(output_target),
        params=params,
        on_progress=on_progress,
    )


def submit_batch(
    operation: OperationKind | str,
    input_files: Iterable[str | Path],
    output_target: str | Path,
    params: OperationParams | Mapping[str, Any] | None = None,
    on_progress: ProgressObserver | None = None,
    *,
    settings: Settings | None = None,
    max_workers: int | None = None,
    delivery: DeliveryContext | None = None,
    store: BaseFileStore | None = None,
) -> BatchResult:
    """Run one batch job and block until every file has been handled.

    Args:
        operation: find_replace, extract, merge or split.
        input_files: Files to process, in order.
        output_target: Output directory, or the output file for merge.
        params: pattern, replacement, lines_per_chunk, add_separators.
        on_progress: Called with a ProgressSnapshot after each file.
        settings: Global settings. Loaded from .env if None.
        max_workers: Pool size. Defaults to settings, then CPU count.
        delivery: Where on_progress runs. Defaults to the worker thread.
        store: File store. Defaults to the local filesystem.

    Returns:
        BatchResult with processed / error / total counts.

    Raises:
        JobConfigurationError: If the job cannot start.
    """
    job = build_job(operation, input_files, output_target, params, on_progress)
    coordinator = BatchCoordinator(
        settings=settings, store=store, max_workers=max_workers, delivery=delivery,
    )
    logger.debug("Submitting job %s (%s)", job.job_id, job.operation.value)
    return coordinator.run(job)


async def submit_batch_async(
    operation: OperationKind | str,
    input_files: Iterable[str | Path],
    output_target: str | Path,
    params: OperationParams | Mapping[str, Any] | None = None,
    on_progress: ProgressObserver | None = None,
    *,
    settings: Settings | None = None,
    max_workers: int | None = None,
    store: BaseFileStore | None = None,
) -> BatchResult:
    """Async variant of :func:`submit_batch`.

    The job runs in a worker thread; ``on_progress`` is invoked on the
    running event loop, never on a pool thread.
    """
    delivery = AsyncioDelivery(asyncio.get_running_loop())
    return await asyncio.to_thread(
        submit_batch,
        operation,
        list(input_files),
        output_target,
        params,
        on_progress,
        settings=settings,
        max_workers=max_workers,
        delivery=delivery,
        store=store,
    )
