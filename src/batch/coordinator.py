# src/batch/coordinator.py — v1
"""Batch coordinator: validate a job, fan units out, join and aggregate.

Workflow:
    1. Job-level checks (pattern, parameters, output target); failures
       raise JobConfigurationError before any file is touched
    2. One FileTask per input file
    3. Parallel operations go through the WorkerPool, sequential ones
       (merge, split) run on the calling thread in input order
    4. Every unit resolves to a FileOutcome; nothing short-circuits
    5. Outcomes fold into one BatchResult
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future
from pathlib import Path

from textflow.batch.delivery import DeliveryContext
from textflow.batch.models import BatchJob, BatchResult, FileOutcome, FileTask
from textflow.batch.operations.base_operation import BaseOperation, UnitProcessor
from textflow.batch.operations.operation_factory import create_operation
from textflow.batch.pool import WorkerPool, resolve_worker_count
from textflow.batch.progress import ProgressReporter
from textflow.config.settings import Settings, load_settings
from textflow.logging.context import set_file_context, set_job_context
from textflow.storage.base_file_store import BaseFileStore

logger = logging.getLogger(__name__)


class BatchCoordinator:
    """Run batch jobs over a bounded worker pool."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: BaseFileStore | None = None,
        max_workers: int | None = None,
        delivery: DeliveryContext | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        self._store = store
        if max_workers is None:
            max_workers = self._settings.batch_max_workers
        self._max_workers = resolve_worker_count(max_workers)
        self._delivery = delivery

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def run(self, job: BatchJob) -> BatchResult:
        """Process every input of ``job`` and return the aggregate result.

        Blocks until all units have resolved.

        Raises:
            JobConfigurationError: If the job cannot start.
        """
        operation = create_operation(job.operation, settings=self._settings, store=self._store)
        set_job_context(job.job_id, operation.kind.value)

        operation.validate(job)
        if not job.input_files:
            logger.info("%s: no input files", operation.label)
            return BatchResult.empty(operation.label)
        operation.check_output(job)

        t0 = time.perf_counter()
        tasks = [
            FileTask(index=i, input_path=path, job_id=job.job_id)
            for i, path in enumerate(job.input_files)
        ]
        reporter = ProgressReporter(
            total=len(tasks), observer=job.on_progress, delivery=self._delivery,
        )
        logger.info(
            "%s started: %d files -> %s", operation.label, len(tasks), job.output_target,
        )

        with operation.session(job, reporter) as process:
            if operation.parallel:
                outcomes = self._run_parallel(process, tasks, reporter)
            else:
                outcomes = [self._run_unit(process, task, reporter) for task in tasks]
        set_file_context(None)

        result = self._aggregate(operation, len(tasks), outcomes, time.perf_counter() - t0)
        logger.info("%s", result)
        return result

    def _run_parallel(
        self,
        process: UnitProcessor,
        tasks: list[FileTask],
        reporter: ProgressReporter,
    ) -> list[FileOutcome]:
        pending: list[tuple[FileTask, Future[FileOutcome]]] = []
        outcomes: list[FileOutcome] = []
        with WorkerPool(max_workers=min(self._max_workers, len(tasks))) as pool:
            for task in tasks:
                pending.append((task, pool.submit(self._run_unit, process, task, reporter)))

            for task, future in pending:
                try:
                    outcomes.append(future.result())
                except Exception as exc:
                    # The wrapper failed before observe(), which never raises once it
                    # has counted, so this unit is still uncounted.
                    logger.exception("Unit for %s failed outside its handler", task.name)
                    outcome = FileOutcome.failed(task.input_path, exc)
                    reporter.observe(outcome)
                    outcomes.append(outcome)
        return outcomes

    @staticmethod
    def _run_unit(
        process: UnitProcessor, task: FileTask, reporter: ProgressReporter,
    ) -> FileOutcome:
        set_file_context(task.name)
        try:
            outcome = FileOutcome.ok(task.input_path, process(task))
        except Exception as exc:
            logger.exception("Failed to process %s", task.name)
            outcome = FileOutcome.failed(task.input_path, exc)
        reporter.observe(outcome)
        return outcome

    @staticmethod
    def _aggregate(
        operation: BaseOperation, total: int, outcomes: list[FileOutcome], duration: float,
    ) -> BatchResult:
        outputs: list[Path] = []
        for outcome in outcomes:
            for path in outcome.outputs:
                if path not in outputs:
                    outputs.append(path)
        return BatchResult(
            processed=len(outcomes),
            errors=sum(1 for o in outcomes if not o.success),
            total=total,
            operation=operation.label,
            outputs=outputs,
            outcomes=outcomes,
            duration_seconds=round(duration, 3),
        )
