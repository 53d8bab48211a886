# src/batch/operations/find_replace.py — v1
"""Find-and-replace: stream each input line by line through a substitution."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from textflow.batch.errors import JobConfigurationError
from textflow.batch.models import BatchJob, FileTask, OperationKind
from textflow.batch.operations.base_operation import BaseOperation, UnitProcessor
from textflow.batch.progress import ProgressReporter
from textflow.patterns.matcher import PatternSyntaxError, replacer

logger = logging.getLogger(__name__)


class FindReplaceOperation(BaseOperation):
    """Write ``<base>_processed.txt`` with every match replaced, line by line."""

    kind = OperationKind.FIND_REPLACE
    requires_pattern = True
    parallel = True

    def output_suffix(self) -> str:
        return self._settings.processed_suffix

    def validate(self, job: BatchJob) -> None:
        compiled = self.compile(job)
        try:
            replacer(compiled, job.params.replacement)
        except PatternSyntaxError as exc:
            raise JobConfigurationError(f"Invalid replacement: {exc}") from exc

    @contextmanager
    def session(self, job: BatchJob, reporter: ProgressReporter) -> Iterator[UnitProcessor]:
        transform = replacer(self.compile(job), job.params.replacement)
        suffix = self.output_suffix()

        def process(task: FileTask) -> list[Path]:
            output = self.output_path(job, task.input_path, suffix)
            lines = self._store.process_by_line(task.input_path, output, transform)
            logger.debug("Replaced %s -> %s (%d lines)", task.name, output.name, lines)
            return [output]

        yield process
