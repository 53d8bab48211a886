# src/batch/operations/split.py — v1
"""File split: cut one input into numbered part files of at most N lines."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from textflow.batch.errors import JobConfigurationError
from textflow.batch.models import BatchJob, FileTask, OperationKind
from textflow.batch.operations.base_operation import BaseOperation, UnitProcessor, base_name
from textflow.batch.progress import ProgressReporter

logger = logging.getLogger(__name__)


class SplitOperation(BaseOperation):
    """Write ``<base>_part1.txt``, ``<base>_part2.txt``, ... for a single input.

    An empty input produces no part files.
    """

    kind = OperationKind.SPLIT

    def lines_per_chunk(self, job: BatchJob) -> int:
        value = job.params.lines_per_chunk
        return self._settings.split_lines_per_chunk if value is None else value

    def validate(self, job: BatchJob) -> None:
        super().validate(job)
        if self.lines_per_chunk(job) < 1:
            raise JobConfigurationError(
                f"lines_per_chunk must be >= 1, got {self.lines_per_chunk(job)}"
            )
        if len(job.input_files) > 1:
            raise JobConfigurationError(
                f"{self.label} takes a single input file, got {len(job.input_files)}"
            )

    @contextmanager
    def session(self, job: BatchJob, reporter: ProgressReporter) -> Iterator[UnitProcessor]:
        limit = self.lines_per_chunk(job)

        def process(task: FileTask) -> list[Path]:
            base = base_name(task.input_path)
            parts: list[Path] = []
            buffer: list[str] = []

            def flush() -> None:
                part = job.output_target / (
                    f"{base}{self._settings.part_suffix}{len(parts) + 1}"
                    f"{self._settings.output_extension}"
                )
                self._store.write_lines(part, buffer)
                parts.append(part)
                buffer.clear()
                reporter.notify(f"Created part file {len(parts)}")

            for line in self._store.iter_lines(task.input_path):
                buffer.append(line)
                if len(buffer) >= limit:
                    flush()
            if buffer:
                flush()

            logger.info("Split %s into %d parts of <= %d lines", task.name, len(parts), limit)
            return parts

        yield process
