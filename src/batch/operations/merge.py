# src/batch/operations/merge.py — v1
"""File merge: concatenate inputs, in submission order, into one output file."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path

from textflow.batch.errors import JobConfigurationError
from textflow.batch.models import BatchJob, FileTask, OperationKind
from textflow.batch.operations.base_operation import BaseOperation, UnitProcessor
from textflow.batch.progress import ProgressReporter
from textflow.storage.base_file_store import LineWriter

logger = logging.getLogger(__name__)


class MergeOperation(BaseOperation):
    """Append every input to ``output_target``.

    Runs sequentially: the output is a single shared stream. With
    separators on, every file merged after the first one is preceded by a
    header block naming it.
    """

    kind = OperationKind.MERGE
    writes_directory = False

    def check_output(self, job: BatchJob) -> None:
        super().check_output(job)
        target = job.output_target.resolve()
        for input_path in job.input_files:
            if input_path.resolve() == target:
                raise JobConfigurationError(
                    f"Merge output would overwrite input file: {input_path}"
                )

    def separator_block(self, name: str) -> str:
        rule = self._settings.separator_rule
        return f"\n\n{rule}\nFILE: {name}\n{rule}\n\n"

    @contextmanager
    def session(self, job: BatchJob, reporter: ProgressReporter) -> Iterator[UnitProcessor]:
        target = job.output_target
        with ExitStack() as stack:
            try:
                writer: LineWriter = stack.enter_context(self._store.open_writer(target))
            except OSError as exc:
                raise JobConfigurationError(f"Cannot open merge output {target}: {exc}") from exc

            merged = 0

            def process(task: FileTask) -> list[Path]:
                nonlocal merged
                # Read fully first so a failing input leaves nothing half-written.
                lines = self._store.read_lines(task.input_path)
                if job.params.add_separators and merged > 0:
                    writer.write(self.separator_block(task.name))
                writer.write_lines(lines)
                merged += 1
                logger.debug("Merged %s (%d lines)", task.name, len(lines))
                return [target]

            yield process
            logger.info("Merged %d files into %s", merged, target)
